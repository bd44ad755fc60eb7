"""Base classes and interfaces for the identity network gateways."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from upandup_core.config import LedgerSettings
from upandup_core.models import AnchorStatus, CredentialType, utcnow


class IssuanceStatus(str, Enum):
    """Issuance state reported by the credential gateway."""

    PENDING = "pending"
    ISSUED = "issued"


# Verifiable Credential type per credential kind
VC_TYPES: dict[CredentialType, str] = {
    CredentialType.VOTER_ID: "VoterIdCredential",
    CredentialType.PAN_CARD: "PANCardCredential",
    CredentialType.DRIVING_LICENSE: "DrivingLicenseCredential",
    CredentialType.MARKSHEET_10TH: "EducationCredential",
    CredentialType.MARKSHEET_12TH: "EducationCredential",
    CredentialType.DIPLOMA: "EducationCredential",
    CredentialType.DEGREE: "EducationCredential",
    CredentialType.SKILL_CERTIFICATE: "SkillCredential",
    CredentialType.EMPLOYER_APPRECIATION: "EndorsementCredential",
    CredentialType.TRAINING_CERTIFICATE: "TrainingCredential",
}


def vc_type_for(credential_type: CredentialType | str) -> str:
    """Map a credential kind to its VC type, GenericCredential if unknown."""
    try:
        return VC_TYPES[CredentialType(credential_type)]
    except ValueError:
        return "GenericCredential"


class WorkerDetails(BaseModel):
    """Identity details sent to the network when creating a worker DID."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address: str | None = None
    aadhar: str | None = None
    employer: str | None = None


class CredentialMetadata(BaseModel):
    """Document facts attached to a credential issuance request."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    document_hash: str = Field(min_length=1)
    issue_date: datetime
    expiry_date: datetime | None = None
    document_url: str | None = None
    additional_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("issue_date", "expiry_date", mode="after")
    @classmethod
    def _naive_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def _expiry_after_issue(self) -> "CredentialMetadata":
        if self.expiry_date is not None and self.expiry_date <= self.issue_date:
            raise ValueError("expiry_date must be after issue_date")
        return self


@dataclass
class DIDCreationResult:
    """Normalized outcome of a DID creation call."""

    did: str
    anchor_status: AnchorStatus
    did_document: dict[str, Any] = field(default_factory=dict)
    transaction_ref: str | None = None
    block_number: int | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class CredentialIssuanceResult:
    """Normalized outcome of a credential issuance call."""

    credential_id: str
    status: IssuanceStatus
    anchor_status: AnchorStatus
    vc_url: str | None = None
    verifiable_credential: dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayConfig:
    """Configuration for the HTTP gateway clients."""

    provider: str
    dedi_publish_url: str = ""
    dedi_lookup_url: str = ""
    mark_studio_url: str = ""
    issuer_agent_url: str = ""
    verification_url: str = ""
    wallet_url: str = ""
    digilocker_url: str = ""
    network_url: str = ""
    issuer_did: str = ""
    api_key: str = ""
    organization_id: str = ""
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: LedgerSettings, provider: str | None = None) -> "GatewayConfig":
        return cls(
            provider=provider or settings.provider,
            dedi_publish_url=settings.dedi_publish_url,
            dedi_lookup_url=settings.dedi_lookup_url,
            mark_studio_url=settings.mark_studio_url,
            issuer_agent_url=settings.issuer_agent_url,
            verification_url=settings.verification_url,
            wallet_url=settings.wallet_url,
            digilocker_url=settings.digilocker_url,
            network_url=settings.cord_network_url,
            issuer_did=settings.cord_issuer_did,
            api_key=settings.api_key,
            organization_id=settings.organization_id,
            timeout_seconds=settings.gateway_timeout_seconds,
        )


class DIDGateway(ABC):
    """Creates and resolves worker DIDs on the identity network."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def create_did(self, details: WorkerDetails) -> DIDCreationResult:
        """Create (or look up) the DID for a worker identity.

        Raises:
            GatewayError: network or service failure
        """
        pass

    @abstractmethod
    async def resolve_did(self, did: str) -> dict[str, Any]:
        """Resolve a DID to its document.

        Raises:
            DIDNotFound: the network has no such DID
            GatewayError: network or service failure
        """
        pass

    @abstractmethod
    async def is_anchored(self, did: str) -> bool:
        """Whether the network confirms the DID is anchored."""
        pass


class CredentialGateway(ABC):
    """Issues, verifies and revokes Verifiable Credentials."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def register_schema(self, credential_type: CredentialType) -> str:
        """Register the credential schema for a kind; returns the schema id."""
        pass

    @abstractmethod
    async def issue_credential(
        self,
        subject_id: str,
        credential_type: CredentialType,
        issuer: str,
        metadata: CredentialMetadata,
    ) -> CredentialIssuanceResult:
        """Issue a credential for ``subject_id``.

        Raises:
            GatewayError: network failure, or REJECTED when the issuer refuses
        """
        pass

    @abstractmethod
    async def verify_credential(
        self,
        vc_url: str,
        check_revocation: bool = True,
        check_expiry: bool = True,
    ) -> bool:
        """Verify an issued credential; False means it failed verification.

        Raises:
            GatewayError: the outcome is unknown
        """
        pass

    @abstractmethod
    async def revoke_credential(self, credential_id: str, reason: str = "") -> None:
        pass
