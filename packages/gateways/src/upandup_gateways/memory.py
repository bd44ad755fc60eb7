"""In-process identity network for tests and local development."""

import asyncio
from collections import Counter
from dataclasses import dataclass
from typing import Any

from upandup_core.errors import DIDNotFound, GatewayError, GatewayErrorKind
from upandup_core.models import AnchorStatus, CredentialType
from upandup_gateways.base import (
    CredentialGateway,
    CredentialIssuanceResult,
    CredentialMetadata,
    DIDCreationResult,
    DIDGateway,
    IssuanceStatus,
    WorkerDetails,
    vc_type_for,
)


@dataclass
class IssuedCredential:
    credential_id: str
    subject_id: str
    credential_type: CredentialType
    vc_url: str | None
    revoked: bool = False
    revocation_reason: str = ""


class InMemoryIdentityNetwork(DIDGateway, CredentialGateway):
    """Deterministic identity network kept in memory.

    Behaviour is steered through public attributes:

        network = InMemoryIdentityNetwork()
        network.unavailable = True          # every call raises UNAVAILABLE
        network.reject_issuance = True      # issue_credential raises REJECTED
        network.did_anchor_status = AnchorStatus.PENDING
        network.verification_results[vc_url] = False

    ``latency`` adds an ``asyncio.sleep`` to every call so tests can
    interleave concurrent operations.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.unavailable = False
        self.reject_issuance = False
        self.did_anchor_status = AnchorStatus.CONFIRMED
        self.issuance_status = IssuanceStatus.ISSUED
        self.credential_anchor_status = AnchorStatus.CONFIRMED
        self.verification_results: dict[str, bool] = {}
        self.dids: dict[str, dict[str, Any]] = {}
        self.anchored: set[str] = set()
        self.credentials: dict[str, IssuedCredential] = {}
        self.schemas: dict[CredentialType, str] = {}
        self.calls: Counter[str] = Counter()
        self._sequence = 0

    @property
    def provider_name(self) -> str:
        return "memory"

    def _next(self) -> int:
        self._sequence += 1
        return self._sequence

    async def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.unavailable:
            raise GatewayError(GatewayErrorKind.UNAVAILABLE, f"{operation}: network unavailable")

    async def create_did(self, details: WorkerDetails) -> DIDCreationResult:
        await self._enter("create_did")
        did = f"did:memory:{self._next():06d}"
        document = {"id": did, "controller": did, "subject": {"name": details.name}}
        self.dids[did] = document
        if self.did_anchor_status == AnchorStatus.CONFIRMED:
            self.anchored.add(did)
        return DIDCreationResult(
            did=did,
            anchor_status=self.did_anchor_status,
            did_document=document,
            transaction_ref=f"tx-{self._sequence:06d}",
        )

    async def resolve_did(self, did: str) -> dict[str, Any]:
        await self._enter("resolve_did")
        if did not in self.dids:
            raise DIDNotFound(did)
        return {"didDocument": self.dids[did]}

    async def is_anchored(self, did: str) -> bool:
        await self._enter("is_anchored")
        return did in self.anchored

    def confirm_anchor(self, did: str) -> None:
        """Mark a previously pending DID as anchored."""
        if did not in self.dids:
            raise DIDNotFound(did)
        self.anchored.add(did)

    async def register_schema(self, credential_type: CredentialType) -> str:
        await self._enter("register_schema")
        credential_type = CredentialType(credential_type)
        if credential_type not in self.schemas:
            self.schemas[credential_type] = f"schema-{credential_type.value}"
        return self.schemas[credential_type]

    async def issue_credential(
        self,
        subject_id: str,
        credential_type: CredentialType,
        issuer: str,
        metadata: CredentialMetadata,
    ) -> CredentialIssuanceResult:
        await self._enter("issue_credential")
        if self.reject_issuance:
            raise GatewayError(GatewayErrorKind.REJECTED, "Issuer refused the credential", 422)

        credential_type = CredentialType(credential_type)
        credential_id = f"vc-{self._next():06d}"
        issued = self.issuance_status == IssuanceStatus.ISSUED
        vc_url = f"memory://credentials/{credential_id}" if issued else None
        self.credentials[credential_id] = IssuedCredential(
            credential_id=credential_id,
            subject_id=subject_id,
            credential_type=credential_type,
            vc_url=vc_url,
        )
        return CredentialIssuanceResult(
            credential_id=credential_id,
            status=self.issuance_status,
            anchor_status=self.credential_anchor_status,
            vc_url=vc_url,
            verifiable_credential={
                "type": ["VerifiableCredential", vc_type_for(credential_type)],
                "issuer": issuer,
                "credentialSubject": {
                    "id": subject_id,
                    "documentHash": metadata.document_hash,
                },
            },
        )

    async def verify_credential(
        self,
        vc_url: str,
        check_revocation: bool = True,
        check_expiry: bool = True,
    ) -> bool:
        await self._enter("verify_credential")
        if vc_url in self.verification_results:
            return self.verification_results[vc_url]
        issued = next((c for c in self.credentials.values() if c.vc_url == vc_url), None)
        if issued is None:
            return False
        return not (check_revocation and issued.revoked)

    async def revoke_credential(self, credential_id: str, reason: str = "") -> None:
        await self._enter("revoke_credential")
        issued = self.credentials.get(credential_id)
        if issued is None:
            raise GatewayError(GatewayErrorKind.REJECTED, f"Unknown credential {credential_id}", 404)
        issued.revoked = True
        issued.revocation_reason = reason
