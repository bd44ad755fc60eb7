"""CORD network gateway client.

DIDs live on the CORD network REST API; credentials are issued and
verified through Mark Studio.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import structlog

from upandup_core.errors import DIDNotFound, GatewayError, GatewayErrorKind
from upandup_core.models import AnchorStatus, CredentialType, parse_iso_datetime, utcnow
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
from upandup_gateways.client import HTTPGatewayClient

logger = structlog.get_logger()

CREDENTIAL_CONTEXT = [
    "https://www.w3.org/2018/credentials/v1",
    "https://cord.network/contexts/v1",
]


@dataclass
class OperationStatus:
    """State of a submitted blockchain transaction."""

    operation_id: str
    status: AnchorStatus
    transaction_hash: str | None = None
    block_number: int | None = None


class CordClient(HTTPGatewayClient, DIDGateway, CredentialGateway):
    """Identity network client for the CORD chain and Mark Studio."""

    @property
    def provider_name(self) -> str:
        return "cord"

    def _parse_anchor_status(self, value: Any) -> AnchorStatus:
        try:
            return AnchorStatus(value)
        except ValueError:
            return AnchorStatus.PENDING

    async def create_did(self, details: WorkerDetails) -> DIDCreationResult:
        payload = {
            "workerDetails": details.model_dump(exclude_none=True),
            "issuer": self.config.issuer_did,
        }
        data = await self._request("POST", f"{self.config.network_url}/dids", json=payload)
        did = data.get("did")
        if not did:
            raise GatewayError(GatewayErrorKind.UNAVAILABLE, "CORD network returned no DID")

        result = DIDCreationResult(
            did=did,
            anchor_status=self._parse_anchor_status(data.get("blockchainStatus")),
            did_document=data.get("didDocument", {}),
            transaction_ref=data.get("transactionHash"),
            block_number=data.get("blockNumber"),
            created_at=parse_iso_datetime(data.get("createdAt"), default=utcnow()),
        )
        logger.info("Created CORD DID", did=did, anchor_status=result.anchor_status.value)
        return result

    async def resolve_did(self, did: str) -> dict[str, Any]:
        return await self._request(
            "GET", f"{self.config.network_url}/dids/{quote(did, safe='')}", not_found=did
        )

    async def is_anchored(self, did: str) -> bool:
        try:
            data = await self.resolve_did(did)
        except DIDNotFound:
            return False
        return (
            data.get("didDocument", {}).get("id") == did
            and data.get("blockchainStatus") == AnchorStatus.CONFIRMED.value
        )

    async def get_operation_status(self, operation_id: str) -> OperationStatus:
        data = await self._request(
            "GET", f"{self.config.network_url}/operations/{quote(operation_id, safe='')}"
        )
        return OperationStatus(
            operation_id=operation_id,
            status=self._parse_anchor_status(data.get("status")),
            transaction_hash=data.get("transactionHash"),
            block_number=data.get("blockNumber"),
        )

    async def issue_credential(
        self,
        subject_id: str,
        credential_type: CredentialType,
        issuer: str,
        metadata: CredentialMetadata,
    ) -> CredentialIssuanceResult:
        credential_type = CredentialType(credential_type)
        schema_id = await self.register_schema(credential_type)
        payload = {
            "schemaId": schema_id,
            "credential": {
                "@context": CREDENTIAL_CONTEXT,
                "type": ["VerifiableCredential", vc_type_for(credential_type)],
                "issuer": issuer or self.config.issuer_did,
                "issuanceDate": metadata.issue_date.isoformat(),
                "expirationDate": (
                    metadata.expiry_date.isoformat() if metadata.expiry_date else None
                ),
                "credentialSubject": {
                    "id": subject_id,
                    "documentType": credential_type.value,
                    "documentUrl": metadata.document_url,
                    "documentHash": metadata.document_hash,
                    **metadata.additional_data,
                },
            },
        }
        data = await self._request("POST", f"{self.config.mark_studio_url}/credentials", json=payload)

        raw_status = data.get("status", IssuanceStatus.PENDING.value)
        try:
            status = IssuanceStatus(raw_status)
        except ValueError:
            raise GatewayError(
                GatewayErrorKind.REJECTED, f"Mark Studio returned credential status {raw_status!r}"
            )
        credential_id = data.get("credentialId")
        if not credential_id:
            raise GatewayError(GatewayErrorKind.UNAVAILABLE, "Mark Studio returned no credential id")
        return CredentialIssuanceResult(
            credential_id=credential_id,
            status=status,
            anchor_status=self._parse_anchor_status(data.get("blockchainStatus")),
            vc_url=data.get("vcUrl"),
            verifiable_credential=data.get("verifiableCredential", {}),
        )

    async def verify_credential(
        self,
        vc_url: str,
        check_revocation: bool = True,
        check_expiry: bool = True,
    ) -> bool:
        payload = {
            "vcUrl": vc_url,
            "checkRevocation": check_revocation,
            "checkExpiry": check_expiry,
        }
        data = await self._request(
            "POST", f"{self.config.mark_studio_url}/credentials/verify", json=payload
        )
        return data.get("verified") is True

    async def revoke_credential(self, credential_id: str, reason: str = "") -> None:
        await self._request(
            "POST",
            f"{self.config.mark_studio_url}/credentials/{quote(credential_id, safe='')}/revoke",
            json={"reason": reason},
        )
        logger.info("Revoked credential", credential_id=credential_id, provider="cord")
