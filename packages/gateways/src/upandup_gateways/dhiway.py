"""Dhiway gateway client.

DIDs are published through the DeDi publish service and resolved through
DeDi lookup. Credentials are issued by the issuer agent against Mark
Studio schemas and checked by the verification service. Government
documents can also be checked through DigiLocker, and workers get a
wallet for holding their credentials.
"""

import secrets
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


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


class DhiwayClient(HTTPGatewayClient, DIDGateway, CredentialGateway):
    """Identity network client for the Dhiway service suite."""

    @property
    def provider_name(self) -> str:
        return "dhiway"

    def _new_did(self) -> str:
        return f"did:dhiway:{secrets.token_hex(16)}"

    def _did_document(self, did: str) -> dict[str, Any]:
        return {
            "@context": ["https://www.w3.org/ns/did/v1"],
            "id": did,
            "controller": did,
            "verificationMethod": [
                {
                    "id": f"{did}#key-1",
                    "type": "Ed25519VerificationKey2020",
                    "controller": did,
                }
            ],
            "authentication": [f"{did}#key-1"],
            "created": utcnow().isoformat() + "Z",
        }

    def _parse_anchor_status(self, data: dict[str, Any]) -> AnchorStatus:
        if data.get("status") == "failed":
            return AnchorStatus.FAILED
        if data.get("anchored"):
            return AnchorStatus.CONFIRMED
        return AnchorStatus.PENDING

    async def create_did(self, details: WorkerDetails) -> DIDCreationResult:
        did = self._new_did()
        document = self._did_document(did)
        payload = {
            "didDocument": document,
            "subject": {"name": details.name, "phone": details.phone},
            "options": {"anchor": True, "publish": True},
        }
        data = await self._request("POST", f"{self.config.dedi_publish_url}/did/publish", json=payload)

        did = data.get("did", did)
        result = DIDCreationResult(
            did=did,
            anchor_status=self._parse_anchor_status(data),
            did_document=data.get("didDocument", document),
            transaction_ref=data.get("transactionId"),
            block_number=data.get("blockNumber"),
            created_at=parse_iso_datetime(data.get("createdAt"), default=utcnow()),
        )
        logger.info("Published DID", did=did, anchor_status=result.anchor_status.value)
        return result

    async def resolve_did(self, did: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self.config.dedi_lookup_url}/did/resolve/{quote(did, safe='')}",
            not_found=did,
        )

    async def is_anchored(self, did: str) -> bool:
        try:
            data = await self.resolve_did(did)
        except DIDNotFound:
            return False
        return data.get("didDocument", {}).get("id") == did

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
            "type": ["VerifiableCredential", vc_type_for(credential_type)],
            "credentialSubject": {
                "id": subject_id,
                "documentType": credential_type.value,
                "documentUrl": metadata.document_url,
                "documentHash": metadata.document_hash,
                "issueDate": _iso(metadata.issue_date),
                "expiryDate": _iso(metadata.expiry_date),
                **metadata.additional_data,
            },
            "issuer": issuer,
            "options": {"proofType": "Ed25519Signature2020"},
        }
        data = await self._request(
            "POST", f"{self.config.issuer_agent_url}/credentials/issue", json=payload
        )
        return self._parse_issuance(data)

    def _parse_issuance(self, data: dict[str, Any]) -> CredentialIssuanceResult:
        raw_status = data.get("status", "issued")
        try:
            status = IssuanceStatus(raw_status)
        except ValueError:
            raise GatewayError(
                GatewayErrorKind.REJECTED, f"Issuer returned credential status {raw_status!r}"
            )
        credential_id = data.get("credentialId") or data.get("id")
        if not credential_id:
            raise GatewayError(GatewayErrorKind.UNAVAILABLE, "Issuer returned no credential id")
        return CredentialIssuanceResult(
            credential_id=credential_id,
            status=status,
            anchor_status=self._parse_anchor_status(data),
            vc_url=data.get("credentialUrl"),
            verifiable_credential=data.get("credential", {}),
        )

    async def verify_credential(
        self,
        vc_url: str,
        check_revocation: bool = True,
        check_expiry: bool = True,
    ) -> bool:
        payload = {
            "credentialUrl": vc_url,
            "verificationMethod": "comprehensive",
            "checkRevocation": check_revocation,
            "checkExpiry": check_expiry,
        }
        data = await self._request("POST", f"{self.config.verification_url}/verify", json=payload)
        verified = data.get("verified") is True
        if not verified:
            logger.info("Credential failed verification", vc_url=vc_url, errors=data.get("errors"))
        return verified

    async def revoke_credential(self, credential_id: str, reason: str = "") -> None:
        await self._request(
            "POST",
            f"{self.config.issuer_agent_url}/credentials/{quote(credential_id, safe='')}/revoke",
            json={"reason": reason},
        )
        logger.info("Revoked credential", credential_id=credential_id)

    async def verify_with_digilocker(
        self, document_type: str, aadhaar_number: str | None = None
    ) -> dict[str, Any]:
        """Verify a government document through the DigiLocker issuer agent.

        The worker's consent is asserted on the request; the Aadhaar number
        is optional and never logged.
        """
        payload: dict[str, Any] = {
            "requestId": secrets.token_hex(8),
            "documentType": document_type,
            "consent": True,
        }
        if aadhaar_number:
            payload["aadhaarNumber"] = aadhaar_number
        data = await self._request("POST", f"{self.config.digilocker_url}/verify", json=payload)
        logger.info(
            "DigiLocker verification completed",
            request_id=payload["requestId"],
            document_type=document_type,
            verified=data.get("verified"),
        )
        return data

    async def create_wallet(self, worker_id: str) -> dict[str, Any]:
        """Create a digital identity wallet owned by ``worker_id``."""
        payload = {
            "ownerId": worker_id,
            "walletType": "digital_identity",
            "features": ["credential_storage", "verification", "sharing"],
        }
        data = await self._request("POST", f"{self.config.wallet_url}/wallets", json=payload)
        logger.info("Created wallet", worker_id=worker_id, wallet_id=data.get("walletId") or data.get("id"))
        return data
