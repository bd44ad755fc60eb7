"""Tests for the in-memory identity network and the gateway factory."""

from datetime import datetime

import pytest

from upandup_core.config import LedgerSettings
from upandup_core.errors import DIDNotFound, GatewayError, GatewayErrorKind
from upandup_core.models import AnchorStatus, CredentialType
from upandup_gateways.base import (
    CredentialMetadata,
    IssuanceStatus,
    WorkerDetails,
    vc_type_for,
)
from upandup_gateways.cord import CordClient
from upandup_gateways.dhiway import DhiwayClient
from upandup_gateways.factory import create_gateways
from upandup_gateways.memory import InMemoryIdentityNetwork


def metadata() -> CredentialMetadata:
    return CredentialMetadata(document_hash="h", issue_date=datetime(2024, 1, 1))


class TestInMemoryIdentityNetwork:
    """Tests for InMemoryIdentityNetwork."""

    @pytest.mark.asyncio
    async def test_create_and_resolve_did(self):
        network = InMemoryIdentityNetwork()
        result = await network.create_did(WorkerDetails(name="Asha", phone="1"))

        assert result.did == "did:memory:000001"
        assert result.anchor_status == AnchorStatus.CONFIRMED
        assert await network.is_anchored(result.did)
        document = await network.resolve_did(result.did)
        assert document["didDocument"]["id"] == result.did

    @pytest.mark.asyncio
    async def test_pending_anchor(self):
        network = InMemoryIdentityNetwork()
        network.did_anchor_status = AnchorStatus.PENDING
        result = await network.create_did(WorkerDetails(name="Asha", phone="1"))

        assert not await network.is_anchored(result.did)
        network.confirm_anchor(result.did)
        assert await network.is_anchored(result.did)

    @pytest.mark.asyncio
    async def test_resolve_unknown(self):
        with pytest.raises(DIDNotFound):
            await InMemoryIdentityNetwork().resolve_did("did:memory:404")

    @pytest.mark.asyncio
    async def test_unavailable(self):
        network = InMemoryIdentityNetwork()
        network.unavailable = True
        with pytest.raises(GatewayError) as exc_info:
            await network.create_did(WorkerDetails(name="Asha", phone="1"))
        assert exc_info.value.kind == GatewayErrorKind.UNAVAILABLE
        assert network.calls["create_did"] == 1

    @pytest.mark.asyncio
    async def test_issue_verify_revoke(self):
        network = InMemoryIdentityNetwork()
        issued = await network.issue_credential(
            "did:memory:000001", CredentialType.DEGREE, "University", metadata()
        )

        assert issued.status == IssuanceStatus.ISSUED
        assert issued.vc_url is not None
        assert await network.verify_credential(issued.vc_url)

        await network.revoke_credential(issued.credential_id, reason="fraud")
        assert not await network.verify_credential(issued.vc_url)
        assert await network.verify_credential(issued.vc_url, check_revocation=False)

    @pytest.mark.asyncio
    async def test_reject_issuance(self):
        network = InMemoryIdentityNetwork()
        network.reject_issuance = True
        with pytest.raises(GatewayError) as exc_info:
            await network.issue_credential("did:x", CredentialType.DEGREE, "University", metadata())
        assert exc_info.value.kind == GatewayErrorKind.REJECTED

    @pytest.mark.asyncio
    async def test_verification_override(self):
        network = InMemoryIdentityNetwork()
        network.verification_results["memory://credentials/forged"] = False
        assert not await network.verify_credential("memory://credentials/forged")
        assert not await network.verify_credential("memory://credentials/unknown")


class TestCredentialTypes:
    def test_vc_type_mapping(self):
        assert vc_type_for(CredentialType.VOTER_ID) == "VoterIdCredential"
        assert vc_type_for(CredentialType.MARKSHEET_12TH) == "EducationCredential"
        assert vc_type_for("employer-appreciation") == "EndorsementCredential"
        assert vc_type_for("birth-certificate") == "GenericCredential"


class TestCredentialMetadata:
    def test_expiry_must_follow_issue(self):
        with pytest.raises(ValueError):
            CredentialMetadata(
                document_hash="h",
                issue_date=datetime(2024, 1, 1),
                expiry_date=datetime(2023, 1, 1),
            )

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValueError):
            CredentialMetadata(document_hash="h", issue_date=datetime(2024, 1, 1), color="red")

    def test_blank_hash_rejected(self):
        with pytest.raises(ValueError):
            CredentialMetadata(document_hash="  ", issue_date=datetime(2024, 1, 1))


class TestGatewayFactory:
    """Tests for create_gateways."""

    def test_memory_provider(self):
        did_gateway, credential_gateway = create_gateways(LedgerSettings(), provider="memory")
        assert isinstance(did_gateway, InMemoryIdentityNetwork)
        assert did_gateway is credential_gateway

    def test_dhiway_provider(self):
        settings = LedgerSettings(provider="Dhiway", api_key="k")
        did_gateway, credential_gateway = create_gateways(settings)
        assert isinstance(did_gateway, DhiwayClient)
        assert did_gateway.config.api_key == "k"
        assert did_gateway.config.wallet_url == settings.wallet_url
        assert did_gateway.config.digilocker_url == "https://issuer-agent-digilocker.dhiway.com/api/v1"

    def test_cord_provider(self):
        did_gateway, _ = create_gateways(LedgerSettings(), provider="cord")
        assert isinstance(did_gateway, CordClient)
        assert did_gateway.config.issuer_did == "did:cord:upandup-issuer"

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported identity provider"):
            create_gateways(LedgerSettings(), provider="ethereum")
