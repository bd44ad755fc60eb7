"""Tests for credential revalidation and expiry."""

import asyncio
from datetime import datetime

import pytest

from upandup_core.errors import CredentialErrorKind
from upandup_core.models import OnboardingStatus, VerificationStatus
from upandup_ledger.revalidation import CredentialRevalidator


async def verified_credential(ledger, worker, request):
    credential = (await ledger.request_credential(worker.id, request)).unwrap()
    return (await ledger.verify_credential(credential.id)).unwrap()


class TestRevalidateCredential:
    """Tests for CredentialLedger.revalidate_credential."""

    @pytest.mark.asyncio
    async def test_still_valid(self, ledger, store, seed_worker, make_request):
        worker = await seed_worker()
        credential = await verified_credential(ledger, worker, make_request())

        result = await ledger.revalidate_credential(credential.id)

        assert result.unwrap().verification_status == VerificationStatus.VERIFIED
        assert (await store.trust_scores.get_for_worker(worker.id)).version == 1

    @pytest.mark.asyncio
    async def test_expiry_date_reached(self, ledger, store, seed_worker, make_request, clock):
        worker = await seed_worker()
        credential = await verified_credential(
            ledger, worker, make_request(expiry_date=datetime(2024, 7, 1))
        )
        clock.now = datetime(2024, 7, 2)

        result = await ledger.revalidate_credential(credential.id)

        expired = result.unwrap()
        assert expired.verification_status == VerificationStatus.EXPIRED
        assert expired.status_reason == "Credential reached its expiry date"
        score = await store.trust_scores.get_for_worker(worker.id)
        assert score.version == 2
        assert score.verified_credentials == 0

    @pytest.mark.asyncio
    async def test_revoked_credential_expires(self, ledger, network, store, seed_worker, make_request):
        """A credential that fails re-verification is expired, never ignored."""
        worker = await seed_worker()
        credential = await verified_credential(ledger, worker, make_request())
        await network.revoke_credential(credential.external_id, reason="fraud")

        result = await ledger.revalidate_credential(credential.id)

        assert result.unwrap().verification_status == VerificationStatus.EXPIRED
        assert result.unwrap().status_reason == "Re-verification failed"

    @pytest.mark.asyncio
    async def test_gateway_outage_keeps_verified(self, ledger, network, store, seed_worker, make_request):
        worker = await seed_worker()
        credential = await verified_credential(ledger, worker, make_request())
        network.unavailable = True

        result = await ledger.revalidate_credential(credential.id)

        assert result.error.kind == CredentialErrorKind.GATEWAY_UNAVAILABLE
        stored = await store.credentials.get(credential.id)
        assert stored.verification_status == VerificationStatus.VERIFIED

    @pytest.mark.asyncio
    async def test_expired_is_terminal(self, ledger, seed_worker, make_request, clock):
        worker = await seed_worker()
        credential = await verified_credential(
            ledger, worker, make_request(expiry_date=datetime(2024, 7, 1))
        )
        clock.now = datetime(2024, 8, 1)
        await ledger.revalidate_credential(credential.id)

        again = await ledger.revalidate_credential(credential.id)
        verify = await ledger.verify_credential(credential.id)

        assert again.error.kind == CredentialErrorKind.ALREADY_TERMINAL
        assert verify.error.kind == CredentialErrorKind.ALREADY_TERMINAL

    @pytest.mark.asyncio
    async def test_pending_is_not_revalidated(self, ledger, seed_worker, make_request):
        worker = await seed_worker()
        credential = (await ledger.request_credential(worker.id, make_request())).unwrap()

        result = await ledger.revalidate_credential(credential.id)

        assert result.error.kind == CredentialErrorKind.INVALID_INPUT


class TestWorkerRevalidation:
    """Bulk expiry and revalidation of a worker's credentials."""

    @pytest.mark.asyncio
    async def test_expire_due_credentials(self, ledger, network, store, seed_worker, make_request, clock):
        worker = await seed_worker(with_did=True)
        due = await verified_credential(ledger, worker, make_request(expiry_date=datetime(2024, 7, 1)))
        lasting = await verified_credential(
            ledger, worker, make_request(document_hash="h2", expiry_date=datetime(2030, 1, 1))
        )
        verify_calls = network.calls["verify_credential"]
        clock.now = datetime(2024, 7, 15)

        result = await ledger.expire_due_credentials(worker.id)

        assert [c.id for c in result.unwrap()] == [due.id]
        assert (await store.credentials.get(lasting.id)).verification_status == VerificationStatus.VERIFIED
        assert network.calls["verify_credential"] == verify_calls

    @pytest.mark.asyncio
    async def test_expiry_does_not_demote_worker(self, ledger, store, seed_worker, make_request, clock):
        """Worker status has no back-transitions."""
        worker = await seed_worker()
        await verified_credential(ledger, worker, make_request(expiry_date=datetime(2024, 7, 1)))
        assert (await store.workers.get(worker.id)).onboarding_status == OnboardingStatus.ACTIVE
        clock.now = datetime(2024, 7, 15)

        await ledger.expire_due_credentials(worker.id)

        assert (await store.workers.get(worker.id)).onboarding_status == OnboardingStatus.ACTIVE
        score = await store.trust_scores.get_for_worker(worker.id)
        assert score.employer_verified is False

    @pytest.mark.asyncio
    async def test_revalidate_worker(self, ledger, network, seed_worker, make_request):
        worker = await seed_worker()
        revoked = await verified_credential(ledger, worker, make_request())
        kept = await verified_credential(ledger, worker, make_request(document_hash="h2"))
        await network.revoke_credential(revoked.external_id)

        result = await ledger.revalidate_worker(worker.id)

        assert [c.id for c in result.unwrap()] == [revoked.id]
        assert kept.id not in [c.id for c in result.unwrap()]

    @pytest.mark.asyncio
    async def test_revalidate_worker_skips_unreachable(self, ledger, network, store, seed_worker, make_request):
        worker = await seed_worker()
        credential = await verified_credential(ledger, worker, make_request())
        network.unavailable = True

        result = await ledger.revalidate_worker(worker.id)

        assert result.unwrap() == []
        assert (await store.credentials.get(credential.id)).verification_status == VerificationStatus.VERIFIED


class TestCredentialRevalidator:
    """Tests for the background revalidator."""

    @pytest.mark.asyncio
    async def test_run_once(self, ledger, network, seed_worker, make_request):
        one = await seed_worker(phone="9000000001")
        two = await seed_worker(phone="9000000002")
        revoked = await verified_credential(ledger, one, make_request())
        await verified_credential(ledger, two, make_request())
        await network.revoke_credential(revoked.external_id)

        expired = await CredentialRevalidator(ledger).run_once()

        assert expired == {one.id: 1, two.id: 0}

    @pytest.mark.asyncio
    async def test_start_and_stop(self, ledger, network, store, seed_worker, make_request):
        worker = await seed_worker()
        credential = await verified_credential(ledger, worker, make_request())
        await network.revoke_credential(credential.external_id)

        revalidator = CredentialRevalidator(ledger, interval_seconds=60)
        revalidator.start()
        assert revalidator.running
        for _ in range(50):
            stored = await store.credentials.get(credential.id)
            if stored.verification_status == VerificationStatus.EXPIRED:
                break
            await asyncio.sleep(0.01)
        await revalidator.stop()

        assert not revalidator.running
        assert (await store.credentials.get(credential.id)).verification_status == VerificationStatus.EXPIRED

    def test_interval_defaults_to_settings(self, ledger):
        assert CredentialRevalidator(ledger).interval_seconds == ledger.settings.revalidation_interval_seconds
