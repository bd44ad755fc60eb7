"""Credential & trust ledger.

Owns the credential and DID lifecycle of workers and derives their trust
score. Gateways and the record store are injected; every public operation
returns a ``Result`` carrying either the updated record or a
``LedgerError``.

Mutating operations on one worker are serialized through a per-worker
lock. Gateway calls are the only suspension points inside a held lock and
are bounded by ``gateway_timeout_seconds``. Events raised while the lock is
held are queued and published once it is released, so handlers may call
back into the ledger.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Sequence, TypeVar

import structlog
from pydantic import ValidationError

from upandup_core.config import LedgerSettings, ScoringPolicy
from upandup_core.errors import (
    ConstraintViolation,
    CredentialError,
    CredentialErrorKind,
    DIDError,
    DIDErrorKind,
    GatewayError,
    GatewayErrorKind,
    LedgerError,
    PartnerError,
    PartnerErrorKind,
    RecordNotFound,
    WorkerError,
    WorkerErrorKind,
)
from upandup_core.events import (
    CredentialIssued,
    CredentialStatusChanged,
    Event,
    EventBus,
    TrustScoreUpdated,
    WorkerDIDCreated,
    WorkerStatusChanged,
)
from upandup_core.models import (
    AnchorStatus,
    Credential,
    OnboardingStatus,
    Partner,
    PartnershipStatus,
    Result,
    TrustScore,
    VerificationStatus,
    Worker,
    utcnow,
)
from upandup_core.repositories import RecordStore
from upandup_core.transitions import can_transition_partner
from upandup_gateways.base import CredentialGateway, DIDGateway, IssuanceStatus, WorkerDetails
from upandup_ledger.locks import WorkerLockRegistry
from upandup_ledger.requests import (
    CredentialRequest,
    PartnerRegistration,
    WorkerInvitation,
    coerce_request,
    describe_validation_error,
)
from upandup_ledger.scoring import TrustSnapshot, compute_trust_score

logger = structlog.get_logger()

T = TypeVar("T")

Clock = Callable[[], datetime]


class CredentialLedger:
    """Lifecycle operations over partners, workers, credentials and scores.

    Example:
        store = create_in_memory_store()
        network = InMemoryIdentityNetwork()
        ledger = CredentialLedger(store, network, network)

        result = await ledger.request_credential(worker.id, request)
        if result.is_ok:
            await ledger.verify_credential(result.unwrap().id)
    """

    def __init__(
        self,
        store: RecordStore,
        did_gateway: DIDGateway,
        credential_gateway: CredentialGateway,
        settings: LedgerSettings | None = None,
        event_bus: EventBus | None = None,
        clock: Clock = utcnow,
        locks: WorkerLockRegistry | None = None,
    ) -> None:
        self.store = store
        self.did_gateway = did_gateway
        self.credential_gateway = credential_gateway
        self.settings = settings or LedgerSettings()
        self.event_bus = event_bus
        self.clock = clock
        self.locks = locks or WorkerLockRegistry(self.settings.lock_wait_seconds)
        # Events raised under a held lock, keyed by lock key (the worker id)
        self._outboxes: dict[str, list[Event]] = {}

    @property
    def policy(self) -> ScoringPolicy:
        return self.settings.scoring

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call_gateway(self, operation: str, call: Awaitable[T]) -> T:
        """Await a gateway call, turning a timeout into GatewayError(TIMEOUT)."""
        try:
            return await asyncio.wait_for(call, timeout=self.settings.gateway_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Gateway call timed out",
                operation=operation,
                timeout=self.settings.gateway_timeout_seconds,
            )
            raise GatewayError(
                GatewayErrorKind.TIMEOUT,
                f"{operation} did not answer within {self.settings.gateway_timeout_seconds}s",
            )

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key`` and publish the queued events after release."""
        outbox: list[Event] = []
        try:
            async with self.locks.hold(key):
                self._outboxes[key] = outbox
                try:
                    yield
                finally:
                    del self._outboxes[key]
        finally:
            await self._dispatch(outbox)

    async def _publish(self, worker_id: str, *events: Event) -> None:
        outbox = self._outboxes.get(worker_id)
        if outbox is not None:
            outbox.extend(events)
        else:
            await self._dispatch(events)

    async def _dispatch(self, events: Sequence[Event]) -> None:
        if self.event_bus is None:
            return
        for event in events:
            await self.event_bus.publish(event)

    async def _get_worker(self, worker_id: str) -> Worker:
        worker = await self.store.workers.get(worker_id)
        if worker is None:
            raise RecordNotFound("Worker", worker_id)
        return worker

    async def _get_partner(self, partner_id: str) -> Partner:
        partner = await self.store.partners.get(partner_id)
        if partner is None:
            raise RecordNotFound("Partner", partner_id)
        return partner

    async def _get_credential(self, credential_id: str) -> Credential:
        credential = await self.store.credentials.get(credential_id)
        if credential is None:
            raise RecordNotFound("Credential", credential_id)
        return credential

    async def _set_credential_status(
        self,
        credential: Credential,
        status: VerificationStatus,
        reason: str | None = None,
    ) -> Credential:
        previous = credential.verification_status
        credential.verification_status = status
        credential.status_reason = reason
        await self.store.credentials.save(credential)
        logger.info(
            "Credential status changed",
            credential_id=credential.id,
            worker_id=credential.worker_id,
            previous_status=previous.value,
            status=status.value,
            reason=reason,
        )
        await self._publish(
            credential.worker_id,
            CredentialStatusChanged(
                worker_id=credential.worker_id,
                credential_id=credential.id,
                previous_status=previous.value,
                status=status.value,
                reason=reason,
            )
        )
        return credential

    async def _advance_worker(self, worker: Worker, status: OnboardingStatus) -> None:
        previous = worker.onboarding_status
        worker.onboarding_status = status
        await self.store.workers.save(worker)
        logger.info(
            "Worker status advanced",
            worker_id=worker.id,
            previous_status=previous.value,
            status=status.value,
        )
        await self._publish(
            worker.id,
            WorkerStatusChanged(worker_id=worker.id, previous_status=previous.value, status=status.value)
        )

    async def _recompute_after_change(self, worker_id: str) -> None:
        """Recompute inside an already held worker lock.

        The credential change that triggered this is already committed, so
        a failed recompute is logged and left for the next recompute.
        """
        try:
            await self._recompute(worker_id)
        except LedgerError as e:
            logger.warning("Trust score recompute deferred", worker_id=worker_id, error=str(e))

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    async def request_credential(
        self,
        worker_id: str,
        request: CredentialRequest | dict[str, Any],
    ) -> Result[Credential, LedgerError]:
        """Create a pending credential and submit it for issuance.

        The pending row is stored before the gateway is called. When the
        gateway is unavailable the row stays pending without a ``vc_url``
        and ``CredentialError(GATEWAY_UNAVAILABLE)`` is returned; a
        rejection by the issuer or a failed anchor moves it to
        ``rejected``. Nothing is retried.
        """
        try:
            request = coerce_request(CredentialRequest, request)
        except ValidationError as e:
            return Result.err(
                CredentialError(CredentialErrorKind.INVALID_INPUT, describe_validation_error(e))
            )

        try:
            async with self._locked(worker_id):
                return await self._request_credential(worker_id, request)
        except LedgerError as e:
            return Result.err(e)

    async def _request_credential(
        self, worker_id: str, request: CredentialRequest
    ) -> Result[Credential, LedgerError]:
        worker = await self._get_worker(worker_id)
        metadata = request.metadata
        now = self.clock()

        if metadata.expiry_date is not None and metadata.expiry_date <= now:
            return Result.err(
                CredentialError(
                    CredentialErrorKind.INVALID_INPUT,
                    f"Document expired on {metadata.expiry_date.isoformat()}",
                )
            )

        credential = Credential(
            worker_id=worker.id,
            credential_type=request.credential_type,
            issuer_type=request.issuer_type,
            issuer=request.issuer,
            document_hash=metadata.document_hash,
            document_url=metadata.document_url,
            issued_at=metadata.issue_date,
            expires_at=metadata.expiry_date,
            metadata=dict(metadata.additional_data),
        )
        await self.store.credentials.save(credential)
        logger.info(
            "Credential requested",
            credential_id=credential.id,
            worker_id=worker.id,
            credential_type=credential.credential_type.value,
            issuer_type=credential.issuer_type.value,
        )

        subject_id = worker.did or f"urn:upandup:worker:{worker.id}"
        try:
            issuance = await self._call_gateway(
                "issue_credential",
                self.credential_gateway.issue_credential(
                    subject_id, request.credential_type, request.issuer, metadata
                ),
            )
        except GatewayError as e:
            if e.is_unavailable:
                logger.warning(
                    "Credential issuance unavailable",
                    credential_id=credential.id,
                    worker_id=worker.id,
                    kind=e.kind.value,
                )
                return Result.err(
                    CredentialError(
                        CredentialErrorKind.GATEWAY_UNAVAILABLE, e.message, credential_id=credential.id
                    )
                )
            credential = await self._set_credential_status(
                credential, VerificationStatus.REJECTED, reason=e.message or "Issuer rejected the credential"
            )
            return Result.ok(credential)

        credential.external_id = issuance.credential_id
        if issuance.anchor_status == AnchorStatus.FAILED:
            credential = await self._set_credential_status(
                credential, VerificationStatus.REJECTED, reason="Credential anchoring failed"
            )
            return Result.ok(credential)

        if issuance.status == IssuanceStatus.ISSUED and issuance.vc_url:
            credential.vc_url = issuance.vc_url
        await self.store.credentials.save(credential)

        if credential.vc_url is not None:
            logger.info(
                "Credential issued",
                credential_id=credential.id,
                worker_id=worker.id,
                anchor_status=issuance.anchor_status.value,
            )
            await self._publish(
                worker.id,
                CredentialIssued(worker_id=worker.id, credential_id=credential.id, vc_url=credential.vc_url)
            )
        else:
            logger.info(
                "Credential issuance pending",
                credential_id=credential.id,
                worker_id=worker.id,
                external_id=credential.external_id,
            )
        return Result.ok(credential)

    async def verify_credential(self, credential_id: str) -> Result[Credential, LedgerError]:
        """Run the verification pass on a pending credential.

        A passing check verifies the credential and recomputes the trust
        score; a failing one rejects it, as does a credential the issuer
        never confirmed (no ``vc_url``). Credentials that are no longer
        pending are left alone and ``ALREADY_TERMINAL`` is returned.
        """
        try:
            credential = await self._get_credential(credential_id)
            async with self._locked(credential.worker_id):
                return await self._verify_credential(credential_id)
        except LedgerError as e:
            return Result.err(e)

    async def _verify_credential(self, credential_id: str) -> Result[Credential, LedgerError]:
        credential = await self._get_credential(credential_id)

        if credential.verification_status != VerificationStatus.PENDING:
            logger.debug(
                "Verification skipped",
                credential_id=credential.id,
                status=credential.verification_status.value,
            )
            return Result.err(
                CredentialError(
                    CredentialErrorKind.ALREADY_TERMINAL,
                    f"Credential is {credential.verification_status.value}",
                    credential_id=credential.id,
                )
            )
        if credential.vc_url is None:
            # Nothing to check against; the caller re-requests it as a fresh credential.
            credential = await self._set_credential_status(
                credential, VerificationStatus.REJECTED, reason="Credential was never issued"
            )
            return Result.ok(credential)

        try:
            passed = await self._call_gateway(
                "verify_credential", self.credential_gateway.verify_credential(credential.vc_url)
            )
        except GatewayError as e:
            logger.warning(
                "Credential verification unavailable",
                credential_id=credential.id,
                kind=e.kind.value,
            )
            return Result.err(
                CredentialError(
                    CredentialErrorKind.GATEWAY_UNAVAILABLE, e.message, credential_id=credential.id
                )
            )

        if not passed:
            credential = await self._set_credential_status(
                credential, VerificationStatus.REJECTED, reason="Verification failed"
            )
            return Result.ok(credential)

        credential = await self._set_credential_status(credential, VerificationStatus.VERIFIED)
        await self._recompute_after_change(credential.worker_id)
        return Result.ok(credential)

    async def revalidate_credential(self, credential_id: str) -> Result[Credential, LedgerError]:
        """Re-check a verified credential, expiring it if it no longer holds."""
        try:
            credential = await self._get_credential(credential_id)
            async with self._locked(credential.worker_id):
                credential = await self._get_credential(credential_id)
                if credential.verification_status != VerificationStatus.VERIFIED:
                    kind = (
                        CredentialErrorKind.ALREADY_TERMINAL
                        if credential.is_terminal
                        else CredentialErrorKind.INVALID_INPUT
                    )
                    return Result.err(
                        CredentialError(
                            kind,
                            f"Only verified credentials are revalidated, got {credential.verification_status.value}",
                            credential_id=credential.id,
                        )
                    )

                expired = await self._revalidate(credential)
                if expired:
                    await self._recompute_after_change(credential.worker_id)
                return Result.ok(await self._get_credential(credential_id))
        except LedgerError as e:
            return Result.err(e)

    async def _revalidate(self, credential: Credential) -> bool:
        """Expire ``credential`` if due or if re-verification fails.

        Returns:
            True if the credential was expired

        Raises:
            CredentialError: GATEWAY_UNAVAILABLE when the check could not run
        """
        if credential.is_expired_at(self.clock()):
            await self._set_credential_status(
                credential, VerificationStatus.EXPIRED, reason="Credential reached its expiry date"
            )
            return True
        if credential.vc_url is None:
            return False

        try:
            still_valid = await self._call_gateway(
                "verify_credential", self.credential_gateway.verify_credential(credential.vc_url)
            )
        except GatewayError as e:
            raise CredentialError(
                CredentialErrorKind.GATEWAY_UNAVAILABLE, e.message, credential_id=credential.id
            ) from e

        if still_valid:
            return False
        await self._set_credential_status(
            credential, VerificationStatus.EXPIRED, reason="Re-verification failed"
        )
        return True

    async def expire_due_credentials(self, worker_id: str) -> Result[list[Credential], LedgerError]:
        """Expire the worker's verified credentials whose expiry date has passed."""
        try:
            async with self._locked(worker_id):
                await self._get_worker(worker_id)
                now = self.clock()
                expired = []
                for credential in await self.store.credentials.list_for_worker(worker_id):
                    if (
                        credential.verification_status == VerificationStatus.VERIFIED
                        and credential.is_expired_at(now)
                    ):
                        expired.append(
                            await self._set_credential_status(
                                credential,
                                VerificationStatus.EXPIRED,
                                reason="Credential reached its expiry date",
                            )
                        )
                if expired:
                    await self._recompute_after_change(worker_id)
                return Result.ok(expired)
        except LedgerError as e:
            return Result.err(e)

    async def revalidate_worker(self, worker_id: str) -> Result[list[Credential], LedgerError]:
        """Revalidate every verified credential of a worker.

        Credentials whose check cannot run stay verified and are picked up
        on the next pass.

        Returns:
            The credentials that were expired
        """
        try:
            async with self._locked(worker_id):
                await self._get_worker(worker_id)
                expired = []
                for credential in await self.store.credentials.list_for_worker(worker_id):
                    if credential.verification_status != VerificationStatus.VERIFIED:
                        continue
                    try:
                        if await self._revalidate(credential):
                            expired.append(credential)
                    except CredentialError as e:
                        logger.warning(
                            "Revalidation skipped",
                            credential_id=credential.id,
                            worker_id=worker_id,
                            error=str(e),
                        )
                if expired:
                    await self._recompute_after_change(worker_id)
                return Result.ok(expired)
        except LedgerError as e:
            return Result.err(e)

    async def list_credentials(self, worker_id: str) -> Result[list[Credential], LedgerError]:
        try:
            await self._get_worker(worker_id)
            return Result.ok(await self.store.credentials.list_for_worker(worker_id))
        except LedgerError as e:
            return Result.err(e)

    # ------------------------------------------------------------------
    # Trust score
    # ------------------------------------------------------------------

    async def recompute_trust_score(self, worker_id: str) -> Result[TrustScore, LedgerError]:
        """Recompute and store the worker's trust score, advancing their status."""
        try:
            async with self._locked(worker_id):
                return Result.ok(await self._recompute(worker_id))
        except LedgerError as e:
            return Result.err(e)

    async def _recompute(self, worker_id: str) -> TrustScore:
        worker = await self._get_worker(worker_id)
        credentials = await self.store.credentials.list_for_worker(worker_id)

        anchored = False
        if worker.did:
            anchored = await self._call_gateway("is_anchored", self.did_gateway.is_anchored(worker.did))

        as_of = self.clock()
        computation = compute_trust_score(
            TrustSnapshot.capture(worker, credentials, anchored, as_of), self.policy
        )

        existing = await self.store.trust_scores.get_for_worker(worker_id)
        stored = await self.store.trust_scores.upsert(
            TrustScore(
                worker_id=worker_id,
                score=computation.score,
                factors=computation.factors,
                total_credentials=computation.total_credentials,
                verified_credentials=computation.verified_credentials,
                employer_verified=computation.employer_verified,
                government_verified=computation.government_verified,
                blockchain_verified=computation.blockchain_verified,
                credential_types=computation.credential_types,
                last_calculated=as_of,
            ),
            expected_version=existing.version if existing is not None else 0,
        )
        logger.info(
            "Trust score recomputed",
            worker_id=worker_id,
            score=stored.score,
            version=stored.version,
            verified_credentials=stored.verified_credentials,
        )

        if (
            worker.onboarding_status == OnboardingStatus.REGISTERED
            and stored.verified_credentials >= 1
        ):
            await self._advance_worker(worker, OnboardingStatus.VERIFIED)
        if worker.onboarding_status == OnboardingStatus.VERIFIED and stored.employer_verified:
            await self._advance_worker(worker, OnboardingStatus.ACTIVE)

        await self._publish(
            worker_id,
            TrustScoreUpdated(
                worker_id=worker_id,
                score=stored.score,
                version=stored.version,
                factors=stored.factors.to_dict(),
            )
        )
        return stored

    async def get_trust_score(self, worker_id: str) -> Result[TrustScore | None, LedgerError]:
        """The stored trust score, or None if it was never computed."""
        try:
            await self._get_worker(worker_id)
            return Result.ok(await self.store.trust_scores.get_for_worker(worker_id))
        except LedgerError as e:
            return Result.err(e)

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    async def create_worker_did(
        self,
        worker_id: str,
        details: WorkerDetails | dict[str, Any],
    ) -> Result[Worker, LedgerError]:
        """Create the worker's DID on the identity network.

        The DID is written once. A pending or confirmed anchor sets it and
        moves an invited worker to registered; any failure leaves the
        worker unchanged so the caller may retry.
        """
        try:
            details = coerce_request(WorkerDetails, details)
        except ValidationError as e:
            return Result.err(
                WorkerError(WorkerErrorKind.INVALID_INPUT, describe_validation_error(e), worker_id)
            )

        try:
            async with self._locked(worker_id):
                worker = await self._get_worker(worker_id)
                if worker.did is not None:
                    return Result.err(
                        DIDError(DIDErrorKind.ALREADY_SET, f"Worker already has DID {worker.did}", worker_id)
                    )

                try:
                    created = await self._call_gateway("create_did", self.did_gateway.create_did(details))
                except GatewayError as e:
                    kind = DIDErrorKind.GATEWAY_UNAVAILABLE if e.is_unavailable else DIDErrorKind.REJECTED
                    logger.warning("DID creation failed", worker_id=worker_id, kind=e.kind.value)
                    return Result.err(DIDError(kind, e.message, worker_id))

                if created.anchor_status == AnchorStatus.FAILED:
                    logger.warning("DID anchoring failed", worker_id=worker_id, did=created.did)
                    return Result.err(DIDError(DIDErrorKind.REJECTED, "DID anchoring failed", worker_id))

                previous = worker.onboarding_status
                worker.did = created.did
                if previous == OnboardingStatus.INVITED:
                    worker.onboarding_status = OnboardingStatus.REGISTERED
                    worker.registered_at = worker.registered_at or self.clock()
                await self.store.workers.save(worker)

                logger.info(
                    "Worker DID created",
                    worker_id=worker_id,
                    did=created.did,
                    anchor_status=created.anchor_status.value,
                )
                events: list[Event] = [
                    WorkerDIDCreated(
                        worker_id=worker_id, did=created.did, anchor_status=created.anchor_status.value
                    )
                ]
                if worker.onboarding_status != previous:
                    events.append(
                        WorkerStatusChanged(
                            worker_id=worker_id,
                            previous_status=previous.value,
                            status=worker.onboarding_status.value,
                        )
                    )
                await self._publish(worker_id, *events)
                return Result.ok(worker)
        except LedgerError as e:
            return Result.err(e)

    async def invite_worker(
        self,
        partner_id: str,
        name: str,
        phone: str,
        email: str | None = None,
    ) -> Result[Worker, LedgerError]:
        """Invite a worker on behalf of a partner."""
        try:
            invitation = WorkerInvitation(partner_id=partner_id, name=name, phone=phone, email=email)
        except ValidationError as e:
            return Result.err(WorkerError(WorkerErrorKind.INVALID_INPUT, describe_validation_error(e)))

        try:
            partner = await self._get_partner(invitation.partner_id)
            if partner.partnership_status == PartnershipStatus.SUSPENDED:
                return Result.err(
                    WorkerError(WorkerErrorKind.INVALID_INPUT, f"Partner {partner.id} is suspended")
                )
            if await self.store.workers.get_by_phone(partner.id, invitation.phone) is not None:
                return Result.err(
                    WorkerError(
                        WorkerErrorKind.INVALID_INPUT,
                        f"Phone {invitation.phone} is already registered with partner {partner.id}",
                    )
                )

            worker = Worker(
                partner_id=partner.id,
                name=invitation.name,
                phone=invitation.phone,
                email=invitation.email,
            )
            try:
                await self.store.workers.save(worker)
            except ConstraintViolation as e:
                return Result.err(WorkerError(WorkerErrorKind.INVALID_INPUT, e.message, worker.id))

            logger.info("Worker invited", worker_id=worker.id, partner_id=partner.id)
            return Result.ok(worker)
        except LedgerError as e:
            return Result.err(e)

    async def complete_registration(self, worker_id: str) -> Result[Worker, LedgerError]:
        """Record that an invited worker finished registering in the mobile app."""
        try:
            async with self._locked(worker_id):
                worker = await self._get_worker(worker_id)
                if worker.onboarding_status != OnboardingStatus.INVITED:
                    return Result.err(
                        WorkerError(
                            WorkerErrorKind.INVALID_TRANSITION,
                            f"Worker is already {worker.onboarding_status.value}",
                            worker_id,
                        )
                    )
                worker.mobile_app_registered = True
                worker.registered_at = self.clock()
                await self._advance_worker(worker, OnboardingStatus.REGISTERED)
                return Result.ok(worker)
        except LedgerError as e:
            return Result.err(e)

    async def reassign_worker(self, worker_id: str, partner_id: str) -> Result[Worker, LedgerError]:
        """Move a worker to another partner; the onboarding status is kept."""
        try:
            async with self._locked(worker_id):
                worker = await self._get_worker(worker_id)
                partner = await self._get_partner(partner_id)
                if worker.partner_id == partner.id:
                    return Result.ok(worker)

                previous_partner = worker.partner_id
                worker.partner_id = partner.id
                try:
                    await self.store.workers.save(worker)
                except ConstraintViolation as e:
                    return Result.err(WorkerError(WorkerErrorKind.INVALID_INPUT, e.message, worker_id))

                logger.info(
                    "Worker reassigned",
                    worker_id=worker_id,
                    previous_partner_id=previous_partner,
                    partner_id=partner.id,
                )
                return Result.ok(worker)
        except LedgerError as e:
            return Result.err(e)

    # ------------------------------------------------------------------
    # Partners
    # ------------------------------------------------------------------

    async def register_partner(
        self, registration: PartnerRegistration | dict[str, Any]
    ) -> Result[Partner, LedgerError]:
        """Register a partner organization, pending admin approval."""
        try:
            registration = coerce_request(PartnerRegistration, registration)
        except ValidationError as e:
            return Result.err(PartnerError(PartnerErrorKind.INVALID_INPUT, describe_validation_error(e)))

        partner = Partner(**registration.model_dump())
        try:
            await self.store.partners.save(partner)
        except LedgerError as e:
            return Result.err(e)
        logger.info("Partner registered", partner_id=partner.id)
        return Result.ok(partner)

    async def _move_partner(
        self, partner_id: str, status: PartnershipStatus
    ) -> Result[Partner, LedgerError]:
        try:
            async with self._locked(f"partner:{partner_id}"):
                partner = await self._get_partner(partner_id)
                if not can_transition_partner(partner.partnership_status, status):
                    return Result.err(
                        PartnerError(
                            PartnerErrorKind.INVALID_TRANSITION,
                            f"Partner cannot move from {partner.partnership_status.value} to {status.value}",
                            partner_id,
                        )
                    )
                previous = partner.partnership_status
                partner.partnership_status = status
                partner.touch()
                await self.store.partners.save(partner)
                logger.info(
                    "Partner status changed",
                    partner_id=partner_id,
                    previous_status=previous.value,
                    status=status.value,
                )
                return Result.ok(partner)
        except LedgerError as e:
            return Result.err(e)

    async def activate_partner(self, partner_id: str) -> Result[Partner, LedgerError]:
        return await self._move_partner(partner_id, PartnershipStatus.ACTIVE)

    async def suspend_partner(self, partner_id: str) -> Result[Partner, LedgerError]:
        return await self._move_partner(partner_id, PartnershipStatus.SUSPENDED)

    async def complete_partner_onboarding(
        self, partner_id: str, cord_node_id: str | None = None
    ) -> Result[Partner, LedgerError]:
        """Mark an active partner as fully onboarded onto the network."""
        try:
            async with self._locked(f"partner:{partner_id}"):
                partner = await self._get_partner(partner_id)
                if partner.partnership_status != PartnershipStatus.ACTIVE:
                    return Result.err(
                        PartnerError(
                            PartnerErrorKind.INVALID_TRANSITION,
                            f"Partner is {partner.partnership_status.value}, not active",
                            partner_id,
                        )
                    )
                partner.onboarding_completed = True
                if cord_node_id:
                    partner.cord_node_id = cord_node_id
                partner.touch()
                await self.store.partners.save(partner)
                logger.info("Partner onboarding completed", partner_id=partner_id, cord_node_id=cord_node_id)
                return Result.ok(partner)
        except LedgerError as e:
            return Result.err(e)
