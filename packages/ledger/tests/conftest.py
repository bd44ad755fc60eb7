"""Shared fixtures for ledger tests."""

from datetime import datetime, timedelta

import pytest

from upandup_core.config import LedgerSettings
from upandup_core.events import Event, EventBus
from upandup_core.models import (
    CredentialType,
    IssuerType,
    OnboardingStatus,
    Partner,
    PartnershipStatus,
    Worker,
)
from upandup_core.repositories import create_in_memory_store
from upandup_gateways.base import CredentialMetadata, WorkerDetails
from upandup_gateways.memory import InMemoryIdentityNetwork
from upandup_ledger.ledger import CredentialLedger
from upandup_ledger.requests import CredentialRequest


class FakeClock:
    """Settable clock injected into the ledger."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 1, 12, 0, 0))


@pytest.fixture
def network():
    return InMemoryIdentityNetwork()


@pytest.fixture
def store():
    return create_in_memory_store()


@pytest.fixture
def settings():
    return LedgerSettings(provider="memory", gateway_timeout_seconds=1.0, lock_wait_seconds=5.0)


@pytest.fixture
def events():
    """Bus plus the list of every event published on it."""
    bus = EventBus()
    published: list[Event] = []

    async def record(event: Event) -> None:
        published.append(event)

    for event_type in Event.__subclasses__():
        bus.subscribe(event_type, record)
    return bus, published


@pytest.fixture
def ledger(store, network, settings, events, clock):
    bus, _ = events
    return CredentialLedger(store, network, network, settings=settings, event_bus=bus, clock=clock)


@pytest.fixture
def seed_partner(store):
    async def _seed(status: PartnershipStatus = PartnershipStatus.ACTIVE) -> Partner:
        partner = Partner(name="Acme Logistics", email="ops@acme.test", partnership_status=status)
        await store.partners.save(partner)
        return partner

    return _seed


@pytest.fixture
def seed_worker(store, network, clock):
    """Store a worker directly, optionally with an anchored DID."""

    async def _seed(
        status: OnboardingStatus = OnboardingStatus.REGISTERED,
        registered_days_ago: float | None = 10,
        with_did: bool = False,
        partner_id: str | None = None,
        phone: str = "9000000001",
    ) -> Worker:
        did = None
        if with_did:
            created = await network.create_did(WorkerDetails(name="Asha", phone=phone))
            did = created.did
        registered_at = None
        if registered_days_ago is not None and status != OnboardingStatus.INVITED:
            registered_at = clock.now - timedelta(days=registered_days_ago)
        worker = Worker(
            partner_id=partner_id,
            name="Asha",
            phone=phone,
            did=did,
            onboarding_status=status,
            registered_at=registered_at,
        )
        await store.workers.save(worker)
        return worker

    return _seed


@pytest.fixture
def make_request():
    def _make(
        credential_type: CredentialType = CredentialType.EMPLOYER_APPRECIATION,
        issuer_type: IssuerType = IssuerType.EMPLOYER,
        issuer: str = "Acme Logistics",
        expiry_date: datetime | None = None,
        document_hash: str = "sha256:abc",
    ) -> CredentialRequest:
        return CredentialRequest(
            credential_type=credential_type,
            issuer_type=issuer_type,
            issuer=issuer,
            metadata=CredentialMetadata(
                document_hash=document_hash,
                issue_date=datetime(2024, 1, 15),
                expiry_date=expiry_date,
            ),
        )

    return _make
