"""Repository pattern abstractions for the identity record store.

This module provides repository interfaces and in-memory implementations
for partners, workers, credentials and trust scores. The SQLAlchemy-backed
versions live in ``upandup_core.db.store``.

Every implementation enforces the storage-boundary invariants:
unique (partner_id, phone) per worker, write-once DID and vc_url, legal
status edges only, and one trust score row per worker guarded by an
optimistic version check.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel

from upandup_core.errors import ConcurrencyError, ConcurrencyErrorKind, ConstraintViolation
from upandup_core.models import Credential, Partner, TrustScore, Worker
from upandup_core.transitions import check_credential_update, check_worker_update

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories.

    Entities are never hard-deleted, so there is no delete operation.
    """

    @abstractmethod
    async def get(self, id: str) -> T | None:
        """Get an entity by ID."""
        pass

    @abstractmethod
    async def save(self, entity: T) -> T:
        """Save an entity (create or update)."""
        pass

    @abstractmethod
    async def list(self, **filters: Any) -> list[T]:
        """List entities with optional filters."""
        pass


class PartnerRepository(Repository[Partner]):
    """Repository interface for partner organizations."""


class WorkerRepository(Repository[Worker]):
    """Repository interface for workers."""

    @abstractmethod
    async def get_by_phone(self, partner_id: str | None, phone: str) -> Worker | None:
        """Get the worker registered under a partner with a phone number."""
        pass


class CredentialRepository(Repository[Credential]):
    """Repository interface for credentials."""

    @abstractmethod
    async def list_for_worker(self, worker_id: str) -> list[Credential]:
        """Get every credential row of a worker, oldest first."""
        pass


class TrustScoreRepository(ABC):
    """Repository interface for the per-worker trust score row."""

    @abstractmethod
    async def get_for_worker(self, worker_id: str) -> TrustScore | None:
        pass

    @abstractmethod
    async def upsert(self, score: TrustScore, expected_version: int) -> TrustScore:
        """Write the worker's trust score row.

        ``expected_version`` is the version the caller read (0 when no row
        existed). The stored row gets ``expected_version + 1``; a mismatch
        raises ConcurrencyError.
        """
        pass


# In-memory implementations


class InMemoryRepository(Repository[T]):
    """In-memory implementation of Repository.

    Stores deep copies so that callers holding a model cannot change
    stored state without going through ``save``.
    """

    def __init__(self) -> None:
        self._storage: dict[str, T] = {}

    async def get(self, id: str) -> T | None:
        entity = self._storage.get(str(id))
        return entity.model_copy(deep=True) if entity is not None else None

    async def save(self, entity: T) -> T:
        self._storage[str(entity.id)] = entity.model_copy(deep=True)
        return entity

    async def list(self, **filters: Any) -> list[T]:
        """List entities, applying filters by attribute matching."""
        results = list(self._storage.values())
        for key, value in filters.items():
            results = [
                e for e in results
                if hasattr(e, key) and getattr(e, key) == value
            ]
        return [e.model_copy(deep=True) for e in results]


class InMemoryPartnerRepository(InMemoryRepository[Partner], PartnerRepository):
    """In-memory implementation of PartnerRepository."""


class InMemoryWorkerRepository(InMemoryRepository[Worker], WorkerRepository):
    """In-memory implementation of WorkerRepository."""

    async def get_by_phone(self, partner_id: str | None, phone: str) -> Worker | None:
        for worker in self._storage.values():
            if worker.partner_id == partner_id and worker.phone == phone:
                return worker.model_copy(deep=True)
        return None

    async def save(self, entity: Worker) -> Worker:
        existing = self._storage.get(entity.id)
        if existing is not None:
            check_worker_update(existing, entity)
        clash = await self.get_by_phone(entity.partner_id, entity.phone)
        if clash is not None and clash.id != entity.id:
            raise ConstraintViolation(
                f"Phone {entity.phone} is already registered with partner {entity.partner_id}"
            )
        entity.touch()
        return await super().save(entity)


class InMemoryCredentialRepository(InMemoryRepository[Credential], CredentialRepository):
    """In-memory implementation of CredentialRepository."""

    async def list_for_worker(self, worker_id: str) -> list[Credential]:
        rows = [c for c in self._storage.values() if c.worker_id == worker_id]
        rows.sort(key=lambda c: (c.created_at, c.id))
        return [c.model_copy(deep=True) for c in rows]

    async def save(self, entity: Credential) -> Credential:
        existing = self._storage.get(entity.id)
        if existing is not None:
            check_credential_update(existing, entity)
        entity.touch()
        return await super().save(entity)


class InMemoryTrustScoreRepository(TrustScoreRepository):
    """In-memory implementation of TrustScoreRepository."""

    def __init__(self) -> None:
        self._storage: dict[str, TrustScore] = {}

    async def get_for_worker(self, worker_id: str) -> TrustScore | None:
        row = self._storage.get(worker_id)
        return row.model_copy(deep=True) if row is not None else None

    async def upsert(self, score: TrustScore, expected_version: int) -> TrustScore:
        current = self._storage.get(score.worker_id)
        current_version = current.version if current is not None else 0
        if current_version != expected_version:
            raise ConcurrencyError(
                ConcurrencyErrorKind.VERSION_CONFLICT,
                f"Trust score for {score.worker_id} is at version {current_version}, "
                f"expected {expected_version}",
                worker_id=score.worker_id,
            )
        stored = score.model_copy(
            update={
                "id": current.id if current is not None else score.id,
                "version": expected_version + 1,
            },
            deep=True,
        )
        self._storage[score.worker_id] = stored
        logger.debug(
            "Trust score stored",
            worker_id=score.worker_id,
            version=stored.version,
            score=stored.score,
        )
        return stored.model_copy(deep=True)


@dataclass
class RecordStore:
    """The identity record store: one repository per entity."""

    partners: PartnerRepository
    workers: WorkerRepository
    credentials: CredentialRepository
    trust_scores: TrustScoreRepository


def create_in_memory_store() -> RecordStore:
    """Create a record store backed by in-memory repositories.

    Suitable for tests and development; nothing survives a restart.
    """
    return RecordStore(
        partners=InMemoryPartnerRepository(),
        workers=InMemoryWorkerRepository(),
        credentials=InMemoryCredentialRepository(),
        trust_scores=InMemoryTrustScoreRepository(),
    )
