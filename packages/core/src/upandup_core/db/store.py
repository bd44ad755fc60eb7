"""SQLAlchemy-backed record store.

Each write runs in its own transaction. Invariant checks compare the row
as currently stored with the incoming model inside that transaction, and
database unique constraints back up the (partner_id, phone) and
one-score-per-worker rules.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from upandup_core.config import LedgerSettings
from upandup_core.db.database import Base, create_engine, create_session_factory, init_db
from upandup_core.db.models import CredentialRecord, PartnerRecord, TrustScoreRecord, WorkerRecord
from upandup_core.errors import ConcurrencyError, ConcurrencyErrorKind, ConstraintViolation
from upandup_core.models import Credential, Partner, TrustScore, TrustScoreFactors, Worker
from upandup_core.repositories import (
    CredentialRepository,
    PartnerRepository,
    RecordStore,
    TrustScoreRepository,
    WorkerRepository,
    create_in_memory_store,
)
from upandup_core.transitions import check_credential_update, check_worker_update

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)
RecordT = TypeVar("RecordT", bound=Base)

# model field name -> mapped attribute name, where they differ
_ATTRIBUTE_NAMES = {"metadata": "metadata_"}


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _to_columns(entity: BaseModel) -> dict[str, Any]:
    return {
        _ATTRIBUTE_NAMES.get(name, name): _column_value(value)
        for name, value in entity.model_dump().items()
    }


class SQLAlchemyRepository(Generic[ModelT, RecordT]):
    """Base repository mapping a pydantic model onto one table."""

    model: type[ModelT]
    record: type[RecordT]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    def _to_model(self, row: RecordT) -> ModelT:
        data = {
            name: getattr(row, _ATTRIBUTE_NAMES.get(name, name))
            for name in self.model.model_fields
        }
        return self.model.model_validate(data)

    def _check_update(self, existing: ModelT, updated: ModelT) -> None:
        """Hook for invariant checks before an existing row is replaced."""

    async def get(self, id: str) -> ModelT | None:
        async with self.session_factory() as session:
            row = await session.get(self.record, str(id))
            return self._to_model(row) if row is not None else None

    async def list(self, **filters: Any) -> list[ModelT]:
        query = select(self.record)
        for key, value in filters.items():
            attribute = _ATTRIBUTE_NAMES.get(key, key)
            if hasattr(self.record, attribute):
                query = query.where(getattr(self.record, attribute) == _column_value(value))
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [self._to_model(row) for row in result.scalars().all()]

    async def save(self, entity: ModelT) -> ModelT:
        if hasattr(entity, "touch"):
            entity.touch()
        columns = _to_columns(entity)
        try:
            async with self.session_factory() as session, session.begin():
                row = await session.get(self.record, columns["id"], with_for_update=True)
                if row is None:
                    session.add(self.record(**columns))
                else:
                    self._check_update(self._to_model(row), entity)
                    for key, value in columns.items():
                        setattr(row, key, value)
        except IntegrityError as e:
            raise ConstraintViolation(
                f"{self.model.__name__} {columns['id']} violates a unique constraint"
            ) from e
        return entity


class SQLAlchemyPartnerRepository(SQLAlchemyRepository[Partner, PartnerRecord], PartnerRepository):
    model = Partner
    record = PartnerRecord


class SQLAlchemyWorkerRepository(SQLAlchemyRepository[Worker, WorkerRecord], WorkerRepository):
    model = Worker
    record = WorkerRecord

    def _check_update(self, existing: Worker, updated: Worker) -> None:
        check_worker_update(existing, updated)

    async def get_by_phone(self, partner_id: str | None, phone: str) -> Worker | None:
        query = select(WorkerRecord).where(WorkerRecord.phone == phone)
        if partner_id is None:
            query = query.where(WorkerRecord.partner_id.is_(None))
        else:
            query = query.where(WorkerRecord.partner_id == partner_id)
        async with self.session_factory() as session:
            row = (await session.execute(query)).scalars().first()
            return self._to_model(row) if row is not None else None

    async def save(self, entity: Worker) -> Worker:
        # NULL partner ids never collide in SQL, so check explicitly.
        clash = await self.get_by_phone(entity.partner_id, entity.phone)
        if clash is not None and clash.id != entity.id:
            raise ConstraintViolation(
                f"Phone {entity.phone} is already registered with partner {entity.partner_id}"
            )
        return await super().save(entity)


class SQLAlchemyCredentialRepository(
    SQLAlchemyRepository[Credential, CredentialRecord], CredentialRepository
):
    model = Credential
    record = CredentialRecord

    def _check_update(self, existing: Credential, updated: Credential) -> None:
        check_credential_update(existing, updated)

    async def list_for_worker(self, worker_id: str) -> list[Credential]:
        query = (
            select(CredentialRecord)
            .where(CredentialRecord.worker_id == worker_id)
            .order_by(CredentialRecord.created_at, CredentialRecord.id)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [self._to_model(row) for row in result.scalars().all()]


class SQLAlchemyTrustScoreRepository(TrustScoreRepository):
    """Trust score rows with an optimistic version check on every write."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_model(row: TrustScoreRecord) -> TrustScore:
        return TrustScore(
            id=row.id,
            worker_id=row.worker_id,
            version=row.version,
            score=row.score,
            factors=TrustScoreFactors.from_dict(row.factors),
            total_credentials=row.total_credentials,
            verified_credentials=row.verified_credentials,
            employer_verified=row.employer_verified,
            government_verified=row.government_verified,
            blockchain_verified=row.blockchain_verified,
            credential_types=list(row.credential_types or []),
            last_calculated=row.last_calculated,
        )

    async def get_for_worker(self, worker_id: str) -> TrustScore | None:
        query = select(TrustScoreRecord).where(TrustScoreRecord.worker_id == worker_id)
        async with self.session_factory() as session:
            row = (await session.execute(query)).scalars().first()
            return self._to_model(row) if row is not None else None

    async def upsert(self, score: TrustScore, expected_version: int) -> TrustScore:
        values = {
            "score": score.score,
            "factors": score.factors.to_dict(),
            "total_credentials": score.total_credentials,
            "verified_credentials": score.verified_credentials,
            "employer_verified": score.employer_verified,
            "government_verified": score.government_verified,
            "blockchain_verified": score.blockchain_verified,
            "credential_types": list(score.credential_types),
            "last_calculated": score.last_calculated,
            "version": expected_version + 1,
        }
        query = select(TrustScoreRecord).where(TrustScoreRecord.worker_id == score.worker_id)
        try:
            async with self.session_factory() as session, session.begin():
                row = (await session.execute(query.with_for_update())).scalars().first()
                current_version = row.version if row is not None else 0
                if current_version != expected_version:
                    raise ConcurrencyError(
                        ConcurrencyErrorKind.VERSION_CONFLICT,
                        f"Trust score for {score.worker_id} is at version {current_version}, "
                        f"expected {expected_version}",
                        worker_id=score.worker_id,
                    )
                if row is None:
                    row = TrustScoreRecord(id=score.id, worker_id=score.worker_id, **values)
                    session.add(row)
                else:
                    for key, value in values.items():
                        setattr(row, key, value)
                stored = self._to_model(row)
        except IntegrityError as e:
            # A concurrent writer inserted the first row for this worker.
            raise ConcurrencyError(
                ConcurrencyErrorKind.VERSION_CONFLICT,
                f"Trust score for {score.worker_id} was created concurrently",
                worker_id=score.worker_id,
            ) from e

        logger.debug(
            "Trust score stored",
            worker_id=score.worker_id,
            version=stored.version,
            score=stored.score,
        )
        return stored


def create_sqlalchemy_store(session_factory: async_sessionmaker[AsyncSession]) -> RecordStore:
    """Create a record store backed by a SQL database."""
    return RecordStore(
        partners=SQLAlchemyPartnerRepository(session_factory),
        workers=SQLAlchemyWorkerRepository(session_factory),
        credentials=SQLAlchemyCredentialRepository(session_factory),
        trust_scores=SQLAlchemyTrustScoreRepository(session_factory),
    )


async def open_record_store(settings: LedgerSettings) -> tuple[RecordStore, AsyncEngine | None]:
    """Open the record store named by ``settings.database_url``.

    An empty URL gives the in-memory store and no engine. Otherwise the
    tables are created if missing and the caller disposes the engine.
    """
    if not settings.database_url:
        logger.info("Using in-memory record store")
        return create_in_memory_store(), None

    engine = create_engine(settings.database_url)
    await init_db(engine)
    logger.info("Opened database record store", dialect=engine.dialect.name)
    return create_sqlalchemy_store(create_session_factory(engine)), engine
