"""Database module exports."""

from upandup_core.db.database import Base, create_engine, create_session_factory, init_db
from upandup_core.db.models import CredentialRecord, PartnerRecord, TrustScoreRecord, WorkerRecord
from upandup_core.db.store import (
    SQLAlchemyCredentialRepository,
    SQLAlchemyPartnerRepository,
    SQLAlchemyTrustScoreRepository,
    SQLAlchemyWorkerRepository,
    create_sqlalchemy_store,
    open_record_store,
)

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "init_db",
    "CredentialRecord",
    "PartnerRecord",
    "TrustScoreRecord",
    "WorkerRecord",
    "SQLAlchemyCredentialRepository",
    "SQLAlchemyPartnerRepository",
    "SQLAlchemyTrustScoreRepository",
    "SQLAlchemyWorkerRepository",
    "create_sqlalchemy_store",
    "open_record_store",
]
