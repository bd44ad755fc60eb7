"""SQLAlchemy database models."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from upandup_core.db.database import Base


class PartnerRecord(Base):
    """Partner organization."""

    __tablename__ = "partners"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    registration_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    partnership_status: Mapped[str] = mapped_column(String(16), default="pending")
    cord_node_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class WorkerRecord(Base):
    """Worker owned by a partner."""

    __tablename__ = "workers"
    __table_args__ = (UniqueConstraint("partner_id", "phone", name="uq_workers_partner_phone"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    partner_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("partners.id"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    aadhar_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    did: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    onboarding_status: Mapped[str] = mapped_column(String(16), default="invited")
    mobile_app_registered: Mapped[bool] = mapped_column(Boolean, default=False)
    registered_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class CredentialRecord(Base):
    """Credential claim of a worker."""

    __tablename__ = "credentials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    worker_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workers.id"), nullable=False, index=True
    )
    credential_type: Mapped[str] = mapped_column(String(64), nullable=False)
    issuer_type: Mapped[str] = mapped_column(String(16), nullable=False)
    issuer: Mapped[str] = mapped_column(String(255), nullable=False)
    verification_status: Mapped[str] = mapped_column(String(16), default="pending")
    vc_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    document_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class TrustScoreRecord(Base):
    """The single trust score row of a worker."""

    __tablename__ = "worker_trust_scores"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    worker_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workers.id"), unique=True, nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    factors: Mapped[dict[str, float]] = mapped_column(JSON, nullable=False)
    total_credentials: Mapped[int] = mapped_column(Integer, default=0)
    verified_credentials: Mapped[int] = mapped_column(Integer, default=0)
    employer_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    government_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    blockchain_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    credential_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    last_calculated: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
