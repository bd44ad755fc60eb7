"""UpandUp Core - Shared data models, errors and record store."""

from upandup_core.models import (
    AnchorStatus,
    Credential,
    CredentialType,
    IssuerType,
    OnboardingStatus,
    Partner,
    PartnershipStatus,
    TimestampMixin,
    TrustLevel,
    TrustScore,
    TrustScoreFactors,
    VerificationStatus,
    Worker,
    parse_iso_datetime,
    utcnow,
    # Result type pattern
    Result,
)
from upandup_core.errors import (
    ConcurrencyError,
    ConcurrencyErrorKind,
    ConstraintViolation,
    CredentialError,
    CredentialErrorKind,
    DIDError,
    DIDErrorKind,
    DIDNotFound,
    GatewayError,
    GatewayErrorKind,
    LedgerError,
    PartnerError,
    PartnerErrorKind,
    RecordNotFound,
    WorkerError,
    WorkerErrorKind,
)
from upandup_core.config import LedgerSettings, ScoringPolicy, get_settings, load_settings
from upandup_core.events import (
    CredentialIssued,
    CredentialStatusChanged,
    Event,
    EventBus,
    EventPriority,
    TrustScoreUpdated,
    WorkerDIDCreated,
    WorkerStatusChanged,
)

# Repository pattern
from upandup_core.repositories import (
    CredentialRepository,
    InMemoryCredentialRepository,
    InMemoryPartnerRepository,
    InMemoryRepository,
    InMemoryTrustScoreRepository,
    InMemoryWorkerRepository,
    PartnerRepository,
    RecordStore,
    Repository,
    TrustScoreRepository,
    WorkerRepository,
    create_in_memory_store,
)

__all__ = [
    # Models
    "AnchorStatus",
    "Credential",
    "CredentialType",
    "IssuerType",
    "OnboardingStatus",
    "Partner",
    "PartnershipStatus",
    "TimestampMixin",
    "TrustLevel",
    "TrustScore",
    "TrustScoreFactors",
    "VerificationStatus",
    "Worker",
    "parse_iso_datetime",
    "utcnow",
    "Result",
    # Errors
    "ConcurrencyError",
    "ConcurrencyErrorKind",
    "ConstraintViolation",
    "CredentialError",
    "CredentialErrorKind",
    "DIDError",
    "DIDErrorKind",
    "DIDNotFound",
    "GatewayError",
    "GatewayErrorKind",
    "LedgerError",
    "PartnerError",
    "PartnerErrorKind",
    "RecordNotFound",
    "WorkerError",
    "WorkerErrorKind",
    # Settings
    "LedgerSettings",
    "ScoringPolicy",
    "get_settings",
    "load_settings",
    # Events
    "CredentialIssued",
    "CredentialStatusChanged",
    "Event",
    "EventBus",
    "EventPriority",
    "TrustScoreUpdated",
    "WorkerDIDCreated",
    "WorkerStatusChanged",
    # Repository Pattern
    "CredentialRepository",
    "InMemoryCredentialRepository",
    "InMemoryPartnerRepository",
    "InMemoryRepository",
    "InMemoryTrustScoreRepository",
    "InMemoryWorkerRepository",
    "PartnerRepository",
    "RecordStore",
    "Repository",
    "TrustScoreRepository",
    "WorkerRepository",
    "create_in_memory_store",
]
