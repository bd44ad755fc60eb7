"""Core data models for the UpandUp worker-identity ledger."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid4())


def parse_iso_datetime(value: str | None, default: datetime | None = None) -> datetime | None:
    """Parse an ISO datetime string, handling the Z suffix.

    Aware values are normalized to naive UTC.
    """
    if not value:
        return default
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return default
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class TimestampMixin(BaseModel):
    """Mixin providing created_at and updated_at timestamps."""

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self) -> None:
        """Update the updated_at timestamp to now."""
        self.updated_at = utcnow()


# ============================================================================
# Enums
# ============================================================================


class PartnershipStatus(str, Enum):
    """Admin-driven status of a partner organization."""

    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class OnboardingStatus(str, Enum):
    """Lifecycle status of a worker."""

    INVITED = "invited"
    REGISTERED = "registered"
    VERIFIED = "verified"
    ACTIVE = "active"


class CredentialType(str, Enum):
    """Document, skill and achievement kinds a worker can hold."""

    VOTER_ID = "voter-id"
    PAN_CARD = "pan-card"
    DRIVING_LICENSE = "driving-license"
    MARKSHEET_10TH = "10th-marksheet"
    MARKSHEET_12TH = "12th-marksheet"
    DIPLOMA = "diploma"
    DEGREE = "degree"
    SKILL_CERTIFICATE = "skill-certificate"
    EMPLOYER_APPRECIATION = "employer-appreciation"
    TRAINING_CERTIFICATE = "training-certificate"


class IssuerType(str, Enum):
    """Who vouches for a credential."""

    GOVERNMENT = "government"
    EMPLOYER = "employer"
    PLATFORM = "platform"


class VerificationStatus(str, Enum):
    """Verification state of a credential."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (VerificationStatus.REJECTED, VerificationStatus.EXPIRED)


class AnchorStatus(str, Enum):
    """Anchoring state reported by the identity network."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TrustLevel(str, Enum):
    """Coarse rating bands used when presenting a trust score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ============================================================================
# Entities
# ============================================================================


class Partner(TimestampMixin):
    """A partner organization that onboards workers."""

    id: str = Field(default_factory=new_id)
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    registration_number: str | None = None
    partnership_status: PartnershipStatus = PartnershipStatus.PENDING
    cord_node_id: str | None = None
    onboarding_completed: bool = False


class Worker(TimestampMixin):
    """A gig worker owned by a partner."""

    id: str = Field(default_factory=new_id)
    partner_id: str | None = None
    name: str
    phone: str
    email: str | None = None
    address: str | None = None
    aadhar_hash: str | None = None
    did: str | None = None
    onboarding_status: OnboardingStatus = OnboardingStatus.INVITED
    mobile_app_registered: bool = False
    registered_at: datetime | None = None


class Credential(TimestampMixin):
    """A credential claim held by a worker."""

    id: str = Field(default_factory=new_id)
    worker_id: str
    credential_type: CredentialType
    issuer_type: IssuerType
    issuer: str
    verification_status: VerificationStatus = VerificationStatus.PENDING
    vc_url: str | None = None
    external_id: str | None = None
    document_hash: str
    document_url: str | None = None
    issued_at: datetime
    expires_at: datetime | None = None
    status_reason: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.verification_status.is_terminal

    def is_expired_at(self, moment: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= moment


class TrustScoreFactors(BaseModel):
    """Weighted contributions that sum to the trust score."""

    credential_count: float = 0.0
    verification_rate: float = 0.0
    employer_endorsement: float = 0.0
    blockchain_integrity: float = 0.0
    time_factored: float = 0.0

    def total(self) -> float:
        return (
            self.credential_count
            + self.verification_rate
            + self.employer_endorsement
            + self.blockchain_integrity
            + self.time_factored
        )

    def to_dict(self) -> dict[str, float]:
        """Convert to the named-factor mapping used by API consumers."""
        return {
            "credentialCount": self.credential_count,
            "verificationRate": self.verification_rate,
            "employerEndorsement": self.employer_endorsement,
            "blockchainIntegrity": self.blockchain_integrity,
            "timeFactored": self.time_factored,
        }

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "TrustScoreFactors":
        return cls(
            credential_count=data.get("credentialCount", 0.0),
            verification_rate=data.get("verificationRate", 0.0),
            employer_endorsement=data.get("employerEndorsement", 0.0),
            blockchain_integrity=data.get("blockchainIntegrity", 0.0),
            time_factored=data.get("timeFactored", 0.0),
        )


class TrustScore(BaseModel):
    """The single derived trust score row of a worker."""

    id: str = Field(default_factory=new_id)
    worker_id: str
    version: int = 0
    score: int = Field(ge=0, le=100)
    factors: TrustScoreFactors = Field(default_factory=TrustScoreFactors)
    total_credentials: int = Field(default=0, ge=0)
    verified_credentials: int = Field(default=0, ge=0)
    employer_verified: bool = False
    government_verified: bool = False
    blockchain_verified: bool = False
    credential_types: list[str] = Field(default_factory=list)
    last_calculated: datetime | None = None

    @model_validator(mode="after")
    def _check_counts(self) -> "TrustScore":
        if self.verified_credentials > self.total_credentials:
            raise ValueError("verified_credentials cannot exceed total_credentials")
        return self

    @property
    def breakdown(self) -> dict[str, Any]:
        return {
            "totalCredentials": self.total_credentials,
            "verifiedCredentials": self.verified_credentials,
            "employerVerified": self.employer_verified,
            "governmentVerified": self.government_verified,
            "blockchainVerified": self.blockchain_verified,
            "credentialTypes": list(self.credential_types),
        }

    @property
    def level(self) -> TrustLevel:
        if self.score >= 80:
            return TrustLevel.HIGH
        if self.score >= 60:
            return TrustLevel.MEDIUM
        return TrustLevel.LOW

    @property
    def stars(self) -> int:
        """Five-star rating shown next to the score."""
        return min(self.score // 20, 5)


# ============================================================================
# Result type pattern for consistent error handling
# ============================================================================

T = TypeVar("T")
E = TypeVar("E")


@dataclass
class Result(Generic[T, E]):
    """A Result type for explicit success/failure handling.

    Ledger operations return this instead of raising, so callers can
    branch on expected failures (busy worker, terminal credential,
    gateway outage) without try/except.

    Usage:
        result = await ledger.verify_credential(credential_id)
        if result.is_ok:
            credential = result.unwrap()
        else:
            notify(result.error.kind)
    """

    _value: T | None = None
    _error: E | None = None
    _is_ok: bool = True

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        """Create a successful result."""
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        """Create a failed result."""
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def error(self) -> E | None:
        return self._error

    def unwrap(self) -> T:
        """Get the value, raising ValueError if result is an error."""
        if not self._is_ok:
            raise ValueError(f"Called unwrap on error result: {self._error}")
        return self._value  # type: ignore

    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_ok else default  # type: ignore

    def unwrap_err(self) -> E:
        """Get the error, raising ValueError if result is successful."""
        if self._is_ok:
            raise ValueError("Called unwrap_err on successful result")
        return self._error  # type: ignore

    def map(self, func: Callable[[T], Any]) -> "Result[Any, E]":
        """Apply a function to the value if successful."""
        if self._is_ok:
            return Result.ok(func(self._value))  # type: ignore
        return self  # type: ignore
