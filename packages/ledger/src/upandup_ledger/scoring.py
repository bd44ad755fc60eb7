"""Deterministic trust-score aggregation.

The score is a pure function of a worker's credential snapshot, whether
the worker's DID is anchored, when the worker registered, and an explicit
``as_of`` instant. Identical inputs always give identical scores.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from upandup_core.config import ScoringPolicy
from upandup_core.models import (
    Credential,
    IssuerType,
    OnboardingStatus,
    TrustScoreFactors,
    VerificationStatus,
    Worker,
)

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class TrustSnapshot:
    """Everything the score depends on, captured at one instant."""

    credentials: tuple[Credential, ...]
    as_of: datetime
    did_anchored: bool = False
    registered_at: datetime | None = None

    @classmethod
    def capture(
        cls,
        worker: Worker,
        credentials: Iterable[Credential],
        did_anchored: bool,
        as_of: datetime,
    ) -> "TrustSnapshot":
        # Invited workers have not started the time ramp yet
        registered_at = (
            worker.registered_at
            if worker.onboarding_status != OnboardingStatus.INVITED
            else None
        )
        return cls(
            credentials=tuple(c for c in credentials if c.worker_id == worker.id),
            as_of=as_of,
            did_anchored=bool(worker.did) and did_anchored,
            registered_at=registered_at,
        )


@dataclass
class ScoreComputation:
    """Result of a trust score calculation."""

    score: int
    factors: TrustScoreFactors
    total_credentials: int = 0
    verified_credentials: int = 0
    employer_verified: bool = False
    government_verified: bool = False
    blockchain_verified: bool = False
    credential_types: list[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _days_between(start: datetime, end: datetime) -> float:
    return max((end - start).total_seconds(), 0.0) / SECONDS_PER_DAY


def compute_trust_score(
    snapshot: TrustSnapshot,
    policy: ScoringPolicy | None = None,
) -> ScoreComputation:
    """Aggregate a snapshot into a 0-100 trust score.

    Rejected credentials are ignored. Each factor is clipped to its
    weight before summing:

    - credentialCount: saturates at ``policy.credential_saturation`` credentials
    - verificationRate: share of counted credentials that are verified
    - employerEndorsement: full weight with a verified employer credential
    - blockchainIntegrity: full weight when the DID is anchored
    - timeFactored: linear ramp over ``policy.time_ramp_days`` after registration
    """
    policy = policy or ScoringPolicy()

    counted = [
        c for c in snapshot.credentials
        if c.verification_status != VerificationStatus.REJECTED
    ]
    verified = [c for c in counted if c.verification_status == VerificationStatus.VERIFIED]
    total = len(counted)

    employer_verified = any(c.issuer_type == IssuerType.EMPLOYER for c in verified)
    government_verified = any(c.issuer_type == IssuerType.GOVERNMENT for c in verified)

    time_ratio = 0.0
    if snapshot.registered_at is not None:
        time_ratio = min(
            _days_between(snapshot.registered_at, snapshot.as_of) / policy.time_ramp_days, 1.0
        )

    factors = TrustScoreFactors(
        credential_count=min(
            policy.credential_count_weight,
            total * policy.credential_count_weight / policy.credential_saturation,
        ),
        verification_rate=policy.verification_rate_weight * len(verified) / max(total, 1),
        employer_endorsement=policy.employer_endorsement_weight if employer_verified else 0.0,
        blockchain_integrity=(
            policy.blockchain_integrity_weight if snapshot.did_anchored else 0.0
        ),
        time_factored=policy.time_factor_weight * time_ratio,
    )

    score = max(0, min(100, round_half_up(factors.total())))

    return ScoreComputation(
        score=score,
        factors=factors,
        total_credentials=total,
        verified_credentials=len(verified),
        employer_verified=employer_verified,
        government_verified=government_verified,
        blockchain_verified=snapshot.did_anchored,
        credential_types=sorted({c.credential_type.value for c in counted}),
    )
