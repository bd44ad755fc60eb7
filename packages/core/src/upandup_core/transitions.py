"""Allowed status edges for partners, workers and credentials.

Both the ledger (before mutating) and the record stores (before writing)
consult these tables, so an illegal edge is refused even when a caller
bypasses the ledger.
"""

from upandup_core.errors import ConstraintViolation
from upandup_core.models import (
    Credential,
    OnboardingStatus,
    PartnershipStatus,
    VerificationStatus,
    Worker,
)

CREDENTIAL_TRANSITIONS: dict[VerificationStatus, frozenset[VerificationStatus]] = {
    VerificationStatus.PENDING: frozenset({VerificationStatus.VERIFIED, VerificationStatus.REJECTED}),
    VerificationStatus.VERIFIED: frozenset({VerificationStatus.EXPIRED}),
    VerificationStatus.REJECTED: frozenset(),
    VerificationStatus.EXPIRED: frozenset(),
}

WORKER_TRANSITIONS: dict[OnboardingStatus, frozenset[OnboardingStatus]] = {
    OnboardingStatus.INVITED: frozenset({OnboardingStatus.REGISTERED}),
    OnboardingStatus.REGISTERED: frozenset({OnboardingStatus.VERIFIED}),
    OnboardingStatus.VERIFIED: frozenset({OnboardingStatus.ACTIVE}),
    OnboardingStatus.ACTIVE: frozenset(),
}

PARTNER_TRANSITIONS: dict[PartnershipStatus, frozenset[PartnershipStatus]] = {
    PartnershipStatus.PENDING: frozenset({PartnershipStatus.ACTIVE}),
    PartnershipStatus.ACTIVE: frozenset({PartnershipStatus.SUSPENDED}),
    PartnershipStatus.SUSPENDED: frozenset({PartnershipStatus.ACTIVE}),
}

# Fields that may still change on a verified credential.
_VERIFIED_MUTABLE_FIELDS = {"verification_status", "status_reason", "updated_at"}


def can_transition_credential(current: VerificationStatus, target: VerificationStatus) -> bool:
    return target in CREDENTIAL_TRANSITIONS[current]


def can_transition_worker(current: OnboardingStatus, target: OnboardingStatus) -> bool:
    return target in WORKER_TRANSITIONS[current]


def can_transition_partner(current: PartnershipStatus, target: PartnershipStatus) -> bool:
    return target in PARTNER_TRANSITIONS[current]


def check_worker_update(existing: Worker, updated: Worker) -> None:
    """Raise ConstraintViolation if ``updated`` may not replace ``existing``."""
    if existing.did is not None and updated.did != existing.did:
        raise ConstraintViolation(f"Worker {existing.id} DID is already set")
    if updated.onboarding_status != existing.onboarding_status and not can_transition_worker(
        existing.onboarding_status, updated.onboarding_status
    ):
        raise ConstraintViolation(
            f"Worker {existing.id} cannot move from "
            f"{existing.onboarding_status.value} to {updated.onboarding_status.value}"
        )


def check_credential_update(existing: Credential, updated: Credential) -> None:
    """Raise ConstraintViolation if ``updated`` may not replace ``existing``."""
    if existing.vc_url is not None and updated.vc_url != existing.vc_url:
        raise ConstraintViolation(f"Credential {existing.id} vc_url is already set")

    status_changed = updated.verification_status != existing.verification_status
    if status_changed and not can_transition_credential(
        existing.verification_status, updated.verification_status
    ):
        raise ConstraintViolation(
            f"Credential {existing.id} cannot move from "
            f"{existing.verification_status.value} to {updated.verification_status.value}"
        )

    if existing.is_terminal and not status_changed:
        if updated.model_dump(exclude={"updated_at"}) != existing.model_dump(exclude={"updated_at"}):
            raise ConstraintViolation(f"Credential {existing.id} is terminal")

    if existing.verification_status == VerificationStatus.VERIFIED:
        before = existing.model_dump(exclude=_VERIFIED_MUTABLE_FIELDS)
        after = updated.model_dump(exclude=_VERIFIED_MUTABLE_FIELDS)
        if before != after:
            raise ConstraintViolation(f"Credential {existing.id} is immutable once verified")
