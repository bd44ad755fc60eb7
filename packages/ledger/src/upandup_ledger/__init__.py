"""UpandUp Ledger - Credential lifecycle and trust-score derivation."""

from upandup_ledger.ledger import CredentialLedger
from upandup_ledger.locks import WorkerLockRegistry
from upandup_ledger.requests import (
    CredentialMetadata,
    CredentialRequest,
    PartnerRegistration,
    WorkerDetails,
    WorkerInvitation,
)
from upandup_ledger.revalidation import CredentialRevalidator
from upandup_ledger.scoring import (
    ScoreComputation,
    TrustSnapshot,
    compute_trust_score,
    round_half_up,
)

__all__ = [
    # Ledger
    "CredentialLedger",
    "CredentialRevalidator",
    "WorkerLockRegistry",
    # Requests
    "CredentialMetadata",
    "CredentialRequest",
    "PartnerRegistration",
    "WorkerDetails",
    "WorkerInvitation",
    # Scoring
    "ScoreComputation",
    "TrustSnapshot",
    "compute_trust_score",
    "round_half_up",
]
