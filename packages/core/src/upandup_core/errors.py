"""Error taxonomy shared by the record store, gateways and ledger.

Gateways and stores raise these. Ledger operations catch them at the
operation boundary and hand them back inside a ``Result``.
"""

from enum import Enum


class LedgerError(Exception):
    """Base class for every domain error."""

    kind: Enum | None = None

    def __init__(self, message: str = "", kind: Enum | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        if self.kind is not None:
            return f"{self.kind.value}: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, str | None]:
        return {
            "error": type(self).__name__,
            "kind": self.kind.value if self.kind is not None else None,
            "message": self.message,
        }


class GatewayErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"
    REJECTED = "rejected"
    TIMEOUT = "timeout"


class GatewayError(LedgerError):
    """Failure reported by (or while reaching) the external identity network."""

    def __init__(
        self,
        kind: GatewayErrorKind,
        message: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, kind)
        self.status_code = status_code

    @property
    def is_unavailable(self) -> bool:
        """Timeouts count as unavailability: the outcome is unknown."""
        return self.kind in (GatewayErrorKind.UNAVAILABLE, GatewayErrorKind.TIMEOUT)


class DIDNotFound(LedgerError):
    """The identity network has no document for a DID."""

    def __init__(self, did: str) -> None:
        super().__init__(f"DID not found: {did}")
        self.did = did


class CredentialErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    ALREADY_TERMINAL = "already_terminal"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"


class CredentialError(LedgerError):
    def __init__(
        self,
        kind: CredentialErrorKind,
        message: str = "",
        credential_id: str | None = None,
    ) -> None:
        super().__init__(message, kind)
        self.credential_id = credential_id


class DIDErrorKind(str, Enum):
    ALREADY_SET = "already_set"
    REJECTED = "rejected"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"


class DIDError(LedgerError):
    def __init__(self, kind: DIDErrorKind, message: str = "", worker_id: str | None = None) -> None:
        super().__init__(message, kind)
        self.worker_id = worker_id


class WorkerErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_TRANSITION = "invalid_transition"


class WorkerError(LedgerError):
    def __init__(self, kind: WorkerErrorKind, message: str = "", worker_id: str | None = None) -> None:
        super().__init__(message, kind)
        self.worker_id = worker_id


class PartnerErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_TRANSITION = "invalid_transition"


class PartnerError(LedgerError):
    def __init__(self, kind: PartnerErrorKind, message: str = "", partner_id: str | None = None) -> None:
        super().__init__(message, kind)
        self.partner_id = partner_id


class ConcurrencyErrorKind(str, Enum):
    BUSY = "busy"
    VERSION_CONFLICT = "version_conflict"


class ConcurrencyError(LedgerError):
    """A per-worker serialization rule was violated."""

    def __init__(
        self,
        kind: ConcurrencyErrorKind = ConcurrencyErrorKind.BUSY,
        message: str = "",
        worker_id: str | None = None,
    ) -> None:
        super().__init__(message, kind)
        self.worker_id = worker_id


class RecordNotFound(LedgerError):
    def __init__(self, entity: str, id: str) -> None:
        super().__init__(f"{entity} not found: {id}")
        self.entity = entity
        self.id = id


class ConstraintViolation(LedgerError):
    """A storage-boundary invariant would be broken by a write."""
