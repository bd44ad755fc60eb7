"""Validated input records for ledger operations."""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from upandup_core.models import CredentialType, IssuerType
from upandup_gateways.base import CredentialMetadata, WorkerDetails

M = TypeVar("M", bound=BaseModel)


class CredentialRequest(BaseModel):
    """A worker's claim to a credential, submitted for issuance."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    credential_type: CredentialType
    issuer_type: IssuerType
    issuer: str = Field(min_length=1)
    metadata: CredentialMetadata


class PartnerRegistration(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = None
    address: str | None = None
    registration_number: str | None = None


class WorkerInvitation(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    partner_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: str | None = None


def coerce_request(model: type[M], data: M | dict[str, Any]) -> M:
    """Return ``data`` as a validated ``model`` instance.

    Raises:
        ValidationError: if a mapping does not satisfy the model
    """
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return model.model_validate(data)


def describe_validation_error(error: ValidationError) -> str:
    """One-line summary of the failing fields."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "request"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)

