"""Configuration settings for the UpandUp ledger.

Settings come from environment variables (prefix ``UPANDUP_``), an optional
``.env`` file, and optionally a YAML file passed to ``load_settings``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class ScoringPolicy(BaseModel):
    """Weights and ramps of the trust-score formula."""

    credential_count_weight: float = 25.0
    verification_rate_weight: float = 30.0
    employer_endorsement_weight: float = 20.0
    blockchain_integrity_weight: float = 15.0
    time_factor_weight: float = 10.0

    # credentialCount saturates at this many non-rejected credentials
    credential_saturation: int = Field(default=10, gt=0)
    # timeFactored ramps linearly over this many days after registration
    time_ramp_days: int = Field(default=90, gt=0)

    @model_validator(mode="after")
    def _weights_sum_to_100(self) -> "ScoringPolicy":
        total = (
            self.credential_count_weight
            + self.verification_rate_weight
            + self.employer_endorsement_weight
            + self.blockchain_integrity_weight
            + self.time_factor_weight
        )
        if abs(total - 100.0) > 1e-9:
            raise ValueError(f"Scoring weights must sum to 100, got {total}")
        return self


class LedgerSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="UPANDUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Identity network provider: "dhiway", "cord" or "memory"
    provider: str = "dhiway"

    # Dhiway endpoints
    dedi_publish_url: str = "https://dedi-publish.dhiway.com/api/v1"
    dedi_lookup_url: str = "https://dedi-lookup.dhiway.com/api/v1"
    mark_studio_url: str = "https://mark-studio.dhiway.com/api/v1"
    issuer_agent_url: str = "https://issuer-agent.dhiway.com/api/v1"
    verification_url: str = "https://verification.dhiway.com/api/v1"
    wallet_url: str = "https://wallet.dhiway.com/api/v1"
    digilocker_url: str = "https://issuer-agent-digilocker.dhiway.com/api/v1"

    # CORD network
    cord_network_url: str = "https://cord-network.dhiway.com/api/v1"
    cord_issuer_did: str = "did:cord:upandup-issuer"

    api_key: str = ""
    organization_id: str = ""

    # Timeouts and serialization
    gateway_timeout_seconds: float = Field(default=30.0, gt=0)
    lock_wait_seconds: float = Field(default=10.0, ge=0)

    # Persistence; empty means the in-memory store
    database_url: str = ""

    # Background revalidation of verified credentials
    revalidation_interval_seconds: float = Field(default=3600.0, gt=0)

    scoring: ScoringPolicy = Field(default_factory=ScoringPolicy)

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


def load_settings(path: Path | str | None = None, **overrides: Any) -> LedgerSettings:
    """Build settings from an optional YAML file plus keyword overrides.

    Keyword overrides win over the file, and the file wins over the
    environment.
    """
    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        logger.debug("Loaded settings file", path=str(path), keys=sorted(data))
    data.update(overrides)
    return LedgerSettings(**data)


@lru_cache
def get_settings() -> LedgerSettings:
    """Get cached settings instance."""
    return LedgerSettings()
