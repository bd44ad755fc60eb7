"""Tests for configuration module."""

import pytest
from pydantic import ValidationError

from upandup_core.config import LedgerSettings, ScoringPolicy, get_settings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("UPANDUP_PROVIDER", "UPANDUP_LOCK_WAIT_SECONDS", "UPANDUP_SCORING__TIME_RAMP_DAYS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.provider == "dhiway"
        assert settings.gateway_timeout_seconds == 30.0
        assert settings.lock_wait_seconds == 10.0
        assert settings.cord_issuer_did == "did:cord:upandup-issuer"
        assert settings.scoring.credential_saturation == 10
        assert settings.scoring.time_ramp_days == 90

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("UPANDUP_PROVIDER", " CORD ")
        monkeypatch.setenv("UPANDUP_LOCK_WAIT_SECONDS", "0")
        monkeypatch.setenv("UPANDUP_SCORING__TIME_RAMP_DAYS", "30")

        settings = LedgerSettings()

        assert settings.provider == "cord"
        assert settings.lock_wait_seconds == 0
        assert settings.scoring.time_ramp_days == 30

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            LedgerSettings(gateway_timeout_seconds=0)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestScoringPolicy:
    def test_default_weights(self):
        policy = ScoringPolicy()
        assert (
            policy.credential_count_weight,
            policy.verification_rate_weight,
            policy.employer_endorsement_weight,
            policy.blockchain_integrity_weight,
            policy.time_factor_weight,
        ) == (25.0, 30.0, 20.0, 15.0, 10.0)

    def test_weights_must_sum_to_100(self):
        with pytest.raises(ValidationError):
            ScoringPolicy(credential_count_weight=30.0)

    def test_rebalanced_weights(self):
        policy = ScoringPolicy(credential_count_weight=30.0, time_factor_weight=5.0)
        assert policy.credential_count_weight == 30.0


class TestLoadSettings:
    """Tests for load_settings."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text(
            "provider: memory\n"
            "gateway_timeout_seconds: 5\n"
            "scoring:\n"
            "  time_ramp_days: 60\n"
        )

        settings = load_settings(path)

        assert settings.provider == "memory"
        assert settings.gateway_timeout_seconds == 5
        assert settings.scoring.time_ramp_days == 60

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("provider: memory\nlock_wait_seconds: 3\n")

        settings = load_settings(path, lock_wait_seconds=0)

        assert settings.provider == "memory"
        assert settings.lock_wait_seconds == 0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("")
        assert load_settings(path).provider == "dhiway"

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("- provider\n- memory\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_settings(path)

    def test_no_file(self):
        assert load_settings(provider="cord").provider == "cord"
