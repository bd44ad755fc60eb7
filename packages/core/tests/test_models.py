"""Tests for core data models and the Result type."""

from datetime import datetime

import pytest

from upandup_core.errors import CredentialError, CredentialErrorKind, GatewayError, GatewayErrorKind
from upandup_core.models import (
    Credential,
    CredentialType,
    IssuerType,
    Result,
    TrustLevel,
    TrustScore,
    TrustScoreFactors,
    VerificationStatus,
    parse_iso_datetime,
)


class TestResult:
    """Tests for the Result type."""

    def test_ok(self):
        result = Result.ok(42)
        assert result.is_ok
        assert not result.is_err
        assert result.unwrap() == 42
        assert result.error is None

    def test_err(self):
        error = CredentialError(CredentialErrorKind.ALREADY_TERMINAL, "Credential is rejected")
        result = Result.err(error)
        assert result.is_err
        assert result.unwrap_err() is error
        assert result.unwrap_or("fallback") == "fallback"
        with pytest.raises(ValueError):
            result.unwrap()

    def test_unwrap_err_on_ok(self):
        with pytest.raises(ValueError):
            Result.ok(1).unwrap_err()

    def test_map(self):
        assert Result.ok(2).map(lambda v: v * 10).unwrap() == 20
        error = GatewayError(GatewayErrorKind.TIMEOUT)
        assert Result.err(error).map(lambda v: v * 10).error is error


class TestErrors:
    def test_error_string_includes_kind(self):
        error = CredentialError(CredentialErrorKind.INVALID_INPUT, "missing hash")
        assert str(error) == "invalid_input: missing hash"
        assert error.to_dict() == {
            "error": "CredentialError",
            "kind": "invalid_input",
            "message": "missing hash",
        }

    def test_timeout_counts_as_unavailable(self):
        assert GatewayError(GatewayErrorKind.TIMEOUT).is_unavailable
        assert GatewayError(GatewayErrorKind.UNAVAILABLE).is_unavailable
        assert not GatewayError(GatewayErrorKind.REJECTED).is_unavailable


class TestTrustScore:
    """Tests for TrustScore presentation helpers."""

    @pytest.mark.parametrize(
        "score,level,stars",
        [(0, TrustLevel.LOW, 0), (59, TrustLevel.LOW, 2), (60, TrustLevel.MEDIUM, 3),
         (79, TrustLevel.MEDIUM, 3), (80, TrustLevel.HIGH, 4), (100, TrustLevel.HIGH, 5)],
    )
    def test_level_and_stars(self, score, level, stars):
        trust_score = TrustScore(worker_id="w-1", score=score)
        assert trust_score.level == level
        assert trust_score.stars == stars

    def test_score_bounds(self):
        with pytest.raises(ValueError):
            TrustScore(worker_id="w-1", score=101)
        with pytest.raises(ValueError):
            TrustScore(worker_id="w-1", score=-1)

    def test_verified_cannot_exceed_total(self):
        with pytest.raises(ValueError):
            TrustScore(worker_id="w-1", score=10, total_credentials=1, verified_credentials=2)

    def test_breakdown(self):
        trust_score = TrustScore(
            worker_id="w-1",
            score=50,
            total_credentials=3,
            verified_credentials=2,
            government_verified=True,
            credential_types=["pan-card"],
        )
        assert trust_score.breakdown == {
            "totalCredentials": 3,
            "verifiedCredentials": 2,
            "employerVerified": False,
            "governmentVerified": True,
            "blockchainVerified": False,
            "credentialTypes": ["pan-card"],
        }


class TestTrustScoreFactors:
    def test_named_factors(self):
        factors = TrustScoreFactors(
            credential_count=2.5,
            verification_rate=30,
            employer_endorsement=20,
            blockchain_integrity=15,
            time_factored=1.0,
        )
        data = factors.to_dict()
        assert set(data) == {
            "credentialCount",
            "verificationRate",
            "employerEndorsement",
            "blockchainIntegrity",
            "timeFactored",
        }
        assert factors.total() == pytest.approx(68.5)
        assert TrustScoreFactors.from_dict(data) == factors


class TestCredential:
    def make(self, **kwargs) -> Credential:
        defaults = dict(
            worker_id="w-1",
            credential_type=CredentialType.DRIVING_LICENSE,
            issuer_type=IssuerType.GOVERNMENT,
            issuer="RTO",
            document_hash="h",
            issued_at=datetime(2024, 1, 1),
        )
        defaults.update(kwargs)
        return Credential(**defaults)

    def test_defaults(self):
        credential = self.make()
        assert credential.verification_status == VerificationStatus.PENDING
        assert credential.vc_url is None
        assert not credential.is_terminal

    def test_terminal_statuses(self):
        assert self.make(verification_status=VerificationStatus.REJECTED).is_terminal
        assert self.make(verification_status=VerificationStatus.EXPIRED).is_terminal
        assert not self.make(verification_status=VerificationStatus.VERIFIED).is_terminal

    def test_is_expired_at(self):
        credential = self.make(expires_at=datetime(2025, 1, 1))
        assert not credential.is_expired_at(datetime(2024, 12, 31))
        assert credential.is_expired_at(datetime(2025, 1, 1))
        assert not self.make().is_expired_at(datetime(2099, 1, 1))

    def test_unknown_credential_type(self):
        with pytest.raises(ValueError):
            self.make(credential_type="birth-certificate")


class TestParseIsoDatetime:
    def test_z_suffix_normalized_to_naive_utc(self):
        assert parse_iso_datetime("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, 0, 0)

    def test_offset_converted(self):
        assert parse_iso_datetime("2024-03-01T15:30:00+05:30") == datetime(2024, 3, 1, 10, 0, 0)

    def test_invalid_returns_default(self):
        fallback = datetime(2020, 1, 1)
        assert parse_iso_datetime("not a date", default=fallback) == fallback
        assert parse_iso_datetime(None) is None
