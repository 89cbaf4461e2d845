"""
Session Token Tests
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from herbal_garden.auth.jwt_handler import TokenService
from herbal_garden.auth.utils import parse_duration
from herbal_garden.exceptions import InvalidTokenError

SECRET = "token-test-secret"


class TestTokenService:
    """Test token issue and verification"""

    @pytest.fixture
    def tokens(self):
        return TokenService(SECRET, "HS256", "7d")

    def test_issue_and_verify(self, tokens):
        token = tokens.issue({"id": 7, "email": "ann@x.com", "role": "student"})

        claims = tokens.verify(token)

        assert claims["id"] == 7
        assert claims["email"] == "ann@x.com"
        assert claims["role"] == "student"
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_custom_ttl(self, tokens):
        token = tokens.issue({"id": 1}, ttl=timedelta(minutes=5))

        claims = tokens.verify(token)

        assert claims["exp"] - claims["iat"] == 300

    def test_expired_token(self, tokens):
        token = tokens.issue({"id": 1}, ttl=timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_wrong_secret(self, tokens):
        other = TokenService("another-secret")
        token = other.issue({"id": 1, "role": "admin"})

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_tampered_payload(self, tokens):
        token = tokens.issue({"id": 1, "role": "student"})
        forged = jwt.encode(
            {"id": 1, "role": "admin", "iat": datetime.now(timezone.utc),
             "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            "attacker-secret",
            algorithm="HS256",
        )
        header, _, signature = token.split(".")
        _, forged_payload, _ = forged.split(".")

        with pytest.raises(InvalidTokenError):
            tokens.verify(f"{header}.{forged_payload}.{signature}")

    def test_missing_expiry_rejected(self, tokens):
        token = jwt.encode({"id": 1, "iat": datetime.now(timezone.utc)}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
    def test_malformed(self, tokens, token):
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_invalid_token_error_is_401(self):
        assert InvalidTokenError().status_code == 401

    def test_default_ttl_seconds(self, tokens):
        assert tokens.default_ttl_seconds == 604800


class TestParseDuration:
    @pytest.mark.parametrize("value,expected", [
        ("7d", timedelta(days=7)),
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("2w", timedelta(weeks=2)),
        ("3600", timedelta(seconds=3600)),
        (90, timedelta(seconds=90)),
        ("1D", timedelta(days=1)),
    ])
    def test_parse(self, value, expected):
        assert parse_duration(value) == expected

    def test_timedelta_passthrough(self):
        assert parse_duration(timedelta(hours=1)) == timedelta(hours=1)

    @pytest.mark.parametrize("value", ["", "seven days", "7x", "-1d"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)
