"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with valid claims
- Token decoding and validation
- Token expiration handling
- Invalid token handling
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from auth.jwt import create_access_token, decode_token
from config import get_settings


@pytest.fixture
def jwt_env(monkeypatch):
    """Apply JWT settings through the environment and reload settings."""

    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()

    yield _apply
    monkeypatch.undo()
    get_settings.cache_clear()


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_token_contains_correct_claims(self):
        user_id = uuid4()
        token = create_access_token(user_id=user_id, role="notary", email="notary@test.com")

        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload["sub"] == str(user_id)
        assert payload["role"] == "notary"
        assert payload["email"] == "notary@test.com"
        assert "iat" in payload
        assert "exp" in payload

    def test_token_expiration_time(self, jwt_env):
        jwt_env(JWT_EXPIRY_MINUTES=30)

        before = datetime.now(timezone.utc)
        token = create_access_token(user_id=uuid4(), role="user", email="user@test.com")
        payload = jwt.decode(token, options={"verify_signature": False})

        exp_time = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        time_diff = abs((exp_time - (before + timedelta(minutes=30))).total_seconds())
        assert time_diff < 5, f"Expected expiry around 30 min from now, got diff of {time_diff}s"

    def test_token_uses_hs256(self):
        token = create_access_token(user_id=uuid4(), role="user", email="user@test.com")
        assert jwt.get_unverified_header(token)["alg"] == "HS256"


class TestDecodeToken:
    """Test JWT token validation"""

    def test_round_trip(self):
        user_id = uuid4()
        payload = decode_token(create_access_token(user_id=user_id, role="admin", email="a@test.com"))
        assert payload["sub"] == str(user_id)

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": str(uuid4()), "iat": int(past.timestamp()), "exp": int((past + timedelta(minutes=1)).timestamp())},
            get_settings().JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": str(uuid4())}, "some-other-secret-that-is-long-enough-0000", algorithm="HS256")
        with pytest.raises(jwt.InvalidSignatureError):
            decode_token(token)

    def test_tampered_token(self):
        token = create_access_token(user_id=uuid4(), role="user", email="user@test.com")
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}x.{signature}"
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(tampered)

    def test_garbage(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not-a-token")

    def test_empty_secret_is_rejected(self, jwt_env):
        jwt_env(JWT_SECRET="")
        with pytest.raises(ValueError, match="JWT_SECRET"):
            create_access_token(user_id=uuid4(), role="user", email="user@test.com")
