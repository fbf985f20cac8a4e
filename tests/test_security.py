"""
Unit tests for hashing, code generation and JWT handling.
"""

from datetime import timedelta

import pytest
from jose import jwt

from app.core.errors import AuthFailureError, BadRequestError
from app.core.security import PasswordHasher, TokenService, generate_numeric_code, generate_reset_token


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens(test_settings):
    return TokenService(test_settings)


class TestPasswordHasher:

    def test_hash_and_verify(self, hasher):
        hashed = hasher.hash("Sup3r$ecretKey!")

        assert hashed != "Sup3r$ecretKey!"
        assert hasher.verify("Sup3r$ecretKey!", hashed)
        assert not hasher.verify("Sup3r$ecretKey?", hashed)

    def test_verify_without_hash(self, hasher):
        assert hasher.verify("anything", None) is False

    def test_salted(self, hasher):
        assert hasher.hash("123456") != hasher.hash("123456")


class TestGenerators:

    def test_numeric_code(self):
        for _ in range(50):
            code = generate_numeric_code(6)
            assert len(code) == 6
            assert code.isdigit()

    def test_reset_token(self):
        token = generate_reset_token()
        assert len(token) == 64
        int(token, 16)
        assert token != generate_reset_token()


class TestTokenService:

    def test_round_trip_claims(self, tokens, test_settings):
        token = tokens.create_access_token({"sub": "user-1", "sv": 2})

        payload = tokens.decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["sv"] == 2
        assert payload["type"] == "access"
        assert payload["iss"] == test_settings.JWT_ISSUER
        assert payload["aud"] == test_settings.JWT_AUDIENCE

    def test_type_is_enforced(self, tokens):
        refresh = tokens.create_refresh_token({"sub": "user-1"})

        assert tokens.decode_token(refresh, expected_type="refresh")["sub"] == "user-1"
        with pytest.raises(AuthFailureError):
            tokens.decode_token(refresh)

    def test_expired(self, tokens):
        token = tokens.create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5))

        with pytest.raises(AuthFailureError) as exc:
            tokens.decode_token(token)
        assert exc.value.message == "Token has expired"

    def test_wrong_audience(self, tokens, test_settings):
        other = TokenService(test_settings.model_copy(update={"JWT_AUDIENCE": "someone-else"}))
        token = other.create_access_token({"sub": "user-1"})

        with pytest.raises(AuthFailureError) as exc:
            tokens.decode_token(token)
        assert exc.value.message == "Invalid token"

    def test_wrong_secret(self, tokens, test_settings):
        forged = jwt.encode(
            {"sub": "user-1", "type": "access", "iss": test_settings.JWT_ISSUER, "aud": test_settings.JWT_AUDIENCE},
            "not-the-secret",
            algorithm="HS256",
        )

        with pytest.raises(AuthFailureError):
            tokens.decode_token(forged)

    def test_empty_claims_rejected(self, tokens):
        with pytest.raises(BadRequestError):
            tokens.create_access_token({})
