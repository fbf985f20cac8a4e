"""
Security utilities for JWT authentication and password hashing.

Tokens are HS256-signed JWTs carrying issuer/audience claims and the user's
session_version, so a password change invalidates every token issued before it.
Passwords and OTP codes are hashed with bcrypt through passlib.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import Settings
from app.core.errors import AuthFailureError, BadRequestError

BCRYPT_MAX_BYTES = 72


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class PasswordHasher:
    """bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: int):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, secret: str) -> str:
        # Bcrypt has a 72-byte limit - truncate if necessary
        return self.context.hash(secret.encode("utf-8")[:BCRYPT_MAX_BYTES])

    def verify(self, secret: str, hashed: Optional[str]) -> bool:
        if not hashed:
            return False
        try:
            return self.context.verify(secret.encode("utf-8")[:BCRYPT_MAX_BYTES], hashed)
        except ValueError:
            # Malformed hash stored on the row
            return False


def generate_numeric_code(length: int) -> str:
    """Uniformly random code with exactly `length` digits and no leading zero."""
    low = 10 ** (length - 1)
    high = 10 ** length
    return str(low + secrets.randbelow(high - low))


def generate_reset_token() -> str:
    """64 hex characters from 32 random bytes."""
    return secrets.token_hex(32)


class TokenService:
    """Issue and verify access/refresh JWTs."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.issuer = settings.JWT_ISSUER
        self.audience = settings.JWT_AUDIENCE
        self.access_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_expires = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def _encode(self, claims: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
        if not isinstance(claims, dict) or not claims:
            raise BadRequestError("Payload is required and must be an object")

        now = utcnow()
        to_encode = claims.copy()
        to_encode.update({
            "type": token_type,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": now + expires_delta,
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        return self._encode(claims, "access", expires_delta or self.access_expires)

    def create_refresh_token(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        return self._encode(claims, "refresh", expires_delta or self.refresh_expires)

    def decode_token(self, token: str, expected_type: str = "access") -> Dict[str, Any]:
        """
        Decode and validate a JWT.

        Raises:
            AuthFailureError: expired, badly signed, wrong issuer/audience or wrong type
        """
        if not token or not isinstance(token, str):
            raise BadRequestError("Token is required and must be a string")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            raise AuthFailureError("Token has expired")
        except JWTError:
            raise AuthFailureError("Invalid token")

        if payload.get("type") != expected_type or not payload.get("sub"):
            raise AuthFailureError("Invalid token")
        return payload
