"""
OTP challenge lifecycle for password resets.

States on the user row:
    no challenge -> OTP pending -> (expired | locked out | reset token issued)

Issuing an OTP clears any reset token, and issuing a reset token clears the
OTP, so at most one credential is live per user.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import BadRequestError
from app.core.security import PasswordHasher, as_utc, generate_numeric_code, generate_reset_token, utcnow
from app.crud import user as user_crud
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class IssuedOTP:
    code: str
    expires_at: datetime


class OTPService:

    def __init__(self, settings: Settings, hasher: PasswordHasher):
        self.settings = settings
        self.hasher = hasher

    def create_otp(self, db: Session, user: User) -> IssuedOTP:
        """Generate, hash and store a fresh code; the plain code is returned once."""
        code = generate_numeric_code(self.settings.OTP_LENGTH)
        generated_at = utcnow()

        user_crud.update_otp_data(
            db,
            user,
            otp_hash=self.hasher.hash(code),
            otp_generated_at=generated_at,
            otp_attempts=0,
            reset_token=None,
            reset_token_expiry=None,
        )

        return IssuedOTP(code=code, expires_at=generated_at + timedelta(seconds=self.settings.OTP_EXPIRY_SECONDS))

    def validate_otp(self, db: Session, user: User, otp_code: str) -> None:
        """
        Check a candidate code against the stored challenge.

        Raises:
            BadRequestError: no challenge, expired challenge, mismatch (with the
                remaining attempts), or lockout on the final mismatch
        """
        if not user.otp_hash or not user.otp_generated_at:
            raise BadRequestError("No OTP found. Please request a new one")

        elapsed = (utcnow() - as_utc(user.otp_generated_at)).total_seconds()
        if elapsed > self.settings.OTP_EXPIRY_SECONDS:
            user_crud.update_otp_data(db, user, otp_hash=None, otp_generated_at=None, otp_attempts=0)
            raise BadRequestError("OTP expired. Please request a new one")

        if self.hasher.verify(otp_code, user.otp_hash):
            return

        attempts = (user.otp_attempts or 0) + 1
        max_attempts = self.settings.OTP_MAX_ATTEMPTS
        if attempts >= max_attempts:
            user_crud.update_otp_data(db, user, otp_attempts=attempts, account_locked=True)
            logger.warning(f"Account {user.email} locked after {attempts} invalid OTP attempts")
            raise BadRequestError("Too many invalid attempts. Account has been locked")

        user_crud.update_otp_data(db, user, otp_attempts=attempts)
        raise BadRequestError(f"Invalid OTP. {max_attempts - attempts} attempts remaining")

    def generate_reset_token(self, db: Session, user: User) -> str:
        """Swap the OTP challenge for a reset token."""
        token = generate_reset_token()
        user_crud.update_otp_data(
            db,
            user,
            otp_hash=None,
            otp_generated_at=None,
            otp_attempts=0,
            reset_token=token,
            reset_token_expiry=utcnow() + timedelta(seconds=self.settings.RESET_TOKEN_EXPIRY_SECONDS),
        )
        return token
