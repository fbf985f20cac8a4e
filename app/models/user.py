"""
User model for authentication.

Besides credentials the row carries the transient state of the password-reset
flow: an OTP challenge (otp_hash, otp_generated_at, otp_attempts) or a reset
token (reset_token, reset_token_expiry). At most one of the two is live.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Integer, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Authentication credentials
    username = Column(String(50), nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(String, nullable=False)

    # Account status
    email_verified = Column(Boolean, default=False, nullable=False)
    account_locked = Column(Boolean, default=False, nullable=False)

    # OTP challenge
    otp_hash = Column(String, nullable=True)
    otp_generated_at = Column(DateTime(timezone=True), nullable=True)
    otp_attempts = Column(Integer, default=0, nullable=False)

    # Password reset credential (issued after a successful OTP)
    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)

    # Bumped on every password change; tokens carrying an older value are rejected
    session_version = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    email_verifications = relationship("EmailVerification", back_populates="user", cascade="all, delete-orphan")

    def to_public_dict(self) -> dict:
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "email_verified": self.email_verified,
        }

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
