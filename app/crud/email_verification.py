"""
CRUD operations for email verification tokens.
"""

import secrets
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.security import utcnow
from app.models.email_verification import EmailVerification


def create_token(db: Session, user_id: uuid.UUID, expires_in: timedelta) -> EmailVerification:
    """
    Issue a fresh verification token for a user.

    Previous unused tokens are marked used so only the newest link works.
    """
    db.query(EmailVerification).filter(
        EmailVerification.user_id == user_id,
        EmailVerification.is_used == False  # noqa: E712
    ).update({"is_used": True})

    now = utcnow()
    verification = EmailVerification(
        id=uuid.uuid4(),
        user_id=user_id,
        token=secrets.token_urlsafe(32),
        expires_at=now + expires_in,
        created_at=now,
        is_used=False,
    )
    db.add(verification)
    db.commit()
    db.refresh(verification)
    return verification


def get_by_token(db: Session, token: str) -> Optional[EmailVerification]:
    return db.query(EmailVerification).filter(EmailVerification.token == token).first()


def mark_used(db: Session, verification: EmailVerification) -> None:
    verification.is_used = True
    db.commit()


def delete_used_or_expired(db: Session) -> int:
    """Delete tokens that were consumed or are past their expiry. Returns the count."""
    deleted = db.query(EmailVerification).filter(
        or_(EmailVerification.is_used == True, EmailVerification.expires_at < utcnow())  # noqa: E712
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
