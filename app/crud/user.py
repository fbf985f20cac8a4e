"""
CRUD operations for the User model.

Database errors are translated into the API error taxonomy here, so callers
only ever see AppError subclasses.
"""

import logging
import uuid
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AppError, ConflictError
from app.core.security import utcnow
from app.models.user import User

logger = logging.getLogger(__name__)


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during {action}: {e}")
        raise AppError(f"Failed to {action}")


def get_by_email(db: Session, email: str) -> Optional[User]:
    """Look up a user by (already normalized) email."""
    return db.query(User).filter(User.email == email).first()


def get_by_id(db: Session, user_id: Union[str, uuid.UUID]) -> Optional[User]:
    if isinstance(user_id, str):
        try:
            user_id = uuid.UUID(user_id)
        except ValueError:
            return None
    return db.query(User).filter(User.id == user_id).first()


def create(db: Session, username: str, email: str, password_hash: str) -> User:
    """
    Insert a new, unverified and unlocked user.

    Raises:
        ConflictError: the email is already registered (unique violation)
    """
    user = User(
        id=uuid.uuid4(),
        username=username,
        email=email,
        password_hash=password_hash,
        email_verified=False,
        account_locked=False,
        otp_attempts=0,
        session_version=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already registered")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error creating user: {e}")
        raise AppError("Failed to create user")

    db.refresh(user)
    return user


def update_otp_data(db: Session, user: User, **fields) -> User:
    """
    Write OTP / reset-token / lock fields onto a user and commit.

    Example:
        update_otp_data(db, user, otp_hash=None, otp_generated_at=None)
    """
    for name, value in fields.items():
        setattr(user, name, value)
    _commit(db, "update OTP")
    return user


def update_password(db: Session, user: User, password_hash: str, **extra_fields) -> User:
    """
    Store a new password hash, retire any reset token and stamp the change.
    """
    user.password_hash = password_hash
    user.reset_token = None
    user.reset_token_expiry = None
    user.password_changed_at = utcnow()
    for name, value in extra_fields.items():
        setattr(user, name, value)
    _commit(db, "update password")
    return user


def touch_last_login(db: Session, user: User) -> None:
    user.last_login_at = utcnow()
    _commit(db, "update last login")


def mark_email_verified(db: Session, user: User) -> None:
    user.email_verified = True
    _commit(db, "verify email")
