"""
Periodic cleanup of expired authentication state.

Example celerybeat schedule:
```python
beat_schedule = {
    'cleanup-expired-auth-state': {
        'task': 'cleanup_expired_auth_state',
        'schedule': crontab(minute='*/15'),
    },
}
```
"""

import logging
from datetime import timedelta

from celery import shared_task
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import session_scope
from app.core.security import utcnow
from app.crud import email_verification as verification_crud
from app.models.user import User

logger = logging.getLogger(__name__)


def cleanup_expired_auth_state(db: Session, otp_expiry_seconds: int) -> dict:
    """
    Clear reset tokens past their expiry, OTP challenges older than the OTP
    lifetime, and verification tokens that were used or have expired.
    """
    now = utcnow()

    reset_tokens = db.query(User).filter(
        User.reset_token.isnot(None),
        User.reset_token_expiry < now
    ).update(
        {"reset_token": None, "reset_token_expiry": None},
        synchronize_session=False
    )

    otp_cutoff = now - timedelta(seconds=otp_expiry_seconds)
    otp_challenges = db.query(User).filter(
        User.otp_hash.isnot(None),
        User.otp_generated_at < otp_cutoff
    ).update(
        {"otp_hash": None, "otp_generated_at": None, "otp_attempts": 0},
        synchronize_session=False
    )
    db.commit()

    verification_tokens = verification_crud.delete_used_or_expired(db)

    return {
        "reset_tokens": reset_tokens,
        "otp_challenges": otp_challenges,
        "verification_tokens": verification_tokens,
    }


@shared_task(name="cleanup_expired_auth_state")
def cleanup_expired_auth_state_task():
    try:
        with session_scope() as db:
            cleared = cleanup_expired_auth_state(db, settings.OTP_EXPIRY_SECONDS)
    except Exception as e:
        logger.error(f"Error cleaning up auth state: {str(e)}")
        raise

    logger.info(f"Cleaned up expired auth state: {cleared}")
    return {"status": "success", **cleared}
