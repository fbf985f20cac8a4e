"""
Email verification: confirm a link token, or send a fresh one.
"""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import BadRequestError
from app.core.rate_limiter import RateLimiter
from app.core.security import as_utc, utcnow
from app.core.validation import validate_email
from app.crud import email_verification as verification_crud
from app.crud import user as user_crud
from app.services.audit_service import AuditContext, AuditService
from app.services.notifications import EmailDispatcher

logger = logging.getLogger(__name__)

MIN_VERIFICATION_TOKEN_LENGTH = 32
RESEND_MESSAGE = "Verification email sent successfully if the account requires verification"


class VerifyEmail:

    def __init__(self, db: Session, audit: AuditService):
        self.db = db
        self.audit = audit

    def execute(self, token: str, context: AuditContext = None) -> dict:
        if not token or len(token) < MIN_VERIFICATION_TOKEN_LENGTH:
            raise BadRequestError("Invalid verification token")

        verification = verification_crud.get_by_token(self.db, token)
        if not verification:
            raise BadRequestError("Invalid verification token")

        user = verification.user
        if verification.is_used or utcnow() > as_utc(verification.expires_at):
            self.audit.log("EMAIL_VERIFICATION_EXPIRED", user.email, False, context)
            raise BadRequestError("Verification token expired. Please request a new one")

        verification_crud.mark_used(self.db, verification)
        user_crud.mark_email_verified(self.db, user)

        logger.info(f"User {user.email} verified their email")
        self.audit.log("EMAIL_VERIFICATION_SUCCESS", user.email, True, context)
        return {"message": "Email verified successfully"}


class ResendVerification:
    """Same response whether or not the account exists or needs verifying."""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        email_dispatcher: EmailDispatcher,
        rate_limiter: RateLimiter,
        audit: AuditService,
    ):
        self.db = db
        self.settings = settings
        self.email_dispatcher = email_dispatcher
        self.rate_limiter = rate_limiter
        self.audit = audit

    def execute(self, email, context: AuditContext = None) -> dict:
        email = validate_email(email)

        self.rate_limiter.check_daily_limit(
            email,
            self.settings.VERIFICATION_MAX_DAILY_REQUESTS,
            scope="verification-daily",
            message="Daily verification email limit exceeded. Please try again tomorrow.",
        )

        user = user_crud.get_by_email(self.db, email)
        if not user or user.email_verified:
            self.audit.log("VERIFICATION_RESEND_SKIPPED", email, False, context)
            return {"message": RESEND_MESSAGE}

        verification = verification_crud.create_token(
            self.db, user.id, timedelta(hours=self.settings.EMAIL_VERIFICATION_EXPIRY_HOURS)
        )
        if not self.email_dispatcher.send_verification(user.email, verification.token, user.username):
            logger.error(f"Failed to queue verification email for {user.email}")

        self.audit.log("VERIFICATION_RESEND_SUCCESS", email, True, context)
        return {"message": RESEND_MESSAGE}
