import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import AppError, BadRequestError, NotFoundError
from app.core.rate_limiter import RateLimiter
from app.core.validation import validate_email, validate_otp_format
from app.crud import user as user_crud
from app.services.audit_service import AuditContext, AuditService
from app.services.otp_service import OTPService

logger = logging.getLogger(__name__)


class ValidateOTP:
    """Exchange a correct, unexpired OTP for a short-lived reset token."""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        otp_service: OTPService,
        rate_limiter: RateLimiter,
        audit: AuditService,
    ):
        self.db = db
        self.settings = settings
        self.otp_service = otp_service
        self.rate_limiter = rate_limiter
        self.audit = audit

    def execute(self, email, otp, context: AuditContext = None) -> dict:
        email = validate_email(email)
        validate_otp_format(otp)

        self.rate_limiter.check_attempt_limit(
            email,
            self.settings.OTP_ATTEMPT_LIMIT,
            self.settings.OTP_ATTEMPT_WINDOW_SECONDS,
            scope="otp-attempts",
        )

        user = user_crud.get_by_email(self.db, email)
        if not user:
            self.audit.log("OTP_VALIDATION_USER_NOT_FOUND", email, False, context)
            raise NotFoundError("User not found")

        if user.account_locked:
            self.audit.log("OTP_VALIDATION_ACCOUNT_LOCKED", email, False, context)
            raise BadRequestError("Account is locked. Please contact support.")

        try:
            self.otp_service.validate_otp(self.db, user, otp)
        except AppError as e:
            self.audit.log("OTP_VALIDATION_FAILED", email, False, replace(context or AuditContext(), additional_info=e.message))
            raise

        reset_token = self.otp_service.generate_reset_token(self.db, user)
        self.rate_limiter.clear_attempts(email, scope="otp-attempts")

        logger.info(f"OTP validated for {email}, reset token issued")
        self.audit.log("OTP_VALIDATION_SUCCESS", email, True, context)

        return {
            "message": "OTP verified successfully.",
            "metadata": {"resetToken": reset_token},
        }

