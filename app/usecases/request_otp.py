import logging

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import BadRequestError
from app.core.rate_limiter import RateLimiter
from app.core.validation import validate_email
from app.crud import user as user_crud
from app.services.audit_service import AuditContext, AuditService
from app.services.notifications import EmailDispatcher
from app.services.otp_service import OTPService

logger = logging.getLogger(__name__)

GENERIC_OTP_MESSAGE = "If this email exists in our system, an OTP has been sent."


class RequestOTP:
    """
    Start a password reset by emailing a one-time code.

    Unknown emails get the same 200 response as real ones so the endpoint
    cannot be used to discover accounts.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        otp_service: OTPService,
        email_dispatcher: EmailDispatcher,
        rate_limiter: RateLimiter,
        audit: AuditService,
    ):
        self.db = db
        self.settings = settings
        self.otp_service = otp_service
        self.email_dispatcher = email_dispatcher
        self.rate_limiter = rate_limiter
        self.audit = audit

    def execute(self, email, context: AuditContext = None) -> dict:
        email = validate_email(email)

        self.rate_limiter.check_daily_limit(email, self.settings.OTP_MAX_DAILY_REQUESTS, scope="otp-daily")

        user = user_crud.get_by_email(self.db, email)
        if not user:
            self.audit.log("OTP_REQUEST_NONEXISTENT_EMAIL", email, False, context)
            return {"message": GENERIC_OTP_MESSAGE}

        if user.account_locked:
            self.audit.log("OTP_REQUEST_ACCOUNT_LOCKED", email, False, context)
            raise BadRequestError("Account is locked. Please contact support.")

        if not user.email_verified:
            self.audit.log("OTP_REQUEST_EMAIL_UNVERIFIED", email, False, context)
            raise BadRequestError("Email not verified. Please verify your email first.")

        otp = self.otp_service.create_otp(self.db, user)

        if not self.email_dispatcher.send_otp(email, otp.code, otp.expires_at):
            logger.error(f"Failed to queue OTP email for {email}")

        self.audit.log("OTP_SENT_SUCCESS", email, True, context)
        return {"message": "OTP sent to your email."}
