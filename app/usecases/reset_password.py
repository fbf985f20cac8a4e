import logging
import secrets

from sqlalchemy.orm import Session

from app.core.errors import AuthFailureError, BadRequestError, NotFoundError
from app.core.security import PasswordHasher, as_utc, utcnow
from app.core.validation import validate_email, validate_password, validate_reset_token
from app.crud import user as user_crud
from app.services.audit_service import AuditContext, AuditService
from app.services.notifications import EmailDispatcher

logger = logging.getLogger(__name__)


class ResetPassword:
    """
    Consume a reset token to set a new password.

    The token is single-use: it is cleared on success and on expiry. The
    session_version bump invalidates every token issued before the reset.
    """

    def __init__(self, db: Session, hasher: PasswordHasher, email_dispatcher: EmailDispatcher, audit: AuditService):
        self.db = db
        self.hasher = hasher
        self.email_dispatcher = email_dispatcher
        self.audit = audit

    def execute(self, email, reset_token, new_password, context: AuditContext = None) -> dict:
        # email, then token, then password
        email = validate_email(email)
        validate_reset_token(reset_token)
        validate_password(new_password)

        user = user_crud.get_by_email(self.db, email)
        if not user:
            self.audit.log("PASSWORD_RESET_USER_NOT_FOUND", email, False, context)
            raise NotFoundError("User not found")

        if not user.reset_token or not secrets.compare_digest(user.reset_token.encode("utf-8"), reset_token.encode("utf-8")):
            self.audit.log("PASSWORD_RESET_INVALID_TOKEN", email, False, context)
            raise AuthFailureError("Invalid or missing reset token")

        expiry = as_utc(user.reset_token_expiry)
        if expiry is None or utcnow() > expiry:
            user_crud.update_otp_data(self.db, user, reset_token=None, reset_token_expiry=None)
            self.audit.log("PASSWORD_RESET_TOKEN_EXPIRED", email, False, context)
            raise AuthFailureError("Reset token expired. Please request a new OTP")

        if self.hasher.verify(new_password, user.password_hash):
            self.audit.log("PASSWORD_RESET_SAME_PASSWORD", email, False, context)
            raise BadRequestError("New password must be different from your current password")

        user_crud.update_password(
            self.db,
            user,
            self.hasher.hash(new_password),
            session_version=(user.session_version or 0) + 1,
        )
        logger.info(f"Password reset for {email}")

        self.email_dispatcher.send_password_changed(email)
        self.audit.log("PASSWORD_RESET_SUCCESS", email, True, context)

        return {"message": "Password reset successful. Please log in with your new password."}
