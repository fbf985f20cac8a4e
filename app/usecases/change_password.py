import logging

from sqlalchemy.orm import Session

from app.core.errors import AuthFailureError, BadRequestError
from app.core.security import PasswordHasher
from app.core.validation import validate_password
from app.crud import user as user_crud
from app.models.user import User
from app.services.audit_service import AuditContext, AuditService
from app.services.notifications import EmailDispatcher

logger = logging.getLogger(__name__)


def _require(value, message: str) -> None:
    if not value or not isinstance(value, str) or not value.strip():
        raise BadRequestError(message)


class ChangePassword:
    """Authenticated password change, proven by the current password."""

    def __init__(self, db: Session, hasher: PasswordHasher, email_dispatcher: EmailDispatcher, audit: AuditService):
        self.db = db
        self.hasher = hasher
        self.email_dispatcher = email_dispatcher
        self.audit = audit

    def execute(self, user: User, current_password, new_password, context: AuditContext = None) -> dict:
        _require(current_password, "Current password is required")
        _require(new_password, "New password is required")
        validate_password(new_password)

        if not self.hasher.verify(current_password, user.password_hash):
            self.audit.log("PASSWORD_CHANGE_INVALID_CURRENT", user.email, False, context)
            raise AuthFailureError("Current password is incorrect")

        if self.hasher.verify(new_password, user.password_hash):
            self.audit.log("PASSWORD_CHANGE_SAME_PASSWORD", user.email, False, context)
            raise BadRequestError("New password must be different from your current password")

        user_crud.update_password(
            self.db,
            user,
            self.hasher.hash(new_password),
            session_version=(user.session_version or 0) + 1,
        )
        logger.info(f"Password changed for {user.email}")

        self.email_dispatcher.send_password_changed(user.email)
        self.audit.log("PASSWORD_CHANGE_SUCCESS", user.email, True, context)

        return {"message": "Password changed successfully!"}
