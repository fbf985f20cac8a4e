import logging

from sqlalchemy.orm import Session

from app.core.errors import AuthFailureError, BadRequestError
from app.core.security import PasswordHasher, TokenService
from app.core.validation import validate_email
from app.crud import user as user_crud
from app.services.audit_service import AuditContext, AuditService
from app.usecases.session_tokens import issue_tokens

logger = logging.getLogger(__name__)


class LoginUser:

    def __init__(self, db: Session, hasher: PasswordHasher, token_service: TokenService, audit: AuditService):
        self.db = db
        self.hasher = hasher
        self.token_service = token_service
        self.audit = audit

    def execute(self, email, password, context: AuditContext = None) -> dict:
        if not email or not password:
            raise BadRequestError("Email and password are required.")
        email = validate_email(email)

        user = user_crud.get_by_email(self.db, email)
        if not user:
            self.audit.log("LOGIN_USER_NOT_FOUND", email, False, context)
            raise AuthFailureError("Invalid credentials")

        if user.account_locked:
            self.audit.log("LOGIN_ACCOUNT_LOCKED", email, False, context)
            raise AuthFailureError("Account is locked. Please contact support.")

        if not isinstance(password, str) or not self.hasher.verify(password, user.password_hash):
            self.audit.log("LOGIN_INVALID_PASSWORD", email, False, context)
            raise AuthFailureError("Invalid credentials")

        user_crud.touch_last_login(self.db, user)
        logger.info(f"User logged in: {user.email} (verified: {user.email_verified})")
        self.audit.log("LOGIN_SUCCESS", email, True, context)

        return {
            "message": "Login successful!",
            "metadata": {**issue_tokens(self.token_service, user), "user": user.to_public_dict()},
        }
