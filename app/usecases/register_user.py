import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import ConflictError
from app.core.security import PasswordHasher, TokenService
from app.core.validation import validate_email, validate_password, validate_username
from app.crud import email_verification as verification_crud
from app.crud import user as user_crud
from app.services.audit_service import AuditContext, AuditService
from app.services.notifications import EmailDispatcher
from app.usecases.session_tokens import issue_tokens

logger = logging.getLogger(__name__)


class RegisterUser:
    """
    Create an unverified account, send the verification link and sign the
    user in straight away.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        hasher: PasswordHasher,
        token_service: TokenService,
        email_dispatcher: EmailDispatcher,
        audit: AuditService,
    ):
        self.db = db
        self.settings = settings
        self.hasher = hasher
        self.token_service = token_service
        self.email_dispatcher = email_dispatcher
        self.audit = audit

    def execute(self, username, email, password, context: AuditContext = None) -> dict:
        username = validate_username(username)
        email = validate_email(email)
        validate_password(password)

        if user_crud.get_by_email(self.db, email):
            self.audit.log("REGISTER_EMAIL_EXISTS", email, False, context)
            raise ConflictError("Email already registered")

        # The unique constraint still guards against a concurrent insert
        user = user_crud.create(self.db, username=username, email=email, password_hash=self.hasher.hash(password))
        logger.info(f"New user registered: {user.email}")

        verification = verification_crud.create_token(
            self.db, user.id, timedelta(hours=self.settings.EMAIL_VERIFICATION_EXPIRY_HOURS)
        )
        if not self.email_dispatcher.send_verification(user.email, verification.token, user.username):
            # User can ask for a new link through /resend-verification
            logger.error(f"Failed to queue verification email for {user.email}")

        self.audit.log("REGISTER_SUCCESS", email, True, context)

        return {
            "message": "Registered successfully!",
            "metadata": {**issue_tokens(self.token_service, user), "user": user.to_public_dict()},
        }
