import logging

from sqlalchemy.orm import Session

from app.core.errors import AuthFailureError
from app.core.security import TokenService
from app.core.validation import validate_refresh_token
from app.crud import user as user_crud
from app.usecases.session_tokens import issue_tokens

logger = logging.getLogger(__name__)


class RefreshToken:
    """Trade a valid refresh token for a new access/refresh pair."""

    def __init__(self, db: Session, token_service: TokenService):
        self.db = db
        self.token_service = token_service

    def execute(self, refresh_token) -> dict:
        validate_refresh_token(refresh_token)

        try:
            payload = self.token_service.decode_token(refresh_token, expected_type="refresh")
        except AuthFailureError as e:
            if e.message == "Token has expired":
                raise
            raise AuthFailureError("Invalid refresh token")

        user = user_crud.get_by_id(self.db, payload["sub"])
        if not user or user.account_locked:
            raise AuthFailureError("Invalid refresh token")

        if payload.get("sv", 0) != (user.session_version or 0):
            logger.info(f"Refresh rejected for {user.email}: session was invalidated")
            raise AuthFailureError("Session has been invalidated. Please log in again")

        return {
            "message": "Token refreshed successfully",
            "metadata": issue_tokens(self.token_service, user),
        }
