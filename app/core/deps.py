"""
FastAPI dependencies for authentication and request context.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.container import Container, get_container
from app.core.api_rate_limiter import get_client_ip
from app.core.database import get_db
from app.core.errors import AuthFailureError, BadRequestError
from app.crud import user as user_crud
from app.models.user import User
from app.services.audit_service import AuditContext

# HTTP Bearer token scheme (Authorization: Bearer <token>)
security = HTTPBearer(auto_error=False)

AUTHENTICATION_INVALID = "Authentication Invalid"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    container: Container = Depends(get_container),
) -> User:
    """
    Extract and validate the current user from the bearer token.

    The token's `sv` claim must match the user's session_version, so tokens
    issued before a password change or reset stop working.

    Raises:
        AuthFailureError 401: missing/invalid/expired token, unknown or locked
            user, or a stale session version
    """
    if credentials is None or not credentials.credentials:
        raise AuthFailureError(AUTHENTICATION_INVALID)

    try:
        payload = container.token_service.decode_token(credentials.credentials)
    except (AuthFailureError, BadRequestError):
        raise AuthFailureError(AUTHENTICATION_INVALID)

    user = user_crud.get_by_id(db, payload["sub"])
    if user is None or user.account_locked:
        raise AuthFailureError(AUTHENTICATION_INVALID)

    if payload.get("sv", 0) != (user.session_version or 0):
        raise AuthFailureError(AUTHENTICATION_INVALID)

    return user


def get_audit_context(request: Request) -> AuditContext:
    return AuditContext(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
