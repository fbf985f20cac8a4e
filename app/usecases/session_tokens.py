from app.core.security import TokenService
from app.models.user import User


def token_claims(user: User) -> dict:
    return {
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "sv": user.session_version or 0,
    }


def issue_tokens(token_service: TokenService, user: User) -> dict:
    """Access + refresh pair bound to the user's current session_version."""
    claims = token_claims(user)
    return {
        "token": token_service.create_access_token(claims),
        "refreshToken": token_service.create_refresh_token(claims),
    }
