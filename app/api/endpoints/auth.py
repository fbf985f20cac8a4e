"""
Authentication endpoints.

Public:
- POST /register, /login, /refresh
- POST /request-otp, /validate-otp, /reset-password (OTP password reset)
- GET  /verify-email/{token}, POST /resend-verification

Bearer-protected:
- GET /me, POST /change-password, POST /logout

Every route returns {"message": ..., "metadata": ...} on success; errors are
rendered by the handlers in app.core.errors.
"""

import logging
from fastapi import APIRouter, Depends, status

from app.container import (
    Container,
    get_container,
    get_change_password,
    get_login_user,
    get_refresh_token,
    get_register_user,
    get_request_otp,
    get_resend_verification,
    get_reset_password,
    get_validate_otp,
    get_verify_email,
)
from app.core.api_rate_limiter import route_rate_limit
from app.core.deps import get_audit_context, get_current_user
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    ValidateOTPRequest,
)
from app.services.audit_service import AuditContext
from app.usecases.change_password import ChangePassword
from app.usecases.email_verification import ResendVerification, VerifyEmail
from app.usecases.login_user import LoginUser
from app.usecases.refresh_token import RefreshToken
from app.usecases.register_user import RegisterUser
from app.usecases.request_otp import RequestOTP
from app.usecases.reset_password import ResetPassword
from app.usecases.validate_otp import ValidateOTP

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)

ENVELOPE = dict(response_model=MessageResponse, response_model_exclude_none=True)


@router.post("/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(route_rate_limit("register"))], **ENVELOPE)
def register(
    request: RegisterRequest,
    usecase: RegisterUser = Depends(get_register_user),
    context: AuditContext = Depends(get_audit_context),
):
    """Create an account and return an access/refresh token pair."""
    return usecase.execute(request.username, request.email, request.password, context)


@router.post("/login", dependencies=[Depends(route_rate_limit("login"))], **ENVELOPE)
def login(
    request: LoginRequest,
    usecase: LoginUser = Depends(get_login_user),
    context: AuditContext = Depends(get_audit_context),
):
    return usecase.execute(request.email, request.password, context)


@router.post("/request-otp", dependencies=[Depends(route_rate_limit("otp-request"))], **ENVELOPE)
def request_otp(
    request: EmailRequest,
    usecase: RequestOTP = Depends(get_request_otp),
    context: AuditContext = Depends(get_audit_context),
):
    """
    Email a one-time code for a password reset.

    Always answers 200 for well-formed emails, whether or not an account exists.
    """
    return usecase.execute(request.email, context)


@router.post("/validate-otp", dependencies=[Depends(route_rate_limit("otp-validate"))], **ENVELOPE)
def validate_otp(
    request: ValidateOTPRequest,
    usecase: ValidateOTP = Depends(get_validate_otp),
    context: AuditContext = Depends(get_audit_context),
):
    """Exchange a valid OTP for a reset token (metadata.resetToken)."""
    return usecase.execute(request.email, request.otp, context)


@router.post("/reset-password", dependencies=[Depends(route_rate_limit("password-reset"))], **ENVELOPE)
def reset_password(
    request: ResetPasswordRequest,
    usecase: ResetPassword = Depends(get_reset_password),
    context: AuditContext = Depends(get_audit_context),
):
    return usecase.execute(request.email, request.reset_token, request.new_password, context)


@router.post("/refresh", dependencies=[Depends(route_rate_limit("refresh"))], **ENVELOPE)
def refresh_token(
    request: RefreshTokenRequest,
    usecase: RefreshToken = Depends(get_refresh_token),
):
    return usecase.execute(request.refresh_token)


@router.get("/verify-email/{token}", **ENVELOPE)
def verify_email(
    token: str,
    usecase: VerifyEmail = Depends(get_verify_email),
    context: AuditContext = Depends(get_audit_context),
):
    return usecase.execute(token, context)


@router.post("/resend-verification", dependencies=[Depends(route_rate_limit("resend-verification"))], **ENVELOPE)
def resend_verification(
    request: EmailRequest,
    usecase: ResendVerification = Depends(get_resend_verification),
    context: AuditContext = Depends(get_audit_context),
):
    return usecase.execute(request.email, context)


# ===================== PROTECTED ROUTES =====================

@router.get("/me", **ENVELOPE)
def get_me(current_user: User = Depends(get_current_user)):
    return {
        "message": "User profile retrieved successfully!",
        "metadata": {"user": current_user.to_public_dict()},
    }


@router.post("/change-password", dependencies=[Depends(route_rate_limit("change-password"))], **ENVELOPE)
def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    usecase: ChangePassword = Depends(get_change_password),
    context: AuditContext = Depends(get_audit_context),
):
    context.user_id = current_user.id
    return usecase.execute(current_user, request.current_password, request.new_password, context)


@router.post("/logout", **ENVELOPE)
def logout(
    current_user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
    context: AuditContext = Depends(get_audit_context),
):
    """
    Tokens are stateless; the client discards them. A password change is
    what revokes every outstanding token server-side.
    """
    context.user_id = current_user.id
    container.audit.log("LOGOUT", current_user.email, True, context)
    logger.info(f"User logged out: {current_user.email}")
    return {"message": "Logout successful!"}
