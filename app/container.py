"""
Service wiring.

Process-wide collaborators (settings, hasher, token service, rate limiter,
email dispatcher, audit sink) are built once at startup into a typed
Container stored on `app.state`. Use-cases are assembled per request from
the container plus that request's database session.
"""

from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import SessionLocal, get_db
from app.core.rate_limiter import RateLimiter, build_rate_limiter
from app.core.security import PasswordHasher, TokenService
from app.services.audit_service import AuditService
from app.services.notifications import EmailDispatcher
from app.services.otp_service import OTPService
from app.usecases.change_password import ChangePassword
from app.usecases.email_verification import ResendVerification, VerifyEmail
from app.usecases.login_user import LoginUser
from app.usecases.refresh_token import RefreshToken
from app.usecases.register_user import RegisterUser
from app.usecases.request_otp import RequestOTP
from app.usecases.reset_password import ResetPassword
from app.usecases.validate_otp import ValidateOTP


@dataclass
class Container:
    settings: Settings
    hasher: PasswordHasher
    token_service: TokenService
    rate_limiter: RateLimiter
    email_dispatcher: EmailDispatcher
    audit: AuditService
    otp_service: OTPService


def build_container(
    settings: Settings,
    session_factory: Callable[[], Session] = SessionLocal,
    rate_limiter: RateLimiter = None,
    email_dispatcher: EmailDispatcher = None,
) -> Container:
    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    return Container(
        settings=settings,
        hasher=hasher,
        token_service=TokenService(settings),
        rate_limiter=rate_limiter or build_rate_limiter(settings),
        email_dispatcher=email_dispatcher or EmailDispatcher(settings),
        audit=AuditService(session_factory),
        otp_service=OTPService(settings, hasher),
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


# Per-request use-case providers

def get_register_user(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> RegisterUser:
    return RegisterUser(db, c.settings, c.hasher, c.token_service, c.email_dispatcher, c.audit)


def get_login_user(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> LoginUser:
    return LoginUser(db, c.hasher, c.token_service, c.audit)


def get_request_otp(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> RequestOTP:
    return RequestOTP(db, c.settings, c.otp_service, c.email_dispatcher, c.rate_limiter, c.audit)


def get_validate_otp(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> ValidateOTP:
    return ValidateOTP(db, c.settings, c.otp_service, c.rate_limiter, c.audit)


def get_reset_password(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> ResetPassword:
    return ResetPassword(db, c.hasher, c.email_dispatcher, c.audit)


def get_change_password(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> ChangePassword:
    return ChangePassword(db, c.hasher, c.email_dispatcher, c.audit)


def get_refresh_token(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> RefreshToken:
    return RefreshToken(db, c.token_service)


def get_verify_email(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> VerifyEmail:
    return VerifyEmail(db, c.audit)


def get_resend_verification(db: Session = Depends(get_db), c: Container = Depends(get_container)) -> ResendVerification:
    return ResendVerification(db, c.settings, c.email_dispatcher, c.rate_limiter, c.audit)
