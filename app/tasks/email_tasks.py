"""
Celery tasks for email operations.

Handles asynchronous email sending with retry logic.
"""

import logging
from typing import Optional
from celery import shared_task
from app.services.email_service import get_email_service

logger = logging.getLogger(__name__)

RETRY_OPTIONS = dict(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max 10 minutes between retries
    retry_jitter=True,
)


class EmailDeliveryError(Exception):
    pass


@shared_task(name="send_otp_email_task", **RETRY_OPTIONS)
def send_otp_email_task(self, to_email: str, otp_code: str, expires_in_minutes: int = 5):
    """
    Send a password-reset OTP.

    Retried with exponential backoff; the code itself is never logged.
    """
    logger.info(f"Sending OTP email to {to_email} (attempt {self.request.retries + 1})")

    if not get_email_service().send_otp_email(to_email, otp_code, expires_in_minutes):
        raise EmailDeliveryError(f"Failed to send OTP email to {to_email}")

    return {"status": "success", "email": to_email}


@shared_task(name="send_verification_email_task", **RETRY_OPTIONS)
def send_verification_email_task(self, to_email: str, verification_link: str, user_name: Optional[str] = None):
    logger.info(f"Sending verification email to {to_email} (attempt {self.request.retries + 1})")

    if not get_email_service().send_verification_email(to_email, verification_link, user_name):
        if self.request.retries >= self.max_retries:
            logger.error(f"All retry attempts exhausted for {to_email}")
        raise EmailDeliveryError(f"Failed to send verification email to {to_email}")

    return {"status": "success", "email": to_email}


@shared_task(name="send_password_changed_email_task", **RETRY_OPTIONS)
def send_password_changed_email_task(self, to_email: str):
    if not get_email_service().send_password_changed_email(to_email):
        raise EmailDeliveryError(f"Failed to send password change notice to {to_email}")

    return {"status": "success", "email": to_email}
