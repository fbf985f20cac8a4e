"""
AWS SES Email Service for OTP, verification and security notification emails.

Handles email formatting and AWS SES integration. Callers get a boolean
result; delivery problems are logged, never raised.
"""

import logging
from typing import Optional
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Service for sending emails via AWS SES.

    Supports both development (sandbox) and production modes.
    """

    def __init__(self):
        session_kwargs = {
            'region_name': settings.AWS_REGION,
        }

        # Add credentials if provided (otherwise uses IAM role)
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            session_kwargs['aws_access_key_id'] = settings.AWS_ACCESS_KEY_ID
            session_kwargs['aws_secret_access_key'] = settings.AWS_SECRET_ACCESS_KEY

        self.ses_client = boto3.client('ses', **session_kwargs)

    def _send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        try:
            response = self.ses_client.send_email(
                Source=f"{settings.AWS_SES_FROM_NAME} <{settings.AWS_SES_FROM_EMAIL}>",
                Destination={'ToAddresses': [to_email]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {
                        'Html': {'Data': html_body, 'Charset': 'UTF-8'},
                        'Text': {'Data': text_body, 'Charset': 'UTF-8'}
                    }
                }
            )

            message_id = response.get('MessageId')
            logger.info(f"Email '{subject}' sent to {to_email} (MessageId: {message_id})")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError: {error_code} - {error_message}")

            if error_code == 'MessageRejected':
                logger.error(f"Email rejected: {error_message}")
            elif error_code == 'MailFromDomainNotVerified':
                logger.error("Sender email not verified in SES")

            return False

        except BotoCoreError as e:
            logger.error(f"AWS BotoCoreError: {str(e)}")
            return False

    def send_otp_email(self, to_email: str, otp_code: str, expires_in_minutes: int) -> bool:
        """
        Send a password-reset OTP.

        Args:
            to_email: Recipient email address
            otp_code: numeric one-time code
            expires_in_minutes: lifetime shown to the user
        """
        subject = "Your password reset code - Blue Portfolio"
        html_body = _wrap_html(
            "Password reset code",
            f"""
            <p>Use the code below to reset your password:</p>
            <div style="font-size: 32px; font-weight: 700; letter-spacing: 8px; color: #1d4ed8; font-family: 'Courier New', monospace; text-align: center; padding: 24px; background: #f8f9fa; border-radius: 8px;">
                {otp_code}
            </div>
            <p>This code will expire in <strong>{expires_in_minutes} minutes</strong>.</p>
            <p style="color: #999999; font-size: 13px;">If you didn't request a password reset, you can safely ignore this email.</p>
            """
        )
        text_body = f"""Use the code below to reset your password:

{otp_code}

This code will expire in {expires_in_minutes} minutes.

If you didn't request a password reset, you can safely ignore this email.
"""
        return self._send(to_email, subject, html_body, text_body)

    def send_verification_email(self, to_email: str, verification_link: str, user_name: Optional[str] = None) -> bool:
        greeting = f"Hi {user_name}," if user_name else "Hi there,"
        subject = "Verify your email - Blue Portfolio"
        html_body = _wrap_html(
            "Verify your email address",
            f"""
            <p>{greeting}</p>
            <p>Thanks for signing up! Please confirm your email address:</p>
            <p style="text-align: center;">
                <a href="{verification_link}" style="display: inline-block; padding: 12px 24px; background: #1d4ed8; color: #ffffff; border-radius: 6px; text-decoration: none;">Verify email</a>
            </p>
            <p style="color: #999999; font-size: 13px;">If you didn't create an account, you can safely ignore this email.</p>
            """
        )
        text_body = f"""{greeting}

Thanks for signing up! Please confirm your email address by opening this link:

{verification_link}

If you didn't create an account, you can safely ignore this email.
"""
        return self._send(to_email, subject, html_body, text_body)

    def send_password_changed_email(self, to_email: str) -> bool:
        subject = "Your password was changed - Blue Portfolio"
        html_body = _wrap_html(
            "Password changed",
            """
            <p>The password for your account was just changed and all existing sessions were signed out.</p>
            <p>If this wasn't you, reset your password immediately and contact support.</p>
            """
        )
        text_body = (
            "The password for your account was just changed and all existing sessions were signed out.\n\n"
            "If this wasn't you, reset your password immediately and contact support.\n"
        )
        return self._send(to_email, subject, html_body, text_body)


def _wrap_html(title: str, content: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{title}</title>
</head>
<body style="margin: 0; padding: 40px 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
    <div style="width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px; padding: 40px; color: #666666; font-size: 16px; line-height: 1.5;">
        <h1 style="margin: 0 0 20px 0; color: #333333; font-size: 26px;">{title}</h1>
        {content}
    </div>
</body>
</html>
"""


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Lazily build the SES client inside the worker process."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
