"""
Fire-and-forget email dispatch from the API process.

Each method queues a Celery task and returns whether the enqueue worked.
A broker outage is logged but never fails the request.
"""

import logging
import math
from datetime import datetime
from typing import Optional

from app.core.celery_app import celery_app  # noqa: F401  binds shared tasks to the configured app
from app.core.celery_utils import queue_task_safely
from app.core.config import Settings
from app.core.security import utcnow
from app.tasks.email_tasks import (
    send_otp_email_task,
    send_password_changed_email_task,
    send_verification_email_task,
)

logger = logging.getLogger(__name__)


class EmailDispatcher:

    def __init__(self, settings: Settings):
        self.settings = settings

    def send_otp(self, email: str, otp_code: str, expires_at: datetime) -> bool:
        remaining = (expires_at - utcnow()).total_seconds()
        return queue_task_safely(
            send_otp_email_task,
            to_email=email,
            otp_code=otp_code,
            expires_in_minutes=max(1, math.ceil(remaining / 60)),
        )

    def send_verification(self, email: str, token: str, user_name: Optional[str] = None) -> bool:
        link = f"{self.settings.FRONTEND_URL.rstrip('/')}/verify-email/{token}"
        return queue_task_safely(
            send_verification_email_task,
            to_email=email,
            verification_link=link,
            user_name=user_name,
        )

    def send_password_changed(self, email: str) -> bool:
        return queue_task_safely(send_password_changed_email_task, to_email=email)
