"""
Celery tasks package.

- email_tasks: OTP, verification and password-change emails
- maintenance_tasks: periodic cleanup of expired OTP/reset/verification state
"""

from app.tasks import email_tasks, maintenance_tasks

__all__ = ["email_tasks", "maintenance_tasks"]
