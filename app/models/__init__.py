"""
Database models package.
"""

from app.models.user import User
from app.models.email_verification import EmailVerification
from app.models.audit_log import AuditLog

__all__ = ["User", "EmailVerification", "AuditLog"]
