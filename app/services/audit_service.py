"""
Best-effort audit trail for authentication events.

Entries are written through a dedicated session so a failed audit insert
can never roll back or block the request's own transaction.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional
import uuid

from sqlalchemy.orm import Session

from app.core.database import session_scope
from app.crud import audit_log as audit_crud

logger = logging.getLogger(__name__)


@dataclass
class AuditContext:
    """Request metadata attached to every audit entry."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    additional_info: Optional[str] = None


class AuditService:

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def log(self, action: str, email: str, success: bool, context: Optional[AuditContext] = None) -> bool:
        """
        Record an event. Never raises.

        Returns:
            bool: True if the entry was stored
        """
        context = context or AuditContext()
        outcome = "SUCCESS" if success else "FAILURE"
        logger.info(f"[AUDIT] {action} - {email} - {outcome}")

        if not action or not email:
            logger.warning("Audit entry skipped: action and email are required")
            return False

        try:
            with session_scope(self.session_factory) as db:
                audit_crud.create(
                    db,
                    action=action,
                    email=email,
                    success=success,
                    ip_address=context.ip_address,
                    user_agent=context.user_agent,
                    user_id=context.user_id,
                    additional_info=context.additional_info,
                )
            return True
        except Exception as e:
            logger.error(f"Audit logging failed for {action}: {e}")
            return False
