"""
CRUD operations for audit log entries.
"""

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from app.core.security import utcnow
from app.models.audit_log import AuditLog


def create(
    db: Session,
    action: str,
    email: str,
    success: bool,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    additional_info: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        id=uuid.uuid4(),
        timestamp=utcnow(),
        action=action,
        email=email.lower(),
        success=success,
        ip_address=ip_address,
        user_agent=user_agent,
        user_id=user_id,
        additional_info=additional_info,
    )
    db.add(entry)
    db.commit()
    return entry

