"""
Audit trail of authentication events (logins, OTP requests, resets...).
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Text, func
from sqlalchemy.dialects.postgresql import UUID
from app.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    action = Column(String(64), nullable=False, index=True)
    email = Column(String(320), nullable=False, index=True)
    success = Column(Boolean, nullable=False)

    # Request context
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    user_id = Column(UUID(as_uuid=True), nullable=True)
    additional_info = Column(Text, nullable=True)

    def __repr__(self):
        return f"<AuditLog(action='{self.action}', email='{self.email}', success={self.success})>"
