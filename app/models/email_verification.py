"""
Email verification tokens.

Each token is single-use and time-limited. Issuing a new one retires the
previous unused tokens of the same user.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.core.database import Base


class EmailVerification(Base):
    __tablename__ = "email_verifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    token = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    is_used = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="email_verifications")

    __table_args__ = (
        Index('ix_email_verifications_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<EmailVerification(user_id={self.user_id}, expires_at={self.expires_at}, is_used={self.is_used})>"
