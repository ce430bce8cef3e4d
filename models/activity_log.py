# models/activity_log.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy import UUID
from sqlalchemy.sql import func

from database import Base


class ActivityLog(Base):
    """Audit trail; user_id is empty for entries written by the scheduled jobs."""
    __tablename__ = "activity_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=True, index=True)
    action = Column(String, nullable=False)
    module = Column(String, nullable=False, index=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
