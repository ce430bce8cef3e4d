# models/task.py
import enum
import uuid

from sqlalchemy import Column, DateTime, Enum as EnumDB, ForeignKey, String, Text
from sqlalchemy import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class TaskStatus(enum.Enum):
    # PENDING -> COMPLETED or PENDING -> EXPIRED; nothing leaves the last two
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"


class TaskPriority(enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)

    assigned_to_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)
    assigned_by_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)

    start_date = Column(DateTime, nullable=False, server_default=func.now())
    deadline = Column(DateTime, nullable=False, index=True)
    status = Column(EnumDB(TaskStatus), nullable=False, default=TaskStatus.PENDING, index=True)
    priority = Column(EnumDB(TaskPriority), nullable=False, default=TaskPriority.MEDIUM)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    assigned_to = relationship("Employee", foreign_keys=[assigned_to_id])
    assigned_by = relationship("Employee", foreign_keys=[assigned_by_id])
