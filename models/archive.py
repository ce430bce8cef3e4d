# models/archive.py
import enum
import uuid

from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy import UUID
from sqlalchemy.sql import func

from database import Base


class ArchiveEntityType(str, enum.Enum):
    BROKERAGE = "BROKERAGE"
    CLIENT_STATUS = "CLIENT_STATUS"
    TASK_SUMMARY = "TASK_SUMMARY"
    # Period-level completion marker of the monthly reset
    MONTHLY_RESET = "MONTHLY_RESET"


class MonthlyArchive(Base):
    __tablename__ = "monthly_archives"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("month", "year", "entity_type", "entity_id", name="uq_monthly_archives_period_entity"),
    )

    def __repr__(self):
        return f"<MonthlyArchive({self.month}/{self.year}, {self.entity_type}, {self.entity_id})>"
