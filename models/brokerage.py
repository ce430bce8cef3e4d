# models/brokerage.py
import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class BrokerageUpload(Base):
    __tablename__ = "brokerage_uploads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # One upload per calendar date; a re-upload supersedes the previous one
    upload_date = Column(Date, nullable=False, unique=True, index=True)
    total_amount_paise = Column(Integer, nullable=False, default=0)
    file_name = Column(String, nullable=False)
    uploaded_by_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    details = relationship(
        "BrokerageDetail",
        back_populates="upload",
        cascade="all, delete-orphan",
    )


class BrokerageDetail(Base):
    __tablename__ = "brokerage_details"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    brokerage_id = Column(
        UUID(as_uuid=True),
        ForeignKey("brokerage_uploads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_code = Column(String, nullable=False, index=True)
    # Nulled when the client is deleted; brokerage history outlives the client
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    operator_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)
    amount_paise = Column(Integer, nullable=False, default=0)

    upload = relationship("BrokerageUpload", back_populates="details")
