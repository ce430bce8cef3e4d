# models/client.py
import enum
import uuid

from sqlalchemy import Column, Date, DateTime, Enum as EnumDB, ForeignKey, String, Text
from sqlalchemy import UUID
from sqlalchemy.sql import func

from database import Base
from models.employee import Department


class ClientStatus(enum.Enum):
    TRADED = "TRADED"
    NOT_TRADED = "NOT_TRADED"


class ClientRemark(enum.Enum):
    SUCCESSFULLY_TRADED = "SUCCESSFULLY_TRADED"
    NOT_TRADED = "NOT_TRADED"
    NO_FUNDS_FOR_TRADING = "NO_FUNDS_FOR_TRADING"
    DID_NOT_ANSWER = "DID_NOT_ANSWER"
    SELF_TRADING = "SELF_TRADING"


class MFClientStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class MFClientRemark(enum.Enum):
    INVESTMENT_DONE = "INVESTMENT_DONE"
    INTERESTED = "INTERESTED"
    NOT_INTERESTED = "NOT_INTERESTED"
    DID_NOT_ANSWER = "DID_NOT_ANSWER"
    FOLLOW_UP_REQUIRED = "FOLLOW_UP_REQUIRED"


class Client(Base):
    __tablename__ = "clients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Validated once at creation, never changed afterwards
    client_code = Column(String, nullable=False, unique=True, index=True)

    first_name = Column(String, nullable=False)
    middle_name = Column(String, nullable=True)
    last_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)

    department = Column(EnumDB(Department), nullable=False, index=True)
    operator_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)

    # Equity trading state for the current period
    status = Column(EnumDB(ClientStatus), nullable=False, default=ClientStatus.NOT_TRADED)
    remark = Column(EnumDB(ClientRemark), nullable=False, default=ClientRemark.DID_NOT_ANSWER)

    # Mutual-fund state for the current period
    mf_status = Column(EnumDB(MFClientStatus), nullable=False, default=MFClientStatus.INACTIVE)
    mf_remark = Column(EnumDB(MFClientRemark), nullable=False, default=MFClientRemark.DID_NOT_ANSWER)

    notes = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Client(client_code={self.client_code}, operator_id={self.operator_id})>"
