# models/employee.py
import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum as EnumDB, String
from sqlalchemy import UUID
from sqlalchemy.sql import func

from database import Base


class Role(enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    EQUITY_DEALER = "EQUITY_DEALER"
    MF_DEALER = "MF_DEALER"
    BACK_OFFICE = "BACK_OFFICE"


class Department(enum.Enum):
    EQUITY = "EQUITY"
    MUTUAL_FUND = "MUTUAL_FUND"
    BACK_OFFICE = "BACK_OFFICE"
    ADMIN = "ADMIN"


ROLE_PRIORITY = {
    Role.SUPER_ADMIN: 5,
    Role.ADMIN: 4,
    Role.EQUITY_DEALER: 3,
    Role.MF_DEALER: 3,
    Role.BACK_OFFICE: 2,
}


class Employee(Base):
    __tablename__ = "employees"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone = Column(String, nullable=True)
    department = Column(EnumDB(Department), nullable=False)
    designation = Column(String, nullable=True)

    role = Column(EnumDB(Role), nullable=False, index=True)
    secondary_role = Column(EnumDB(Role), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def effective_role(self) -> Role:
        """The higher-privilege role of primary and secondary."""
        if self.secondary_role is None:
            return self.role
        if ROLE_PRIORITY.get(self.secondary_role, 0) > ROLE_PRIORITY.get(self.role, 0):
            return self.secondary_role
        return self.role

    def has_role(self, role: Role) -> bool:
        return self.role == role or self.secondary_role == role

    def __repr__(self):
        return f"<Employee(name={self.name}, role={self.role}, active={self.is_active})>"
