# schemas/employee.py
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.employee import Department, Role


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$", description="10-digit phone number.")
    department: Department
    designation: Optional[str] = None
    role: Role
    secondary_role: Optional[Role] = None
    is_active: bool = True


class Employee(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    department: Department
    designation: Optional[str] = None
    role: Role
    secondary_role: Optional[Role] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
