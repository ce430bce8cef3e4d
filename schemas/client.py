# schemas/client.py
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.client import ClientRemark, ClientStatus, MFClientRemark, MFClientStatus
from models.employee import Department


class ClientCreate(BaseModel):
    client_code: str = Field(..., description="18K099, 91383117 or 18KS008 style code; case-insensitive.")
    first_name: str = Field(..., min_length=1)
    middle_name: Optional[str] = None
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    department: Department
    operator_id: uuid.UUID


class Client(BaseModel):
    id: uuid.UUID
    client_code: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    phone: Optional[str] = None
    department: Department
    operator_id: uuid.UUID
    status: ClientStatus
    remark: ClientRemark
    mf_status: MFClientStatus
    mf_remark: MFClientRemark
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientCodeCheck(BaseModel):
    client_code: str
    valid: bool
    error: Optional[str] = None
