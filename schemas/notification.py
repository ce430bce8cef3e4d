# schemas/notification.py
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Notification(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
