# schemas/task.py
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.task import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    assigned_to_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=10)
    deadline: datetime = Field(..., description="UTC deadline; must not be in the past.")
    priority: TaskPriority = TaskPriority.MEDIUM


class Task(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    assigned_to_id: uuid.UUID
    assigned_by_id: uuid.UUID
    start_date: Optional[datetime] = None
    deadline: datetime
    status: TaskStatus
    priority: TaskPriority
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskExpiryResult(BaseModel):
    expired_count: int
    task_ids: List[uuid.UUID] = []
    notified_users: int = 0
    message: Optional[str] = None
