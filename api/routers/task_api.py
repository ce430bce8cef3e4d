# routers/task_api.py
import uuid
from datetime import timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_employee, get_db
from config import logger
from models.employee import Employee
from models.task import TaskPriority, TaskStatus
from schemas.task import Task, TaskCreate
from services import task_service

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"]
)


@router.get("/", response_model=List[Task])
async def get_tasks(
        assigned_to_id: Optional[uuid.UUID] = None,
        assigned_by_id: Optional[uuid.UUID] = None,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        page: int = 1,
        limit: int = 25,
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db)
):
    """
    List tasks, newest first.

    Overdue pending tasks are expired before the list is read, with the same
    rule the task-expiry job uses.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    return task_service.list_tasks_for(
        db,
        employee,
        assigned_to_id=assigned_to_id,
        assigned_by_id=assigned_by_id,
        status=status,
        priority=priority,
        limit=limit,
        offset=(page - 1) * limit,
    )


@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
        payload: TaskCreate,
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db)
):
    deadline = payload.deadline
    if deadline.tzinfo is not None:
        # Stored as naive UTC
        deadline = deadline.astimezone(timezone.utc).replace(tzinfo=None)

    task = task_service.create_task(
        db,
        employee,
        assigned_to_id=payload.assigned_to_id,
        title=payload.title,
        description=payload.description,
        deadline=deadline,
        priority=payload.priority,
    )
    logger.info(f"Task {task.id} created by {employee.id}")
    return task


@router.post("/{task_id}/complete", response_model=Task)
async def complete_task(
        task_id: uuid.UUID,
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db)
):
    """Mark a pending task as completed; expired and completed tasks are final."""
    return task_service.complete_task(db, task_id, employee)
