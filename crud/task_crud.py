# crud/task_crud.py
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, select, update
from sqlalchemy.orm import Session

from models.task import Task, TaskPriority, TaskStatus


def overdue_condition(now: datetime):
    """The single definition of "overdue": still pending and past its deadline."""
    return and_(Task.status == TaskStatus.PENDING, Task.deadline < now)


def get_task(db: Session, task_id: uuid.UUID) -> Optional[Task]:
    return db.get(Task, task_id)


def list_overdue_tasks(db: Session, now: datetime) -> List[Task]:
    return db.execute(select(Task).where(overdue_condition(now)).order_by(Task.deadline)).scalars().all()


def expire_tasks(db: Session, task_ids: List[uuid.UUID], now: datetime) -> List[Tuple[uuid.UUID, uuid.UUID, uuid.UUID]]:
    """
    Set-based PENDING -> EXPIRED flip of the given ids, re-checking the overdue condition. Does not commit.
    Returns (id, assigned_to_id, assigned_by_id) for exactly the rows this call flipped.
    """
    if not task_ids:
        return []
    statement = (
        update(Task)
        .where(Task.id.in_(task_ids))
        .where(overdue_condition(now))
        .values(status=TaskStatus.EXPIRED)
        .execution_options(synchronize_session="fetch")
    )
    if db.get_bind().dialect.update_returning:
        rows = db.execute(statement.returning(Task.id, Task.assigned_to_id, Task.assigned_by_id)).all()
        return [tuple(row) for row in rows]

    # No RETURNING: lock the still-overdue rows, then flip only those
    rows = db.execute(
        select(Task.id, Task.assigned_to_id, Task.assigned_by_id)
        .where(Task.id.in_(task_ids))
        .where(overdue_condition(now))
        .with_for_update()
    ).all()
    if rows:
        db.execute(statement.where(Task.id.in_([row[0] for row in rows])))
    return [tuple(row) for row in rows]


def expire_all_overdue(db: Session, now: datetime) -> int:
    """Flip every overdue task in one statement. Does not commit."""
    result = db.execute(
        update(Task)
        .where(overdue_condition(now))
        .values(status=TaskStatus.EXPIRED)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def list_tasks(
    db: Session,
    assigned_to_id: Optional[uuid.UUID] = None,
    assigned_by_id: Optional[uuid.UUID] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    limit: int = 25,
    offset: int = 0,
) -> List[Task]:
    query = db.query(Task).order_by(Task.created_at.desc())
    if assigned_to_id:
        query = query.filter(Task.assigned_to_id == assigned_to_id)
    if assigned_by_id:
        query = query.filter(Task.assigned_by_id == assigned_by_id)
    if status:
        query = query.filter(Task.status == status)
    if priority:
        query = query.filter(Task.priority == priority)
    return query.offset(offset).limit(limit).all()


def count_tasks(
    db: Session,
    assigned_to_id: uuid.UUID,
    status: TaskStatus,
    completed_from: Optional[datetime] = None,
    completed_to: Optional[datetime] = None,
) -> int:
    query = db.query(Task).filter(Task.assigned_to_id == assigned_to_id, Task.status == status)
    if completed_from:
        query = query.filter(Task.completed_at >= completed_from)
    if completed_to:
        query = query.filter(Task.completed_at <= completed_to)
    return query.count()
