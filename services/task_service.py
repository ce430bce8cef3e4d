# services/task_service.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from config import logger
from constants import MODULE_SYSTEM, MODULE_TASKS, NOTIFY_TASK_ASSIGNED, NOTIFY_TASK_EXPIRED
from crud.activity_log_crud import add_activity_log
from crud.employee_crud import get_employee
from crud.task_crud import expire_all_overdue, expire_tasks, get_task, list_overdue_tasks, list_tasks
from exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models.employee import Department, Employee, Role
from models.task import Task, TaskPriority, TaskStatus
from services.notification_service import notify_many
from utils import utcnow


@dataclass
class TaskExpiryResult:
    expired_count: int = 0
    task_ids: List[uuid.UUID] = field(default_factory=list)
    notified_users: int = 0
    message: Optional[str] = None


def run_task_expiry(db: Session, now: Optional[datetime] = None) -> TaskExpiryResult:
    """
    Flip every overdue pending task to EXPIRED, audit the batch and notify the
    assignees and assigners involved, one notification per person.
    """
    now = now or utcnow()
    logger.info("[Task Expiry] Running task expiry check...")

    overdue = list_overdue_tasks(db, now)
    if not overdue:
        logger.info("[Task Expiry] No tasks to expire")
        return TaskExpiryResult(message="No overdue tasks found")

    try:
        # A concurrent read may already have expired some of these; report only our own flips
        flipped = expire_tasks(db, [task.id for task in overdue], now)
        task_ids = [task_id for task_id, _, _ in flipped]
        if task_ids:
            add_activity_log(
                db,
                action="TASK_EXPIRY",
                module=MODULE_SYSTEM,
                details=f"Expired {len(task_ids)} overdue tasks. IDs: {', '.join(str(t) for t in task_ids)}",
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    if not task_ids:
        logger.info("[Task Expiry] Overdue tasks were already expired elsewhere")
        return TaskExpiryResult(message="No overdue tasks found")

    recipients = []
    for _, assigned_to_id, assigned_by_id in flipped:
        recipients.append(assigned_to_id)
        recipients.append(assigned_by_id)

    notified = notify_many(
        db,
        recipients,
        NOTIFY_TASK_EXPIRED,
        "Tasks expired",
        f"{len(task_ids)} task(s) have expired due to missed deadlines.",
        link="/tasks",
    )

    logger.info(f"[Task Expiry] Expired {len(task_ids)} tasks, notified {notified} users")
    return TaskExpiryResult(expired_count=len(task_ids), task_ids=task_ids, notified_users=notified)


def expire_overdue_silently(db: Session, now: Optional[datetime] = None) -> int:
    """Read-path variant of the expiry job: same predicate, no audit entry, no notifications."""
    now = now or utcnow()
    try:
        count = expire_all_overdue(db, now)
        db.commit()
    except Exception:
        db.rollback()
        raise
    if count:
        logger.info(f"Expired {count} overdue tasks before listing")
    return count


def list_tasks_for(
    db: Session,
    viewer: Employee,
    assigned_to_id: Optional[uuid.UUID] = None,
    assigned_by_id: Optional[uuid.UUID] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    limit: int = 25,
    offset: int = 0,
) -> List[Task]:
    expire_overdue_silently(db)

    # Back office staff only ever see their own tasks
    if viewer.effective_role == Role.BACK_OFFICE:
        assigned_to_id = viewer.id
        assigned_by_id = None

    return list_tasks(
        db,
        assigned_to_id=assigned_to_id,
        assigned_by_id=assigned_by_id,
        status=status,
        priority=priority,
        limit=limit,
        offset=offset,
    )


def create_task(
    db: Session,
    assigner: Employee,
    assigned_to_id: uuid.UUID,
    title: str,
    description: str,
    deadline: datetime,
    priority: TaskPriority = TaskPriority.MEDIUM,
) -> Task:
    role = assigner.effective_role
    if role == Role.BACK_OFFICE:
        raise ForbiddenError("Back office employees cannot assign tasks")

    if deadline < utcnow():
        raise ValidationError("Deadline cannot be in the past")

    assignee = get_employee(db, assigned_to_id)
    if assignee is None or not assignee.is_active:
        raise NotFoundError("Assignee not found or inactive")

    if role in (Role.EQUITY_DEALER, Role.MF_DEALER) and assignee.department != Department.BACK_OFFICE:
        raise ForbiddenError("You can only assign tasks to Back Office employees")

    task = Task(
        title=title,
        description=description,
        assigned_to_id=assignee.id,
        assigned_by_id=assigner.id,
        deadline=deadline,
        priority=priority,
        status=TaskStatus.PENDING,
    )
    db.add(task)
    add_activity_log(
        db,
        action="CREATE",
        module=MODULE_TASKS,
        user_id=assigner.id,
        details=f'Created task: "{title}" assigned to {assignee.name}',
    )
    db.commit()
    db.refresh(task)

    notify_many(db, [assignee.id], NOTIFY_TASK_ASSIGNED, "New task assigned",
                f"New task assigned: {title}", link=f"/tasks/{task.id}")
    return task


def complete_task(db: Session, task_id: uuid.UUID, actor: Employee) -> Task:
    """PENDING -> COMPLETED. A task past its deadline is expired first and then refused."""
    task = get_task(db, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    if actor.id not in (task.assigned_to_id, task.assigned_by_id) and actor.effective_role not in (
            Role.ADMIN, Role.SUPER_ADMIN):
        raise ForbiddenError("Only the assignee, the assigner or an admin can complete this task")

    expire_overdue_silently(db)
    db.refresh(task)
    if task.status != TaskStatus.PENDING:
        raise ConflictError(f"Task is {task.status.value} and can no longer be completed")

    task.status = TaskStatus.COMPLETED
    task.completed_at = utcnow()
    add_activity_log(
        db,
        action="UPDATE",
        module=MODULE_TASKS,
        user_id=actor.id,
        details=f'Completed task: "{task.title}"',
    )
    db.commit()
    db.refresh(task)
    return task
