from datetime import datetime, timedelta

import pytest

from exceptions import ConflictError, ForbiddenError, ValidationError
from models.activity_log import ActivityLog
from models.employee import Department, Role
from models.notification import Notification
from crud.task_crud import list_overdue_tasks
from models.task import Task, TaskPriority, TaskStatus
from services import task_service
from utils import utcnow

NOW = datetime(2026, 3, 10, 12, 0)


@pytest.fixture
def back_office(make_employee):
    return make_employee(name="Priya", role=Role.BACK_OFFICE, department=Department.BACK_OFFICE)


@pytest.fixture
def dealer(make_employee):
    return make_employee(name="Ravi", role=Role.EQUITY_DEALER, department=Department.EQUITY)


def _task(db, assignee, assigner, deadline, status=TaskStatus.PENDING, title="Collect KYC"):
    task = Task(title=title, description="-", assigned_to_id=assignee.id, assigned_by_id=assigner.id,
                deadline=deadline, status=status, priority=TaskPriority.MEDIUM)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def test_only_pending_tasks_past_deadline_expire(db, admin, back_office):
    overdue = _task(db, back_office, admin, NOW - timedelta(minutes=1))
    upcoming = _task(db, back_office, admin, NOW + timedelta(hours=1))
    done = _task(db, back_office, admin, NOW - timedelta(days=1), status=TaskStatus.COMPLETED)

    result = task_service.run_task_expiry(db, now=NOW)

    assert result.expired_count == 1
    assert result.task_ids == [overdue.id]
    db.expire_all()
    assert db.get(Task, overdue.id).status == TaskStatus.EXPIRED
    assert db.get(Task, upcoming.id).status == TaskStatus.PENDING
    assert db.get(Task, done.id).status == TaskStatus.COMPLETED

    log = db.query(ActivityLog).filter(ActivityLog.action == "TASK_EXPIRY").one()
    assert log.user_id is None
    assert str(overdue.id) in log.details


def test_each_involved_employee_is_notified_once(db, admin, dealer, back_office):
    _task(db, back_office, admin, NOW - timedelta(hours=2), title="one")
    _task(db, back_office, admin, NOW - timedelta(hours=1), title="two")
    _task(db, back_office, dealer, NOW - timedelta(minutes=5), title="three")

    result = task_service.run_task_expiry(db, now=NOW)

    assert result.expired_count == 3
    assert result.notified_users == 3
    recipients = sorted(str(n.user_id) for n in db.query(Notification).all())
    assert recipients == sorted(str(e.id) for e in (admin, dealer, back_office))


def test_tasks_expired_by_a_concurrent_read_are_not_reported(db, session_factory, admin, dealer, back_office,
                                                             monkeypatch):
    listed_elsewhere = _task(db, back_office, admin, NOW - timedelta(hours=1), title="listed elsewhere")
    ours = _task(db, back_office, dealer, NOW - timedelta(minutes=5), title="ours")

    def select_then_race(session, now):
        overdue = list_overdue_tasks(session, now)
        # A task list request expires one of them before the job's update runs
        other = session_factory()
        try:
            other.query(Task).filter(Task.id == listed_elsewhere.id).update(
                {Task.status: TaskStatus.EXPIRED}, synchronize_session=False)
            other.commit()
        finally:
            other.close()
        return overdue

    monkeypatch.setattr("services.task_service.list_overdue_tasks", select_then_race)
    result = task_service.run_task_expiry(db, now=NOW)

    assert result.expired_count == 1
    assert result.task_ids == [ours.id]
    log = db.query(ActivityLog).filter(ActivityLog.action == "TASK_EXPIRY").one()
    assert str(listed_elsewhere.id) not in log.details
    recipients = sorted(str(n.user_id) for n in db.query(Notification).all())
    assert recipients == sorted(str(e.id) for e in (dealer, back_office))


def test_nothing_to_expire(db, admin, back_office):
    _task(db, back_office, admin, NOW + timedelta(days=1))

    result = task_service.run_task_expiry(db, now=NOW)

    assert result.expired_count == 0
    assert result.message == "No overdue tasks found"
    assert db.query(ActivityLog).count() == 0
    assert db.query(Notification).count() == 0


def test_listing_applies_the_same_rule_as_the_job(db, admin, back_office):
    overdue = _task(db, back_office, admin, utcnow() - timedelta(hours=1))
    _task(db, back_office, admin, utcnow() + timedelta(hours=1))

    tasks = task_service.list_tasks_for(db, admin)

    assert {t.id: t.status for t in tasks}[overdue.id] == TaskStatus.EXPIRED
    result = task_service.run_task_expiry(db)
    assert result.expired_count == 0
    # The read path neither audits nor notifies
    assert db.query(ActivityLog).count() == 0
    assert db.query(Notification).count() == 0


def test_back_office_sees_only_own_tasks(db, admin, back_office, make_employee):
    colleague = make_employee(name="Anil", role=Role.BACK_OFFICE, department=Department.BACK_OFFICE)
    mine = _task(db, back_office, admin, utcnow() + timedelta(days=1))
    _task(db, colleague, admin, utcnow() + timedelta(days=1))

    tasks = task_service.list_tasks_for(db, back_office, assigned_to_id=colleague.id)

    assert [t.id for t in tasks] == [mine.id]


def test_expired_task_cannot_be_completed(db, admin, back_office):
    task = _task(db, back_office, admin, utcnow() - timedelta(minutes=1))

    with pytest.raises(ConflictError):
        task_service.complete_task(db, task.id, back_office)

    db.refresh(task)
    assert task.status == TaskStatus.EXPIRED
    assert task.completed_at is None


def test_complete_pending_task(db, admin, back_office):
    task = _task(db, back_office, admin, utcnow() + timedelta(days=1))

    completed = task_service.complete_task(db, task.id, back_office)

    assert completed.status == TaskStatus.COMPLETED
    assert completed.completed_at is not None
    with pytest.raises(ConflictError):
        task_service.complete_task(db, task.id, back_office)


def test_create_task_rules(db, admin, dealer, back_office):
    deadline = utcnow() + timedelta(days=2)

    task = task_service.create_task(db, dealer, back_office.id, "Collect KYC", "Two clients pending", deadline)
    assert task.status == TaskStatus.PENDING
    notification = db.query(Notification).one()
    assert notification.user_id == back_office.id

    with pytest.raises(ForbiddenError):
        task_service.create_task(db, back_office, admin.id, "x", "x", deadline)
    with pytest.raises(ForbiddenError):
        task_service.create_task(db, dealer, admin.id, "x", "x", deadline)
    with pytest.raises(ValidationError):
        task_service.create_task(db, admin, back_office.id, "x", "x", utcnow() - timedelta(hours=1))
