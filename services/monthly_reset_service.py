# services/monthly_reset_service.py
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import MONTHLY_RESET_LOCK_TIMEOUT_MINUTES, logger
from constants import (
    MODULE_SYSTEM,
    NOTIFY_MONTHLY_RESET,
    RESET_MARKER_ENTITY_ID,
    RESET_STATE_COMPLETED,
    RESET_STATE_RUNNING,
)
from crud.activity_log_crud import add_activity_log
from crud.archive_crud import get_archive, upsert_archive
from crud.brokerage_crud import sum_operator_brokerage
from crud.client_crud import count_clients, list_all_clients, reset_client_statuses
from crud.employee_crud import list_active_employees, list_active_with_role
from crud.task_crud import count_tasks
from models.archive import ArchiveEntityType, MonthlyArchive
from models.client import ClientStatus
from models.employee import Role
from models.task import TaskStatus
from services.notification_service import notify_many
from utils import month_bounds, paise_to_rupees, previous_period, utcnow


@dataclass
class MonthlyResetResult:
    archived_month: int
    archived_year: int
    skipped: bool = False
    clients_reset: int = 0
    operators_archived: int = 0
    employees_archived: int = 0
    notifications_sent: int = 0
    message: Optional[str] = None


def _marker_state(marker: MonthlyArchive) -> Optional[str]:
    return (marker.data or {}).get("state")


def _marker_is_stale(marker: MonthlyArchive, now: datetime) -> bool:
    started_at = (marker.data or {}).get("started_at")
    if not started_at:
        return True
    try:
        started = datetime.fromisoformat(started_at)
    except ValueError:
        return True
    return now - started > timedelta(minutes=MONTHLY_RESET_LOCK_TIMEOUT_MINUTES)


def _claim_period(db: Session, month: int, year: int, now: datetime) -> Optional[str]:
    """
    Insert the period marker in state "running" before any other write.
    Returns None when the period was claimed, otherwise the reason to skip.
    """
    marker_type = ArchiveEntityType.MONTHLY_RESET.value
    marker = get_archive(db, month, year, marker_type, RESET_MARKER_ENTITY_ID)
    claim = {"state": RESET_STATE_RUNNING, "started_at": now.isoformat()}

    if marker is not None:
        if _marker_state(marker) == RESET_STATE_COMPLETED:
            return f"Monthly reset for {month}/{year} already completed"
        if not _marker_is_stale(marker, now):
            return f"Monthly reset for {month}/{year} is already running"
        logger.warning(f"[Monthly Reset] Reclaiming abandoned run for {month}/{year}")
        # Compare-and-set on the abandoned claim, so only one reclaimer wins
        started_at = MonthlyArchive.data["started_at"].as_string()
        old_started_at = (marker.data or {}).get("started_at")
        result = db.execute(
            update(MonthlyArchive)
            .where(MonthlyArchive.id == marker.id)
            .where(MonthlyArchive.data["state"].as_string() == RESET_STATE_RUNNING)
            .where(started_at.is_(None) if old_started_at is None else started_at == old_started_at)
            .values(data=claim)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        if not result.rowcount:
            return f"Monthly reset for {month}/{year} was claimed by a concurrent run"
        return None

    db.add(MonthlyArchive(month=month, year=year, entity_type=marker_type,
                          entity_id=RESET_MARKER_ENTITY_ID, data=claim))
    try:
        db.commit()
    except IntegrityError:
        # Another invocation inserted the marker between our read and write
        db.rollback()
        return f"Monthly reset for {month}/{year} was claimed by a concurrent run"
    return None


def _release_period(db: Session, month: int, year: int) -> None:
    db.rollback()
    marker = get_archive(db, month, year, ArchiveEntityType.MONTHLY_RESET.value, RESET_MARKER_ENTITY_ID)
    if marker is not None and _marker_state(marker) == RESET_STATE_RUNNING:
        db.delete(marker)
        db.commit()


def _archive_operator_brokerage(db: Session, month: int, year: int) -> int:
    start, end = month_bounds(month, year)
    operators = list_active_with_role(db, Role.EQUITY_DEALER)
    for operator in operators:
        amount_paise = sum_operator_brokerage(db, operator.id, start, end)
        upsert_archive(db, month, year, ArchiveEntityType.BROKERAGE.value, str(operator.id), {
            "operator_id": str(operator.id),
            "operator_name": operator.name,
            "amount": paise_to_rupees(amount_paise),
            "amount_paise": amount_paise,
            "total_clients": count_clients(db, operator.id),
            "traded_clients": count_clients(db, operator.id, ClientStatus.TRADED),
        })
    db.commit()
    return len(operators)


def _archive_client_statuses(db: Session, month: int, year: int) -> int:
    clients = list_all_clients(db)
    for client in clients:
        upsert_archive(db, month, year, ArchiveEntityType.CLIENT_STATUS.value, str(client.id), {
            "client_code": client.client_code,
            "operator_id": str(client.operator_id),
            "department": client.department.value,
            "status": client.status.value,
            "remark": client.remark.value,
            "mf_status": client.mf_status.value,
            "mf_remark": client.mf_remark.value,
        })
    db.commit()
    return len(clients)


def _archive_task_summaries(db: Session, month: int, year: int) -> int:
    start, end = month_bounds(month, year)
    period_start = datetime.combine(start, time.min)
    period_end = datetime.combine(end, time.max)
    employees = list_active_employees(db)
    for employee in employees:
        upsert_archive(db, month, year, ArchiveEntityType.TASK_SUMMARY.value, str(employee.id), {
            "employee_id": str(employee.id),
            "completed": count_tasks(db, employee.id, TaskStatus.COMPLETED, period_start, period_end),
            "pending": count_tasks(db, employee.id, TaskStatus.PENDING),
            "expired": count_tasks(db, employee.id, TaskStatus.EXPIRED),
        })
    db.commit()
    return len(employees)


def run_monthly_reset(db: Session, now: Optional[datetime] = None) -> MonthlyResetResult:
    """
    Archive the month that just ended and reset client statuses for the new one.

    Safe to call repeatedly: the period marker row makes every call after the
    first successful one a skip, and a failed run removes its marker so the
    next call starts over (the per-entity archive rows are upserts).
    """
    now = now or utcnow()
    month, year = previous_period(now)
    logger.info(f"[Monthly Reset] Starting for {month}/{year}")

    skip_reason = _claim_period(db, month, year, now)
    if skip_reason:
        logger.info(f"[Monthly Reset] Skipped: {skip_reason}")
        return MonthlyResetResult(archived_month=month, archived_year=year, skipped=True, message=skip_reason)

    try:
        operators_archived = _archive_operator_brokerage(db, month, year)
        clients_archived = _archive_client_statuses(db, month, year)
        employees_archived = _archive_task_summaries(db, month, year)

        clients_reset = reset_client_statuses(db)

        summary = (
            f"Monthly reset for {month}/{year}. Archived {clients_archived} client statuses, "
            f"{operators_archived} operator brokerage summaries and {employees_archived} task summaries. "
            f"Reset {clients_reset} clients."
        )
        add_activity_log(db, action="MONTHLY_RESET", module=MODULE_SYSTEM, details=summary)

        # The completed marker is the authoritative "done" flag; it commits with the reset
        marker = get_archive(db, month, year, ArchiveEntityType.MONTHLY_RESET.value, RESET_MARKER_ENTITY_ID)
        marker.data = {
            "state": RESET_STATE_COMPLETED,
            "started_at": (marker.data or {}).get("started_at"),
            "completed_at": utcnow().isoformat(),
            "clients_reset": clients_reset,
            "operators_archived": operators_archived,
            "employees_archived": employees_archived,
        }
        db.commit()
    except Exception:
        logger.exception(f"[Monthly Reset] Failed for {month}/{year}; releasing the period for retry")
        _release_period(db, month, year)
        raise

    employees = list_active_employees(db)
    month_name = datetime(year, month, 1).strftime("%B")
    notifications_sent = notify_many(
        db,
        (employee.id for employee in employees),
        NOTIFY_MONTHLY_RESET,
        "Monthly reset completed",
        f"Client statuses have been archived and reset for {month_name} {year}. New month has started.",
        link="/dashboard",
    )

    logger.info(f"[Monthly Reset] Completed for {month}/{year}: {clients_reset} clients reset")
    return MonthlyResetResult(
        archived_month=month,
        archived_year=year,
        clients_reset=clients_reset,
        operators_archived=operators_archived,
        employees_archived=employees_archived,
        notifications_sent=notifications_sent,
    )
