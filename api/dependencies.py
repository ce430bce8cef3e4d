# api/dependencies.py
import hmac
import uuid
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from config import get_cron_secret, logger
from crud.employee_crud import get_employee
from database import SessionLocal
from exceptions import AuthorizationError, ForbiddenError
from models.employee import Employee, Role


# Dependency to get DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_employee(
        x_employee_id: Optional[str] = Header(None),
        db: Session = Depends(get_db),
) -> Employee:
    """Resolve the caller from the X-Employee-Id header to an active employee."""
    if not x_employee_id:
        raise AuthorizationError("Unauthorized")
    try:
        employee_id = uuid.UUID(x_employee_id)
    except ValueError as exc:
        raise AuthorizationError("Unauthorized") from exc

    employee = get_employee(db, employee_id)
    if employee is None or not employee.is_active:
        raise AuthorizationError("Unauthorized")
    return employee


def require_roles(*roles: Role):
    """Dependency factory: the caller's effective role must be one of ``roles``."""

    def _check(employee: Employee = Depends(get_current_employee)) -> Employee:
        if employee.effective_role not in roles:
            raise ForbiddenError("Forbidden")
        return employee

    return _check


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def verify_cron_secret(
        x_cron_secret: Optional[str] = Header(None),
        authorization: Optional[str] = Header(None),
) -> None:
    """Shared-secret guard for the cron endpoints; no user session involved."""
    expected = get_cron_secret()
    if not expected:
        logger.error("Cron request rejected: CRON_SECRET is not configured")
        raise AuthorizationError("Unauthorized")

    provided = x_cron_secret or _extract_bearer(authorization)
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Cron request rejected: invalid secret")
        raise AuthorizationError("Unauthorized")
