# crud/employee_crud.py
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.employee import Employee, Role


def get_employee(db: Session, employee_id: uuid.UUID) -> Optional[Employee]:
    return db.get(Employee, employee_id)


def get_employee_by_email(db: Session, email: str) -> Optional[Employee]:
    return db.query(Employee).filter(Employee.email == email).first()


def create_employee(db: Session, employee: Employee) -> Employee:
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def list_employees(db: Session, active_only: bool = False, limit: int = 200, offset: int = 0) -> List[Employee]:
    query = db.query(Employee).order_by(Employee.name)
    if active_only:
        query = query.filter(Employee.is_active.is_(True))
    return query.offset(offset).limit(limit).all()


def list_active_employees(db: Session) -> List[Employee]:
    return db.query(Employee).filter(Employee.is_active.is_(True)).all()


def list_active_with_role(db: Session, role: Role) -> List[Employee]:
    """Active employees holding ``role`` as primary or secondary role."""
    return (
        db.query(Employee)
        .filter(Employee.is_active.is_(True))
        .filter(or_(Employee.role == role, Employee.secondary_role == role))
        .all()
    )


def get_employee_names(db: Session, employee_ids: Iterable[uuid.UUID]) -> dict:
    ids = list(set(employee_ids))
    if not ids:
        return {}
    rows = db.query(Employee.id, Employee.name).filter(Employee.id.in_(ids)).all()
    return {row[0]: row[1] for row in rows}
