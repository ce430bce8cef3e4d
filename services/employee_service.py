# services/employee_service.py
from typing import Optional

from sqlalchemy.orm import Session

from constants import MODULE_EMPLOYEES
from crud import employee_crud
from crud.activity_log_crud import add_activity_log
from exceptions import ConflictError
from models.employee import Department, Employee, Role


def create_employee(
    db: Session,
    actor: Optional[Employee],
    name: str,
    email: str,
    department: Department,
    role: Role,
    designation: Optional[str] = None,
    phone: Optional[str] = None,
    secondary_role: Optional[Role] = None,
    is_active: bool = True,
) -> Employee:
    email = email.strip().lower()
    if employee_crud.get_employee_by_email(db, email):
        raise ConflictError(f"An employee with email {email} already exists")

    employee = employee_crud.create_employee(db, Employee(
        name=name,
        email=email,
        phone=phone,
        department=department,
        designation=designation,
        role=role,
        secondary_role=secondary_role,
        is_active=is_active,
    ))
    add_activity_log(db, action="CREATE", module=MODULE_EMPLOYEES, user_id=actor.id if actor else None,
                     details=f"Created employee {name} ({role.value})")
    db.commit()
    return employee
