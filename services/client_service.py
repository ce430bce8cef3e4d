# services/client_service.py
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import logger
from constants import MODULE_CLIENTS
from crud import client_crud
from crud.activity_log_crud import add_activity_log
from crud.employee_crud import get_employee
from exceptions import ConflictError, NotFoundError, ValidationError
from models.client import Client
from models.employee import Department, Employee
from services.client_code import get_client_code_error, normalize_client_code

CLIENT_DEPARTMENTS = (Department.EQUITY, Department.MUTUAL_FUND)


def create_client(
    db: Session,
    actor: Employee,
    client_code: str,
    first_name: str,
    last_name: str,
    department: Department,
    operator_id: uuid.UUID,
    phone: Optional[str] = None,
    middle_name: Optional[str] = None,
) -> Client:
    """Create a client; the code is validated here and never again."""
    code = normalize_client_code(client_code)
    error = get_client_code_error(code)
    if error:
        raise ValidationError(error)

    if department not in CLIENT_DEPARTMENTS:
        raise ValidationError("Client department must be EQUITY or MUTUAL_FUND")

    operator = get_employee(db, operator_id)
    if operator is None or not operator.is_active:
        raise NotFoundError("Operator not found or inactive")

    if client_crud.get_client_by_code(db, code):
        raise ConflictError(f"Client code {code} already exists")

    client = Client(
        client_code=code,
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        phone=phone,
        department=department,
        operator_id=operator.id,
    )
    try:
        client = client_crud.create_client(db, client)
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"Client code {code} already exists") from exc

    add_activity_log(db, action="CREATE", module=MODULE_CLIENTS, user_id=actor.id,
                     details=f"Created client {code} for operator {operator.name}")
    db.commit()
    logger.info(f"Client {code} created by {actor.id}")
    return client


def delete_client(db: Session, client_id: uuid.UUID, actor: Employee) -> None:
    client = client_crud.get_client(db, client_id)
    if client is None:
        raise NotFoundError("Client not found")
    code = client.client_code
    add_activity_log(db, action="DELETE", module=MODULE_CLIENTS, user_id=actor.id,
                     details=f"Deleted client {code}")
    client_crud.delete_client(db, client)
    logger.info(f"Client {code} deleted by {actor.id}; brokerage history kept")
