# api/routers/client_api.py
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.dependencies import get_current_employee, get_db, require_roles
from crud.client_crud import list_clients
from models.employee import Department, Employee, Role
from schemas.client import Client, ClientCodeCheck, ClientCreate
from services import client_service
from services.client_code import get_client_code_error, normalize_client_code

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
)

require_admin = require_roles(Role.ADMIN, Role.SUPER_ADMIN)


@router.get("/validate-code", response_model=ClientCodeCheck)
async def validate_code(code: str = ""):
    """Pre-validate a client code the same way creation does."""
    error = get_client_code_error(normalize_client_code(code))
    return ClientCodeCheck(client_code=normalize_client_code(code), valid=error is None, error=error)


@router.post("/", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
        payload: ClientCreate,
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    return client_service.create_client(
        db,
        employee,
        client_code=payload.client_code,
        first_name=payload.first_name,
        middle_name=payload.middle_name,
        last_name=payload.last_name,
        phone=payload.phone,
        department=payload.department,
        operator_id=payload.operator_id,
    )


@router.get("/", response_model=List[Client])
async def get_clients(
        operator_id: Optional[uuid.UUID] = None,
        department: Optional[Department] = None,
        limit: int = 200,
        offset: int = 0,
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db),
):
    # Dealers only see their own book
    if employee.effective_role in (Role.EQUITY_DEALER, Role.MF_DEALER):
        operator_id = employee.id
    return list_clients(db, operator_id=operator_id, department=department, limit=limit, offset=offset)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
        client_id: uuid.UUID,
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    client_service.delete_client(db, client_id, employee)
