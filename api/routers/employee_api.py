# api/routers/employee_api.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.dependencies import get_db, require_roles
from crud.employee_crud import list_employees
from models.employee import Employee, Role
from schemas.employee import Employee as EmployeeOut
from schemas.employee import EmployeeCreate
from services.employee_service import create_employee

router = APIRouter(
    prefix="/employees",
    tags=["Employees"],
)

require_admin = require_roles(Role.ADMIN, Role.SUPER_ADMIN)


@router.post("/", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def add_employee(
        payload: EmployeeCreate,
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    return create_employee(db, employee, **payload.model_dump())


@router.get("/", response_model=List[EmployeeOut])
async def get_employees(
        active_only: bool = False,
        limit: int = 200,
        offset: int = 0,
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    return list_employees(db, active_only=active_only, limit=limit, offset=offset)
