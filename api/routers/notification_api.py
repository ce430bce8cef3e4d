# api/routers/notification_api.py
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_current_employee, get_db
from crud.notification_crud import get_notification, list_notifications, mark_read
from exceptions import NotFoundError
from models.employee import Employee
from schemas.notification import Notification

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


@router.get("/", response_model=List[Notification])
async def get_my_notifications(
        unread_only: bool = False,
        limit: int = 50,
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db),
):
    return list_notifications(db, employee.id, unread_only=unread_only, limit=limit)


@router.post("/{notification_id}/read", response_model=Notification)
async def read_notification(
        notification_id: uuid.UUID,
        employee: Employee = Depends(get_current_employee),
        db: Session = Depends(get_db),
):
    notification = get_notification(db, notification_id)
    if notification is None or notification.user_id != employee.id:
        raise NotFoundError("Notification not found")
    return mark_read(db, notification)
