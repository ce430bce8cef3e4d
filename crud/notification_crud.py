# crud/notification_crud.py
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from models.notification import Notification


def create_notifications(
    db: Session,
    user_ids: Iterable[uuid.UUID],
    type_: str,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> List[Notification]:
    notifications = [
        Notification(user_id=user_id, type=type_, title=title, message=message, link=link)
        for user_id in user_ids
    ]
    if not notifications:
        return []
    db.add_all(notifications)
    db.commit()
    return notifications


def list_notifications(db: Session, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def get_notification(db: Session, notification_id: uuid.UUID) -> Optional[Notification]:
    return db.get(Notification, notification_id)


def mark_read(db: Session, notification: Notification) -> Notification:
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
