# services/notification_service.py
import uuid
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from config import logger
from crud.notification_crud import create_notifications


def notify_many(
    db: Session,
    user_ids: Iterable[uuid.UUID],
    type_: str,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> int:
    """
    Create one in-app notification per distinct user and return how many were written.
    Runs after the business write has committed: a failure here is logged and
    rolled back, never propagated.
    """
    recipients = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
    if not recipients:
        return 0

    try:
        created = create_notifications(db, recipients, type_, title, message, link)
        logger.info(f"Sent {len(created)} '{type_}' notifications")
        return len(created)
    except Exception as exc:  # noqa: BLE001 - notifications must not undo the write they describe
        db.rollback()
        logger.exception(f"Failed to send '{type_}' notifications to {len(recipients)} users: {exc}")
        return 0
