# crud/activity_log_crud.py
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from models.activity_log import ActivityLog


def add_activity_log(
    db: Session,
    action: str,
    module: str,
    details: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    ip_address: Optional[str] = None,
) -> ActivityLog:
    """Stage an audit entry in the caller's transaction. Does not commit."""
    entry = ActivityLog(user_id=user_id, action=action, module=module, details=details, ip_address=ip_address)
    db.add(entry)
    return entry

