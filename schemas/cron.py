# schemas/cron.py
from typing import Optional

from pydantic import BaseModel


class MonthlyResetResult(BaseModel):
    archived_month: int
    archived_year: int
    skipped: bool = False
    clients_reset: int = 0
    operators_archived: int = 0
    employees_archived: int = 0
    notifications_sent: int = 0
    message: Optional[str] = None
