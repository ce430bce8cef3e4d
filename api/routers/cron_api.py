# api/routers/cron_api.py
from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_db, verify_cron_secret
from config import logger
from schemas.cron import MonthlyResetResult
from schemas.task import TaskExpiryResult
from services.monthly_reset_service import run_monthly_reset
from services.task_service import run_task_expiry

router = APIRouter(
    prefix="/cron",
    tags=["Cron Jobs"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.post("/monthly-reset", response_model=MonthlyResetResult)
async def trigger_monthly_reset(db: Session = Depends(get_db)):
    """Archive the month that just ended and reset client statuses. Repeat calls are skipped."""
    logger.info("Monthly reset triggered via cron endpoint")
    result = run_monthly_reset(db)
    return MonthlyResetResult(**asdict(result))


@router.post("/task-expiry", response_model=TaskExpiryResult)
async def trigger_task_expiry(db: Session = Depends(get_db)):
    """Expire every pending task whose deadline has passed."""
    result = run_task_expiry(db)
    return TaskExpiryResult(**asdict(result))
