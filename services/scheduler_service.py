# services/scheduler_service.py
"""
In-process scheduling of the two periodic jobs.

The same jobs are reachable through the /cron endpoints for an external
scheduler; this one only runs when ENABLE_SCHEDULER is set.
"""
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from config import TASK_EXPIRY_INTERVAL_MINUTES, logger
from database import SessionLocal
from services.monthly_reset_service import run_monthly_reset
from services.task_service import run_task_expiry

MONTHLY_RESET_JOB_ID = "monthly_reset"
TASK_EXPIRY_JOB_ID = "task_expiry"


def _run_with_session(job_name: str, job: Callable[[Session], object],
                      session_factory: Callable[[], Session] = SessionLocal):
    db = session_factory()
    try:
        result = job(db)
        logger.info(f"Scheduled job '{job_name}' finished: {result}")
        return result
    except Exception as e:
        # Keep the scheduler alive; the next tick retries
        logger.error(f"Scheduled job '{job_name}' failed: {e}", exc_info=True)
        return None
    finally:
        db.close()


def monthly_reset_job():
    return _run_with_session(MONTHLY_RESET_JOB_ID, run_monthly_reset)


def task_expiry_job():
    return _run_with_session(TASK_EXPIRY_JOB_ID, run_task_expiry)


class JobScheduler:
    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()
        self.is_running = False

    def register_jobs(self):
        # 00:05 on the first of every month, after the date boundary
        self.scheduler.add_job(
            monthly_reset_job,
            trigger=CronTrigger(day=1, hour=0, minute=5),
            id=MONTHLY_RESET_JOB_ID,
            name="Monthly archive and reset",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.add_job(
            task_expiry_job,
            trigger=IntervalTrigger(minutes=TASK_EXPIRY_INTERVAL_MINUTES),
            id=TASK_EXPIRY_JOB_ID,
            name="Task expiry",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.info(f"Scheduled jobs: {[job.id for job in self.scheduler.get_jobs()]}")

    def start(self):
        if self.is_running:
            return
        self.register_jobs()
        self.scheduler.start()
        self.is_running = True
        logger.info("Job scheduler started")

    def stop(self):
        if self.is_running:
            logger.info("Stopping job scheduler...")
            self.scheduler.shutdown(wait=False)
            self.is_running = False
