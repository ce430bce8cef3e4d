import os
import logging
from typing import Optional

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Database location; any SQLAlchemy URL works, SQLite is the default
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/brokerdesk.db")

# Shared secret for the cron endpoints
CRON_SECRET = os.getenv("CRON_SECRET")

# In-process scheduler for the periodic jobs
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "false").lower() in ("1", "true", "yes")
TASK_EXPIRY_INTERVAL_MINUTES = int(os.getenv("TASK_EXPIRY_INTERVAL_MINUTES", "5"))

# A "running" monthly-reset marker older than this is treated as abandoned
MONTHLY_RESET_LOCK_TIMEOUT_MINUTES = int(os.getenv("MONTHLY_RESET_LOCK_TIMEOUT_MINUTES", "30"))

if not CRON_SECRET:
    logger.error("Environment variable 'CRON_SECRET' is not set. Cron endpoints will reject every request.")


def get_cron_secret() -> Optional[str]:
    """Read the cron secret at call time so tests and deployments can override it."""
    return os.getenv("CRON_SECRET", CRON_SECRET)


def get_database_url() -> str:
    return DATABASE_URL
