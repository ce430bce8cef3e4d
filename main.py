from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.exception_handlers import setup_exception_handlers
from api.routers import brokerage_api, client_api, cron_api, employee_api, notification_api, task_api
from config import ENABLE_SCHEDULER, logger  # shared logger, configured once in config
from database import create_db_and_tables
from services.scheduler_service import JobScheduler

# Create the tables synchronously at import; every model registered on Base gets a table
logger.info("Attempting to create database tables...")
create_db_and_tables()
logger.info("Database tables creation process finished.")

job_scheduler = JobScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if ENABLE_SCHEDULER:
        job_scheduler.start()
    else:
        logger.info("In-process scheduler disabled; use the /cron endpoints")
    yield
    job_scheduler.stop()


app = FastAPI(
    title="BrokerDesk",
    description="Back-office CRM for a brokerage: brokerage upload reconciliation, monthly archive and reset, "
                "task tracking.",
    version="1.0.0",
    lifespan=lifespan,
)

# Map domain errors and unexpected failures to JSON responses
setup_exception_handlers(app)

app.include_router(employee_api.router)
app.include_router(client_api.router)
app.include_router(brokerage_api.router)
app.include_router(task_api.router)
app.include_router(notification_api.router)
app.include_router(cron_api.router)


@app.get("/")
async def root():
    """Health check."""
    logger.info("Root endpoint accessed.")
    return {"message": "BrokerDesk is running"}


# Production runs under uvicorn/gunicorn; this block is for local runs
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting FastAPI application...")
    uvicorn.run(app, host="0.0.0.0", port=18000)
