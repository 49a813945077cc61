"""
Scheduled tasks for the stock service.
This module runs the nightly inventory reconciliation inside the FastAPI
process with APScheduler.
"""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from stockflow.core.config import get_settings
from stockflow.database import async_session
from stockflow.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

RECONCILE_JOB_ID = "reconcile_inventory"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


async def reconcile_inventory_task():
    """Task to overwrite stock levels from the warehouse export"""
    settings = get_settings()
    try:
        logger.info("=== SCHEDULED RECONCILIATION STARTING ===")

        async with async_session() as db:
            report = await InventoryService(db).reconcile_inventory_from_csv(settings.INVENTORY_CSV_PATH)

        logger.info(
            f"Reconciliation completed: {len(report.valid_rows)} rows applied, "
            f"{len(report.unparsed_rows)} unparsed, stock time {report.stock_export_time}"
        )
        for line in report.unparsed_rows:
            logger.warning(f"Unparsed reconciliation line: {line!r}")

    except Exception as e:
        # The next scheduled run is the retry
        logger.exception(f"Error in scheduled reconciliation task: {str(e)}")


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now()}")


def create_scheduler() -> AsyncIOScheduler:
    """Create and configure the scheduler"""
    global scheduler

    if scheduler is not None:
        return scheduler

    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.RECONCILE_TIMEZONE)

    # Add job event listeners
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    if settings.RECONCILE_ENABLED:
        scheduler.add_job(
            reconcile_inventory_task,
            CronTrigger.from_crontab(settings.RECONCILE_SCHEDULE, timezone=settings.RECONCILE_TIMEZONE),
            id=RECONCILE_JOB_ID,
            name="Reconcile Inventory",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=3600  # 1 hour grace time
        )
        logger.info(
            f"Reconciliation job added with schedule: {settings.RECONCILE_SCHEDULE} ({settings.RECONCILE_TIMEZONE})"
        )
    else:
        logger.info("Scheduled reconciliation is disabled. Set RECONCILE_ENABLED=true to enable")

    return scheduler


async def start_scheduler():
    """Start the scheduler"""
    global scheduler

    if scheduler is None:
        scheduler = create_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started successfully")

        jobs = scheduler.get_jobs()
        if jobs:
            logger.info(f"Active scheduled jobs: {len(jobs)}")
            for job in jobs:
                logger.info(f"  - {job.name}: {job.trigger}")
        else:
            logger.info("No scheduled jobs configured")


async def stop_scheduler():
    """Stop the scheduler gracefully"""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped successfully")
    scheduler = None
