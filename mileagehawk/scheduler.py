"""
APScheduler setup for the daily pipeline.

Three jobs run once a day in dependency order: ingest prices, aggregate
them, then evaluate alerts against the fresh data. Each job opens its own
session.
"""

import asyncio
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.jobstores.memory import MemoryJobStore

from mileagehawk.database import SessionLocal
from mileagehawk.services.alert_evaluator import run_alert_evaluation
from mileagehawk.services.notification import NotificationService
from mileagehawk.services.price_aggregator import run_aggregation
from mileagehawk.services.price_scraper import run_ingestion
from mileagehawk.config import get_settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None
_notifier: Optional[NotificationService] = None

settings = get_settings()


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the global scheduler instance."""
    global scheduler
    if scheduler is None:
        logger.info(f"Scheduler using timezone: {settings.scheduler_timezone}")

        scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            timezone=settings.scheduler_timezone
        )

        _setup_scheduled_jobs()

    return scheduler


def _setup_scheduled_jobs():
    scheduler.add_job(
        scrape_prices_job,
        trigger=CronTrigger(hour=settings.scrape_hour, minute=settings.scrape_minute),
        id='scrape_prices',
        name='Scrape Seats.aero prices',
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        aggregate_prices_job,
        trigger=CronTrigger(hour=settings.aggregate_hour, minute=settings.aggregate_minute),
        id='aggregate_prices',
        name='Aggregate daily price history',
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        check_alerts_job,
        trigger=CronTrigger(hour=settings.alert_check_hour, minute=settings.alert_check_minute),
        id='check_alerts',
        name='Evaluate user alerts',
        replace_existing=True,
        max_instances=1,
    )

    logger.info("Scheduled jobs configured:")
    logger.info(f"  - Scrape prices: {settings.scrape_hour:02d}:{settings.scrape_minute:02d}")
    logger.info(f"  - Aggregate prices: {settings.aggregate_hour:02d}:{settings.aggregate_minute:02d}")
    logger.info(f"  - Check alerts: {settings.alert_check_hour:02d}:{settings.alert_check_minute:02d}")


async def scrape_prices_job():
    logger.info("Starting scheduled price scrape")

    db = SessionLocal()
    try:
        result = await asyncio.wait_for(run_ingestion(db), timeout=settings.scrape_timeout_seconds)
        logger.info(
            f"Scheduled scrape {result.status.value}: {result.prices_found} prices, "
            f"{result.routes_failed} failed sources"
        )
    except asyncio.TimeoutError:
        logger.error(f"Scheduled scrape exceeded {settings.scrape_timeout_seconds}s and was cancelled")
    except Exception as e:
        logger.error(f"Error in scheduled scrape: {e}")
    finally:
        db.close()


async def aggregate_prices_job():
    logger.info("Starting scheduled price aggregation")

    db = SessionLocal()
    try:
        result = run_aggregation(db)
        logger.info(f"Scheduled aggregation complete: {result.aggregated} groups, {len(result.errors)} errors")
    except Exception as e:
        logger.error(f"Error in scheduled aggregation: {e}")
    finally:
        db.close()


async def check_alerts_job():
    logger.info("Starting scheduled alert evaluation")

    db = SessionLocal()
    try:
        result = await run_alert_evaluation(db, get_notifier())
        logger.info(
            f"Scheduled alert check complete: {result.alerts_triggered}/{result.alerts_checked} triggered, "
            f"{result.notifications_sent} notifications"
        )
    except Exception as e:
        logger.error(f"Error in scheduled alert evaluation: {e}")
    finally:
        db.close()


def get_notifier() -> NotificationService:
    global _notifier
    if _notifier is None:
        _notifier = NotificationService()
    return _notifier


def set_notifier(notifier: NotificationService):
    """Share the application's notifier with scheduled jobs."""
    global _notifier
    _notifier = notifier


def start_scheduler():
    """Start the scheduler (call this from FastAPI startup)."""
    scheduler_instance = get_scheduler()

    if not scheduler_instance.running:
        scheduler_instance.start()
        logger.info("APScheduler started successfully")

        for job in scheduler_instance.get_jobs():
            logger.info(f"Next '{job.name}': {job.next_run_time}")
    else:
        logger.warning("Scheduler already running")


def stop_scheduler():
    """Stop the scheduler (call this from FastAPI shutdown)."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")
        scheduler = None


def get_scheduler_status() -> dict:
    if scheduler is None or not scheduler.running:
        return {"running": False, "jobs": []}

    return {
        "running": True,
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in scheduler.get_jobs()
        ],
    }
