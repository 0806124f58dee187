from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from mileagehawk.api import cron, health
from mileagehawk.scheduler import set_notifier, start_scheduler, stop_scheduler
from mileagehawk.services.notification import NotificationService
from mileagehawk.config import get_settings
from mileagehawk.database import SessionLocal, init_db
from mileagehawk.seed import seed_reference_data

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting MileageHawk")

    if settings.database_url.startswith("sqlite"):
        logger.info("SQLite detected - creating tables if needed")
        init_db()

    db = SessionLocal()
    try:
        seed_reference_data(db)
    except Exception as e:
        logger.error(f"Reference data seeding failed: {e}")
    finally:
        db.close()

    notifier = NotificationService(settings)
    app.state.notifier = notifier
    set_notifier(notifier)

    if settings.scheduler_enabled:
        start_scheduler()
    else:
        logger.info("Scheduler disabled; jobs run only via /api/cron")

    yield

    logger.info("Shutting down MileageHawk")
    stop_scheduler()
    await notifier.close()


app = FastAPI(
    title="MileageHawk",
    description="Award price monitoring for AMEX Membership Rewards transfer partners",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(health.router, tags=["health"])
app.include_router(cron.router, prefix="/api/cron", tags=["cron"])
