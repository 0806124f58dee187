from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from mileagehawk.database import get_db
from mileagehawk.models import ScrapeLog
from mileagehawk.scheduler import get_scheduler_status

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    last_scrape = None
    if db_status == "healthy":
        log = db.query(ScrapeLog).order_by(ScrapeLog.started_at.desc()).first()
        if log:
            last_scrape = {
                "status": log.status.value,
                "started_at": log.started_at.isoformat() if log.started_at else None,
                "prices_found": log.prices_found,
            }

    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "database": db_status,
        "last_scrape": last_scrape,
        "scheduler": get_scheduler_status(),
    }
