"""
Cron trigger endpoints.

Each endpoint runs one pipeline job synchronously and returns its summary.
Callers authenticate with ``Authorization: Bearer <CRON_SECRET>``.
"""
import asyncio
import hmac
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mileagehawk.config import get_settings
from mileagehawk.database import get_db
from mileagehawk.services.alert_evaluator import run_alert_evaluation
from mileagehawk.services.notification import NotificationService
from mileagehawk.services.price_aggregator import run_aggregation
from mileagehawk.services.price_scraper import run_ingestion
from mileagehawk.services.rate_limit import get_rate_limit_key, rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_authorized(authorization: Optional[str]) -> bool:
    secret = get_settings().cron_secret
    if not secret or not authorization:
        return False
    return hmac.compare_digest(authorization, f"Bearer {secret}")


async def verify_cron_request(request: Request) -> Optional[JSONResponse]:
    """Rate limit then authenticate. Returns an error response, or None to proceed."""
    limit = rate_limiter.check_preset(get_rate_limit_key(request, "cron"), "cron")
    if not limit.success:
        logger.warning(f"Cron rate limit exceeded for {request.url.path}")
        return JSONResponse(
            status_code=429,
            content={"success": False, "error": "Too many requests"},
            headers={"Retry-After": str(limit.retry_after())},
        )

    if not _is_authorized(request.headers.get("authorization")):
        return JSONResponse(status_code=401, content={"success": False, "error": "Unauthorized"})

    return None


def get_notifier(request: Request) -> NotificationService:
    """Shared notifier created at startup; built on first use if startup was skipped."""
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = NotificationService()
        request.app.state.notifier = notifier
    return notifier


def _job_failed(job: str, error: Exception) -> JSONResponse:
    logger.error(f"Cron {job} failed: {error}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(error) or error.__class__.__name__},
    )


@router.post("/scrape-prices")
async def scrape_prices(request: Request, db: Session = Depends(get_db)):
    denied = await verify_cron_request(request)
    if denied:
        return denied

    try:
        result = await asyncio.wait_for(run_ingestion(db), timeout=get_settings().scrape_timeout_seconds)
    except asyncio.TimeoutError:
        return _job_failed("scrape-prices", TimeoutError("Ingestion exceeded its time limit"))
    except Exception as e:
        return _job_failed("scrape-prices", e)

    return {"success": True, "data": asdict(result)}


@router.post("/aggregate-prices")
async def aggregate_prices(request: Request, db: Session = Depends(get_db)):
    denied = await verify_cron_request(request)
    if denied:
        return denied

    try:
        result = run_aggregation(db)
    except Exception as e:
        return _job_failed("aggregate-prices", e)

    return {"success": True, "data": asdict(result)}


@router.post("/check-alerts")
async def check_alerts(
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    denied = await verify_cron_request(request)
    if denied:
        return denied

    try:
        result = await run_alert_evaluation(db, notifier)
    except Exception as e:
        return _job_failed("check-alerts", e)

    return {"success": True, "data": asdict(result)}
