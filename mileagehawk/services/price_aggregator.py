"""
Daily price aggregation.

Rolls the day's normalized prices up into one PriceHistory row per
route/airline/cabin, and answers the rolling-average queries the deal
scorer needs.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mileagehawk.models import CabinClass, DailyMileagePrice, PriceHistory
from mileagehawk.utils.dates import round_half_up, start_of_utc_day, utc_now

logger = logging.getLogger(__name__)

THIRTY_DAYS = 30


@dataclass
class AggregationResult:
    aggregated: int = 0
    errors: list[str] = field(default_factory=list)


class PriceAggregator:
    def __init__(self, db: Session):
        self.db = db

    def aggregate_daily_prices(self, day: Optional[date] = None) -> AggregationResult:
        """
        Aggregate prices scraped on ``day`` (UTC, default today) into PriceHistory.

        Each group is recomputed in full from the raw rows, so re-running
        after more prices arrive converges and re-running on the same data
        changes nothing.
        """
        result = AggregationResult()
        day = day or utc_now().date()
        day_start = start_of_utc_day(day)
        day_end = day_start + timedelta(days=1)

        logger.info(f"Starting aggregation for {day.isoformat()}")

        combinations = self.db.query(
            DailyMileagePrice.route_id,
            DailyMileagePrice.airline_id,
            DailyMileagePrice.cabin_class,
            func.min(DailyMileagePrice.amex_points_equivalent),
            func.avg(DailyMileagePrice.amex_points_equivalent),
            func.max(DailyMileagePrice.amex_points_equivalent),
            func.count(DailyMileagePrice.id),
        ).filter(
            DailyMileagePrice.scraped_at >= day_start,
            DailyMileagePrice.scraped_at < day_end,
        ).group_by(
            DailyMileagePrice.route_id,
            DailyMileagePrice.airline_id,
            DailyMileagePrice.cabin_class,
        ).all()

        logger.info(f"Found {len(combinations)} route-airline-cabin combinations")

        for route_id, airline_id, cabin_class, min_price, avg_price, max_price, count in combinations:
            try:
                self._upsert_history(
                    route_id=route_id,
                    airline_id=airline_id,
                    cabin_class=cabin_class,
                    day=day,
                    min_price=min_price or 0,
                    avg_price=int(round_half_up(float(avg_price or 0))),
                    max_price=max_price or 0,
                    sample_size=count,
                )
                self.db.commit()
                result.aggregated += 1
            except Exception as e:
                self.db.rollback()
                msg = f"Failed to aggregate {route_id}/{airline_id}/{cabin_class}: {e}"
                logger.error(msg)
                result.errors.append(msg)

        logger.info(f"Aggregation complete: {result.aggregated} records aggregated")
        return result

    def _upsert_history(
        self,
        route_id: int,
        airline_id: int,
        cabin_class: CabinClass,
        day: date,
        min_price: int,
        avg_price: int,
        max_price: int,
        sample_size: int,
    ) -> PriceHistory:
        history = self.db.query(PriceHistory).filter(
            PriceHistory.route_id == route_id,
            PriceHistory.airline_id == airline_id,
            PriceHistory.cabin_class == cabin_class,
            PriceHistory.date == day,
        ).first()

        if history is None:
            history = PriceHistory(
                route_id=route_id,
                airline_id=airline_id,
                cabin_class=cabin_class,
                date=day,
            )
            self.db.add(history)

        history.min_price = min_price
        history.avg_price = avg_price
        history.max_price = max_price
        history.sample_size = sample_size
        return history

    def get_thirty_day_average(
        self,
        route_id: int,
        airline_id: int,
        cabin_class: CabinClass,
        today: Optional[date] = None,
    ) -> Optional[int]:
        """Mean of the daily averages over the last 30 days, or None with no history."""
        since = (today or utc_now().date()) - timedelta(days=THIRTY_DAYS)
        avg = self.db.query(func.avg(PriceHistory.avg_price)).filter(
            PriceHistory.route_id == route_id,
            PriceHistory.airline_id == airline_id,
            PriceHistory.cabin_class == CabinClass(cabin_class),
            PriceHistory.date >= since,
        ).scalar()

        if not avg:
            return None
        return int(round_half_up(float(avg)))

    def get_price_history(
        self,
        route_id: int,
        days: int,
        airline_id: Optional[int] = None,
        cabin_class: Optional[CabinClass] = None,
    ) -> list[dict]:
        """Daily history points for charting, oldest first."""
        since = utc_now().date() - timedelta(days=days)
        query = self.db.query(PriceHistory).filter(
            PriceHistory.route_id == route_id,
            PriceHistory.date >= since,
        )
        if airline_id is not None:
            query = query.filter(PriceHistory.airline_id == airline_id)
        if cabin_class is not None:
            query = query.filter(PriceHistory.cabin_class == CabinClass(cabin_class))

        return [
            {
                "date": h.date.isoformat(),
                "min_price": h.min_price,
                "avg_price": h.avg_price,
                "max_price": h.max_price,
                "airline_id": h.airline_id,
                "cabin_class": h.cabin_class.value,
            }
            for h in query.order_by(PriceHistory.date.asc()).all()
        ]


def run_aggregation(db: Session) -> AggregationResult:
    """Entry point for the scheduler and cron endpoint."""
    return PriceAggregator(db).aggregate_daily_prices()
