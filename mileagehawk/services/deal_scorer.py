"""
Deal scoring.

score = (reference - price) / reference * 100, floored at 0, where the
reference is the trailing 30-day average when history exists and the
midpoint of the region's typical range otherwise.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from mileagehawk.constants import DEFAULT_THRESHOLDS, get_deal_tier
from mileagehawk.models.enums import CabinClass, Region
from mileagehawk.services.price_aggregator import PriceAggregator
from mileagehawk.utils.dates import round_half_up


@dataclass
class DealScore:
    score: float  # percent below the reference price (0-100+)
    tier: str  # fair, good, great, amazing, unicorn
    thirty_day_avg: Optional[int]
    savings: Optional[int]  # points saved vs reference, only when positive
    savings_percent: Optional[float]


def _unscored() -> DealScore:
    return DealScore(score=0, tier="fair", thirty_day_avg=None, savings=None, savings_percent=None)


def score_against_average(points: int, thirty_day_avg: int) -> DealScore:
    savings = thirty_day_avg - points
    savings_percent = savings / thirty_day_avg * 100
    score = max(0.0, savings_percent)

    return DealScore(
        score=score,
        tier=get_deal_tier(score),
        thirty_day_avg=thirty_day_avg,
        savings=savings if savings > 0 else None,
        savings_percent=round_half_up(savings_percent, 1) if savings_percent > 0 else None,
    )


def score_deal(points: int, cabin_class: CabinClass, region: Region) -> DealScore:
    """
    Score a price against the static regional thresholds. No I/O.

    Explicit thresholds take precedence over the score: at or below the
    exceptional-deal line is "amazing", at or below the good-deal line is
    "great". Otherwise any score of 10+ is at least "good".
    """
    cabin_class = CabinClass(cabin_class)
    region_thresholds = next((t for t in DEFAULT_THRESHOLDS if t.region == region), None)
    if region_thresholds is None:
        return _unscored()

    config = region_thresholds.for_cabin(cabin_class)
    typical_avg = config.typical_avg
    savings = typical_avg - points
    savings_percent = savings / typical_avg * 100
    score = max(0.0, savings_percent)

    if points <= config.exceptional_deal:
        tier = "amazing"
    elif points <= config.good_deal:
        tier = "great"
    elif score >= 10:
        tier = "good"
    else:
        tier = get_deal_tier(score)

    return DealScore(
        score=score,
        tier=tier,
        thirty_day_avg=int(round_half_up(typical_avg)),
        savings=int(round_half_up(savings)) if savings > 0 else None,
        savings_percent=round_half_up(savings_percent, 1) if savings_percent > 0 else None,
    )


async def score_deal_with_history(
    db: Session,
    route_id: int,
    airline_id: int,
    cabin_class: CabinClass,
    points: int,
    region: Region,
) -> DealScore:
    """Score against the trailing 30-day average, falling back to thresholds."""
    thirty_day_avg = PriceAggregator(db).get_thirty_day_average(route_id, airline_id, cabin_class)
    if thirty_day_avg and thirty_day_avg > 0:
        return score_against_average(points, thirty_day_avg)
    return score_deal(points, cabin_class, region)
