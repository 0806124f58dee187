"""
Transfer-partner math: converting program miles to flexible points.

    amex_points = ceil(airline_miles / transfer_ratio)

For 1:1 partners (ratio 1.0) 50,000 miles = 50,000 points; for 5:4
partners (0.8) 50,000 miles = 62,500 points; for 1:1.6 partners (1.6)
50,000 miles = 31,250 points.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from mileagehawk.constants import AIRLINES, AirlineData


@dataclass
class BestDeal:
    airline_code: str
    mileage_cost: int
    amex_points: int
    transfer_ratio: float


def calculate_amex_points(airline_miles: int, transfer_ratio: float) -> int:
    if transfer_ratio <= 0:
        raise ValueError("Transfer ratio must be positive")
    return math.ceil(airline_miles / transfer_ratio)


def calculate_capital_one_points(airline_miles: int, transfer_ratio: Optional[float]) -> Optional[int]:
    """Same formula as AMEX; None when the program is not a Capital One partner."""
    if transfer_ratio is None:
        return None
    if transfer_ratio <= 0:
        raise ValueError("Transfer ratio must be positive")
    return math.ceil(airline_miles / transfer_ratio)


def calculate_airline_miles(points: int, transfer_ratio: float) -> int:
    """Miles received for transferring ``points``."""
    if transfer_ratio <= 0:
        raise ValueError("Transfer ratio must be positive")
    return math.floor(points * transfer_ratio)


def get_airline_by_code(code: str) -> Optional[AirlineData]:
    return next((a for a in AIRLINES if a.code == code), None)


def get_seats_aero_airlines() -> list[AirlineData]:
    return [a for a in AIRLINES if a.seats_aero_code is not None]


def get_uncovered_airlines() -> list[AirlineData]:
    """Partners with no live availability feed."""
    return [a for a in AIRLINES if a.seats_aero_code is None]


def get_airlines_by_alliance(alliance: str) -> list[AirlineData]:
    return [a for a in AIRLINES if a.alliance == alliance]


def find_best_deal(prices: Iterable[tuple[str, int]]) -> Optional[BestDeal]:
    """
    Cheapest option in AMEX points across airlines.

    Args:
        prices: (airline_code, mileage_cost) pairs. Unknown codes are ignored.
    """
    best: Optional[BestDeal] = None
    for airline_code, mileage_cost in prices:
        airline = get_airline_by_code(airline_code)
        if not airline:
            continue

        points = calculate_amex_points(mileage_cost, airline.amex_transfer_ratio)
        if best is None or points < best.amex_points:
            best = BestDeal(
                airline_code=airline_code,
                mileage_cost=mileage_cost,
                amex_points=points,
                transfer_ratio=airline.amex_transfer_ratio,
            )
    return best


def format_transfer_ratio(ratio: float) -> str:
    if ratio == 1.0:
        return "1:1"
    if ratio == 0.8:
        return "5:4"
    return f"1:{ratio:g}"


def format_points(points: int) -> str:
    return f"{points:,}"


def format_points_short(points: int) -> str:
    """55000 -> "55K", 72500 -> "72.5K"."""
    if points >= 1000:
        k = points / 1000
        return f"{k:.0f}K" if k == int(k) else f"{k:.1f}K"
    return str(points)
