"""
Reference data seeding.

Upserts transfer partners and airports from ``mileagehawk.constants`` and
creates a route for every origin x destination pair. Safe to run on every
startup: existing rows are updated in place, existing routes are left as
they are (including a deactivated ``is_active``).
"""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from mileagehawk.constants import AIRLINES, AIRPORTS
from mileagehawk.models import Airline, Airport, Route

logger = logging.getLogger(__name__)


@dataclass
class SeedResult:
    airlines: int = 0
    airports: int = 0
    routes_created: int = 0


def seed_reference_data(db: Session) -> SeedResult:
    result = SeedResult()

    for data in AIRLINES:
        airline = db.query(Airline).filter(Airline.code == data.code).first()
        if airline is None:
            airline = Airline(code=data.code)
            db.add(airline)
        airline.name = data.name
        airline.loyalty_program = data.loyalty_program
        airline.loyalty_currency = data.loyalty_currency
        airline.amex_transfer_ratio = data.amex_transfer_ratio
        airline.capital_one_transfer_ratio = data.capital_one_transfer_ratio
        airline.alliance = data.alliance
        airline.seats_aero_code = data.seats_aero_code
        result.airlines += 1

    airports: dict[str, Airport] = {}
    for data in AIRPORTS:
        airport = db.query(Airport).filter(Airport.code == data.code).first()
        if airport is None:
            airport = Airport(code=data.code)
            db.add(airport)
        airport.name = data.name
        airport.city = data.city
        airport.country = data.country
        airport.region = data.region
        airport.latitude = data.latitude
        airport.longitude = data.longitude
        airport.is_origin = data.is_origin
        airports[data.code] = airport
        result.airports += 1

    db.flush()

    existing = {
        (origin_id, destination_id)
        for origin_id, destination_id in db.query(Route.origin_airport_id, Route.destination_airport_id).all()
    }
    origins = [a for a in airports.values() if a.is_origin]
    destinations = [a for a in airports.values() if not a.is_origin]

    for origin in origins:
        for destination in destinations:
            if (origin.id, destination.id) in existing:
                continue
            db.add(Route(origin_airport_id=origin.id, destination_airport_id=destination.id, is_active=True))
            result.routes_created += 1

    db.commit()
    logger.info(
        f"Seeded {result.airlines} airlines, {result.airports} airports, "
        f"{result.routes_created} new routes"
    )
    return result
