"""
Daily price ingestion.

Pulls bulk availability from Seats.aero for every configured program,
keeps records for monitored routes only, converts miles to points and
upserts one row per (route, airline, cabin, travel date, source).
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Session

from mileagehawk.config import get_settings
from mileagehawk.constants import SEATS_AERO_SOURCE_MAP
from mileagehawk.exceptions import ConfigurationError
from mileagehawk.models import Airline, DailyMileagePrice, Route, ScrapeLog, ScrapeStatus
from mileagehawk.services.seats_aero import (
    CabinAvailability,
    SeatsAeroClient,
    get_route_codes,
    parse_availability,
)
from mileagehawk.services.transfer_partners import calculate_amex_points, calculate_capital_one_points
from mileagehawk.utils.dates import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

SOURCE_NAME = "seats_aero"


@dataclass
class ScrapeResult:
    """Summary of one ingestion run. ``routes_*`` count programs (sources)."""
    source: str = SOURCE_NAME
    status: ScrapeStatus = ScrapeStatus.RUNNING
    routes_total: int = 0
    routes_success: int = 0
    routes_failed: int = 0
    prices_found: int = 0
    duration_ms: int = 0
    errors: list[str] = field(default_factory=list)


class PriceScraper:
    """
    Orchestrates a full ingestion run across Seats.aero programs.

    Sources are processed one at a time with a short pause between them to
    stay under the provider's quota. One failing source is recorded and the
    run moves on.
    """

    def __init__(
        self,
        db: Session,
        client: Optional[SeatsAeroClient] = None,
        sources: Optional[list[str]] = None,
        pause_seconds: Optional[float] = None,
    ):
        self.db = db
        self._client = client
        self.sources = sources if sources is not None else list(SEATS_AERO_SOURCE_MAP)
        self.pause_seconds = settings.scrape_source_pause_seconds if pause_seconds is None else pause_seconds

    def _get_client(self) -> SeatsAeroClient:
        if self._client is None:
            self._client = SeatsAeroClient(
                api_key=settings.seats_aero_api_key,
                base_url=settings.seats_aero_base_url,
                max_pages=settings.scrape_max_pages,
            )
        return self._client

    async def run(self) -> ScrapeResult:
        """
        Run ingestion for all sources.

        A missing API key finalizes the run log as FAILED and is returned as
        a failed result. Any other run-level exception also marks the log
        FAILED and is re-raised.
        """
        started = time.monotonic()
        result = ScrapeResult()

        scrape_log = ScrapeLog(source=SOURCE_NAME, status=ScrapeStatus.RUNNING, started_at=utc_now())
        self.db.add(scrape_log)
        self.db.commit()

        try:
            client = self._get_client()
            airline_map, route_lookup, origin_codes, dest_codes = self._load_lookups()

            logger.info(
                f"Monitoring {len(route_lookup)} routes across {len(origin_codes)} origins "
                f"and {len(dest_codes)} destinations"
            )

            result.routes_total = len(self.sources)

            for source in self.sources:
                airline = airline_map.get(source)
                if not airline:
                    msg = f"No airline found for source: {source}"
                    logger.warning(msg)
                    result.routes_failed += 1
                    result.errors.append(msg)
                    continue

                try:
                    logger.info(f"Processing source: {source}")
                    matches, pages = await self._scrape_source(
                        client, source, airline, route_lookup, origin_codes, dest_codes
                    )
                    result.prices_found += matches
                    result.routes_success += 1
                    logger.info(f"Completed {source}: {matches} prices across {pages} pages")
                except Exception as e:
                    self.db.rollback()
                    result.routes_failed += 1
                    msg = f"Failed source {source}: {e}"
                    logger.error(msg)
                    result.errors.append(msg)
                    continue

                # Respect the provider's quota between sources
                await asyncio.sleep(self.pause_seconds)

            result.duration_ms = int((time.monotonic() - started) * 1000)
            result.status = ScrapeStatus.COMPLETED if result.routes_failed == 0 else ScrapeStatus.PARTIAL
            self._finalize(scrape_log, result)

            logger.info(
                f"Ingestion complete: {result.prices_found} prices, "
                f"{result.routes_success}/{result.routes_total} sources, {result.duration_ms}ms"
            )
            return result

        except ConfigurationError as e:
            logger.error(f"Ingestion cannot run: {e}")
            result.errors.append(str(e))
            self._fail(scrape_log, result, started, str(e))
            return result

        except asyncio.CancelledError:
            logger.error("Ingestion cancelled before completion")
            self._fail(scrape_log, result, started, "Run cancelled (timed out)")
            raise

        except Exception as e:
            logger.exception("Ingestion failed")
            self.db.rollback()
            self._fail(scrape_log, result, started, str(e))
            raise

    def _load_lookups(self):
        """Preload airlines and active routes; read-only for the rest of the run."""
        airlines = self.db.query(Airline).filter(
            Airline.is_active == True,
            Airline.seats_aero_code.isnot(None),
        ).all()
        airline_map = {a.seats_aero_code: a for a in airlines}

        routes = self.db.query(Route).filter(Route.is_active == True).all()
        route_lookup = {route.key: route for route in routes}
        origin_codes = {route.origin_code for route in routes}
        dest_codes = {route.destination_code for route in routes}

        return airline_map, route_lookup, origin_codes, dest_codes

    async def _scrape_source(
        self,
        client: SeatsAeroClient,
        source: str,
        airline: Airline,
        route_lookup: dict[str, Route],
        origin_codes: set[str],
        dest_codes: set[str],
    ) -> tuple[int, int]:
        """Ingest every page for one source. Returns (rows touched, pages read)."""
        matches = 0
        pages = 0

        async for page in client.iter_bulk_availability(source):
            pages += 1
            for record in page.records:
                codes = get_route_codes(record)

                # Cheap set filter before any per-cabin parsing
                if codes.origin not in origin_codes or codes.destination not in dest_codes:
                    continue

                route = route_lookup.get(f"{codes.origin}-{codes.destination}")
                if not route:
                    continue

                travel_date = _parse_travel_date(record.get("Date"))
                if travel_date is None:
                    logger.debug(f"Skipping {source} record {record.get('ID')} with bad date {record.get('Date')!r}")
                    continue

                for cabin in parse_availability(record):
                    self._upsert_price(route, airline, cabin, travel_date, record)
                    matches += 1

            self.db.commit()

        return matches, pages

    def _upsert_price(
        self,
        route: Route,
        airline: Airline,
        cabin: CabinAvailability,
        travel_date: date,
        record: dict[str, Any],
    ) -> DailyMileagePrice:
        amex_points = calculate_amex_points(cabin.mileage_cost, airline.amex_transfer_ratio)
        capital_one_points = calculate_capital_one_points(cabin.mileage_cost, airline.capital_one_transfer_ratio)

        price = self.db.query(DailyMileagePrice).filter(
            DailyMileagePrice.route_id == route.id,
            DailyMileagePrice.airline_id == airline.id,
            DailyMileagePrice.cabin_class == cabin.cabin_class,
            DailyMileagePrice.travel_date == travel_date,
            DailyMileagePrice.source == SOURCE_NAME,
        ).first()

        if price is None:
            price = DailyMileagePrice(
                route_id=route.id,
                airline_id=airline.id,
                cabin_class=cabin.cabin_class,
                travel_date=travel_date,
                source=SOURCE_NAME,
            )
            self.db.add(price)

        price.mileage_cost = cabin.mileage_cost
        price.amex_points_equivalent = amex_points
        price.capital_one_points_equivalent = capital_one_points
        price.availability_count = cabin.remaining_seats
        price.is_direct = cabin.is_direct
        price.scraped_at = utc_now()
        price.source_id = record.get("ID")

        # Flush so a second record for the same key in this page finds the row
        self.db.flush()
        return price

    def _finalize(self, scrape_log: ScrapeLog, result: ScrapeResult):
        scrape_log.status = result.status
        scrape_log.routes_total = result.routes_total
        scrape_log.routes_success = result.routes_success
        scrape_log.routes_failed = result.routes_failed
        scrape_log.prices_found = result.prices_found
        scrape_log.duration_ms = result.duration_ms
        scrape_log.error_message = "; ".join(result.errors) if result.errors else None
        scrape_log.completed_at = utc_now()
        self.db.commit()

    def _fail(self, scrape_log: ScrapeLog, result: ScrapeResult, started: float, message: str):
        result.status = ScrapeStatus.FAILED
        result.duration_ms = int((time.monotonic() - started) * 1000)
        scrape_log.status = ScrapeStatus.FAILED
        scrape_log.duration_ms = result.duration_ms
        scrape_log.error_message = message
        scrape_log.completed_at = utc_now()
        self.db.commit()

    async def close(self):
        if self._client is not None:
            await self._client.close()


def _parse_travel_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


async def run_ingestion(db: Session, client: Optional[SeatsAeroClient] = None) -> ScrapeResult:
    """Entry point for the scheduler and cron endpoint."""
    scraper = PriceScraper(db, client=client)
    try:
        return await scraper.run()
    finally:
        if client is None:
            await scraper.close()
