"""Tests for the ingestion run: filtering, normalization, idempotent upserts and run status."""
import asyncio
from datetime import date

import pytest

from mileagehawk.config import get_settings
from mileagehawk.models import CabinClass, DailyMileagePrice, ScrapeLog, ScrapeStatus
from mileagehawk.services.price_scraper import PriceScraper
from mileagehawk.services.seats_aero import AvailabilityPage, SeatsAeroError


class FakeSeatsAero:
    """Stands in for SeatsAeroClient; serves canned pages per source."""

    def __init__(self, pages_by_source=None, failing=()):
        self.pages_by_source = pages_by_source or {}
        self.failing = set(failing)
        self.requested = []

    async def iter_bulk_availability(self, source, **filters):
        self.requested.append(source)
        if source in self.failing:
            raise SeatsAeroError("Seats.aero API error: 500", status_code=500, body="boom")
        for page in self.pages_by_source.get(source, []):
            yield page

    async def close(self):
        pass


class HangingSeatsAero(FakeSeatsAero):
    """Never yields a page, like a provider that stops responding."""

    async def iter_bulk_availability(self, source, **filters):
        self.requested.append(source)
        await asyncio.Event().wait()
        yield


def _record(origin, destination, travel_date="2026-05-01", record_id="r1", **cabins) -> dict:
    record = {
        "ID": record_id,
        "Route": {"OriginAirport": origin, "DestinationAirport": destination},
        "Date": travel_date,
    }
    record.update(cabins)
    return record


def _page(*records, has_more=False) -> AvailabilityPage:
    return AvailabilityPage(records=list(records), has_more=has_more, count=len(records))


AEROPLAN_PAGES = [
    _page(
        _record("AUS", "LHR", JAvailable=True, JMileageCost="60000", JRemainingSeats=2, JDirect=True),
        # Not a monitored origin
        _record("JFK", "LHR", record_id="r2", JAvailable=True, JMileageCost="45000"),
        # Not a monitored destination
        _record("AUS", "YYZ", record_id="r3", JAvailable=True, JMileageCost="25000"),
    ),
    _page(
        _record("DFW", "NRT", record_id="r4",
                JAvailable=True, JMileageCost="75000",
                FAvailable=True, FMileageCost="0"),
    ),
]


def _scraper(db, client, sources):
    return PriceScraper(db, client=client, sources=sources, pause_seconds=0)


class TestIngestion:
    @pytest.mark.asyncio
    async def test_keeps_only_monitored_routes(self, seeded_db):
        client = FakeSeatsAero({"aeroplan": AEROPLAN_PAGES})

        result = await _scraper(seeded_db, client, ["aeroplan"]).run()

        assert result.status == ScrapeStatus.COMPLETED
        assert result.routes_total == 1
        assert result.routes_success == 1
        assert result.routes_failed == 0
        assert result.prices_found == 2
        assert result.errors == []

        prices = seeded_db.query(DailyMileagePrice).all()
        assert len(prices) == 2
        keys = {(p.route.key, p.cabin_class) for p in prices}
        assert keys == {("AUS-LHR", CabinClass.BUSINESS), ("DFW-NRT", CabinClass.BUSINESS)}

    @pytest.mark.asyncio
    async def test_normalizes_points(self, seeded_db):
        client = FakeSeatsAero({"aeromexico": [_page(
            _record("AUS", "MEX", JAvailable=True, JMileageCost=70000, JDirect=True),
        )]})

        await _scraper(seeded_db, client, ["aeromexico"]).run()

        price = seeded_db.query(DailyMileagePrice).one()
        assert price.airline.code == "AM"
        assert price.mileage_cost == 70000
        assert price.amex_points_equivalent == 43750
        assert price.capital_one_points_equivalent == 70000
        assert price.travel_date == date(2026, 5, 1)
        assert price.is_direct is True
        assert price.source == "seats_aero"
        assert price.source_id == "r1"

    @pytest.mark.asyncio
    async def test_no_capital_one_equivalent_for_non_partner(self, seeded_db):
        client = FakeSeatsAero({"delta": [_page(
            _record("AUS", "CDG", JAvailable=True, JMileageCost="90000"),
        )]})

        await _scraper(seeded_db, client, ["delta"]).run()

        price = seeded_db.query(DailyMileagePrice).one()
        assert price.amex_points_equivalent == 90000
        assert price.capital_one_points_equivalent is None

    @pytest.mark.asyncio
    async def test_reingesting_same_payload_adds_no_rows(self, seeded_db):
        client = FakeSeatsAero({"aeroplan": AEROPLAN_PAGES})

        await _scraper(seeded_db, client, ["aeroplan"]).run()
        first = {(p.id, p.amex_points_equivalent) for p in seeded_db.query(DailyMileagePrice).all()}

        await _scraper(seeded_db, client, ["aeroplan"]).run()
        second = {(p.id, p.amex_points_equivalent) for p in seeded_db.query(DailyMileagePrice).all()}

        assert first == second
        assert seeded_db.query(DailyMileagePrice).count() == 2

    @pytest.mark.asyncio
    async def test_updated_price_overwrites_row(self, seeded_db):
        first = FakeSeatsAero({"aeroplan": [_page(_record("AUS", "LHR", JAvailable=True, JMileageCost="60000"))]})
        second = FakeSeatsAero({"aeroplan": [_page(_record("AUS", "LHR", JAvailable=True, JMileageCost="55000"))]})

        await _scraper(seeded_db, first, ["aeroplan"]).run()
        await _scraper(seeded_db, second, ["aeroplan"]).run()

        price = seeded_db.query(DailyMileagePrice).one()
        assert price.mileage_cost == 55000

    @pytest.mark.asyncio
    async def test_duplicate_record_in_one_page_is_one_row(self, seeded_db):
        record = _record("AUS", "LHR", JAvailable=True, JMileageCost="60000")
        client = FakeSeatsAero({"aeroplan": [_page(record, dict(record, ID="r1-dup"))]})

        await _scraper(seeded_db, client, ["aeroplan"]).run()

        assert seeded_db.query(DailyMileagePrice).count() == 1

    @pytest.mark.asyncio
    async def test_bad_date_skipped(self, seeded_db):
        client = FakeSeatsAero({"aeroplan": [_page(
            _record("AUS", "LHR", travel_date="soon", JAvailable=True, JMileageCost="60000"),
        )]})

        result = await _scraper(seeded_db, client, ["aeroplan"]).run()

        assert result.prices_found == 0
        assert result.status == ScrapeStatus.COMPLETED


class TestRunStatus:
    @pytest.mark.asyncio
    async def test_completed_run_is_logged(self, seeded_db):
        client = FakeSeatsAero({"aeroplan": AEROPLAN_PAGES})

        await _scraper(seeded_db, client, ["aeroplan"]).run()

        log = seeded_db.query(ScrapeLog).one()
        assert log.status == ScrapeStatus.COMPLETED
        assert log.prices_found == 2
        assert log.routes_success == 1
        assert log.completed_at is not None
        assert log.error_message is None

    @pytest.mark.asyncio
    async def test_one_failing_source_is_partial(self, seeded_db):
        client = FakeSeatsAero({"aeroplan": AEROPLAN_PAGES}, failing={"delta"})

        result = await _scraper(seeded_db, client, ["delta", "aeroplan"]).run()

        assert client.requested == ["delta", "aeroplan"]
        assert result.status == ScrapeStatus.PARTIAL
        assert result.routes_success == 1
        assert result.routes_failed == 1
        assert result.prices_found == 2
        assert len(result.errors) == 1
        assert "delta" in result.errors[0]

        log = seeded_db.query(ScrapeLog).one()
        assert log.status == ScrapeStatus.PARTIAL
        assert "delta" in log.error_message

    @pytest.mark.asyncio
    async def test_unresolved_source_counts_as_failed(self, seeded_db):
        client = FakeSeatsAero({"aeroplan": AEROPLAN_PAGES})

        result = await _scraper(seeded_db, client, ["notaprogram", "aeroplan"]).run()

        assert "notaprogram" not in client.requested
        assert result.status == ScrapeStatus.PARTIAL
        assert result.routes_failed == 1
        assert "No airline found" in result.errors[0]

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_run_without_raising(self, seeded_db, monkeypatch):
        monkeypatch.setattr(get_settings(), "seats_aero_api_key", "")

        result = await PriceScraper(seeded_db, sources=["aeroplan"], pause_seconds=0).run()

        assert result.status == ScrapeStatus.FAILED
        assert result.errors
        log = seeded_db.query(ScrapeLog).one()
        assert log.status == ScrapeStatus.FAILED
        assert log.completed_at is not None
        assert "SEATS_AERO_API_KEY" in log.error_message

    @pytest.mark.asyncio
    async def test_run_level_error_marks_failed_and_propagates(self, seeded_db, monkeypatch):
        scraper = _scraper(seeded_db, FakeSeatsAero(), ["aeroplan"])

        def broken_lookups():
            raise RuntimeError("database went away")

        monkeypatch.setattr(scraper, "_load_lookups", broken_lookups)

        with pytest.raises(RuntimeError):
            await scraper.run()

        log = seeded_db.query(ScrapeLog).one()
        assert log.status == ScrapeStatus.FAILED
        assert log.error_message == "database went away"

    @pytest.mark.asyncio
    async def test_timed_out_run_marks_failed_and_propagates(self, seeded_db):
        scraper = _scraper(seeded_db, HangingSeatsAero(), ["aeroplan"])

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(scraper.run(), timeout=0.05)

        log = seeded_db.query(ScrapeLog).one()
        assert log.status == ScrapeStatus.FAILED
        assert log.completed_at is not None
        assert "cancelled" in log.error_message
