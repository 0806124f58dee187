"""Tests for the Seats.aero client: pagination, quota tracking, errors and record parsing."""
import json

import httpx
import pytest

from mileagehawk.exceptions import ConfigurationError, SourceError
from mileagehawk.models.enums import CabinClass
from mileagehawk.services.seats_aero import (
    SeatsAeroClient,
    SeatsAeroError,
    airline_code_for_source,
    get_route_codes,
    parse_availability,
    parse_mileage_cost,
    source_for_airline_code,
)


def _make_client(handler, max_pages: int = 20) -> SeatsAeroClient:
    """SeatsAeroClient whose HTTP calls go to ``handler`` instead of the network."""
    client = SeatsAeroClient(api_key="test-key", max_pages=max_pages)
    client._client = httpx.AsyncClient(
        base_url="https://seats.aero/partnerapi",
        transport=httpx.MockTransport(handler),
    )
    return client


def _record(origin="AUS", destination="LHR", **fields) -> dict:
    record = {
        "ID": "avail-1",
        "Route": {"OriginAirport": origin, "DestinationAirport": destination},
        "Date": "2026-05-01",
        "Source": "aeroplan",
    }
    record.update(fields)
    return record


class TestClientConstruction:
    def test_missing_api_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            SeatsAeroClient(api_key="")

    def test_starts_with_daily_quota(self):
        client = SeatsAeroClient(api_key="k")
        assert client.get_remaining_calls() == 1000


class TestFetchBulkAvailability:
    @pytest.mark.asyncio
    async def test_sends_auth_header_and_source(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"data": [], "hasMore": False})

        client = _make_client(handler)
        # Header comes from the client we build; check it on a fresh one
        fresh = SeatsAeroClient(api_key="test-key")
        http = await fresh._get_client()
        assert http.headers["Partner-Authorization"] == "test-key"
        await fresh.close()

        page = await client.fetch_bulk_availability("aeroplan")
        await client.close()

        assert seen["path"].endswith("/availability")
        assert seen["params"] == {"source": "aeroplan"}
        assert page.records == []
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_passes_cursor(self):
        seen = {}

        def handler(request):
            seen["cursor"] = request.url.params.get("cursor")
            return httpx.Response(200, json={"data": [_record()], "hasMore": True, "cursor": 42})

        client = _make_client(handler)
        page = await client.fetch_bulk_availability("aeroplan", cursor="41")

        assert seen["cursor"] == "41"
        assert page.has_more is True
        assert page.next_cursor == "42"
        assert page.count == 1

    @pytest.mark.asyncio
    async def test_tracks_remaining_quota_header(self):
        def handler(request):
            return httpx.Response(200, json={"data": []}, headers={"X-Ratelimit-Remaining": "873"})

        client = _make_client(handler)
        await client.fetch_bulk_availability("aeroplan")

        assert client.calls_remaining == 873

    @pytest.mark.asyncio
    async def test_non_success_raises_source_error(self):
        def handler(request):
            return httpx.Response(429, text="slow down")

        client = _make_client(handler)
        with pytest.raises(SeatsAeroError) as exc_info:
            await client.fetch_bulk_availability("aeroplan")

        assert isinstance(exc_info.value, SourceError)
        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "slow down"

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        client = _make_client(handler)
        with pytest.raises(SeatsAeroError):
            await client.fetch_bulk_availability("aeroplan")

    @pytest.mark.asyncio
    async def test_missing_data_list_raises(self):
        def handler(request):
            return httpx.Response(200, json={"error": "nope"})

        client = _make_client(handler)
        with pytest.raises(SeatsAeroError):
            await client.fetch_bulk_availability("aeroplan")


class TestPagination:
    @pytest.mark.asyncio
    async def test_follows_cursor_until_done(self):
        pages = {
            None: {"data": [_record()], "hasMore": True, "cursor": "c2"},
            "c2": {"data": [_record(), _record()], "hasMore": True, "cursor": "c3"},
            "c3": {"data": [], "hasMore": False},
        }

        def handler(request):
            return httpx.Response(200, json=pages[request.url.params.get("cursor")])

        client = _make_client(handler)
        results = [page async for page in client.iter_bulk_availability("aeroplan")]

        assert [len(p.records) for p in results] == [1, 2, 0]

    @pytest.mark.asyncio
    async def test_page_ceiling_stops_endless_provider(self):
        calls = []

        def handler(request):
            calls.append(request.url.params.get("cursor"))
            return httpx.Response(200, json={"data": [], "hasMore": True, "cursor": f"c{len(calls)}"})

        client = _make_client(handler, max_pages=20)
        results = [page async for page in client.iter_bulk_availability("aeroplan")]

        assert len(results) == 20
        assert len(calls) == 20


class TestSearchAndTrips:
    @pytest.mark.asyncio
    async def test_search_uppercases_airports(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"data": [_record()], "hasMore": False})

        client = _make_client(handler)
        page = await client.search_availability("aus", "lhr", start_date="2026-05-01")

        assert seen["path"].endswith("/search")
        assert seen["params"] == {
            "origin_airport": "AUS",
            "destination_airport": "LHR",
            "start_date": "2026-05-01",
        }
        assert len(page.records) == 1

    @pytest.mark.asyncio
    async def test_trip_details(self):
        def handler(request):
            assert request.url.path.endswith("/trips/avail-1")
            return httpx.Response(200, json={"data": [{"FlightNumbers": "AC 32"}]})

        client = _make_client(handler)
        details = await client.get_trip_details("avail-1")

        assert details["data"][0]["FlightNumbers"] == "AC 32"


class TestParseMileageCost:
    @pytest.mark.parametrize("value,expected", [
        (55000, 55000),
        ("55000", 55000),
        (" 60000 ", 60000),
        (55000.0, 55000),
        (None, 0),
        ("", 0),
        ("N/A", 0),
        (-5, 0),
        (True, 0),
    ])
    def test_values(self, value, expected):
        assert parse_mileage_cost(value) == expected


class TestParseAvailability:
    def test_one_entry_per_available_cabin(self):
        record = _record(
            WAvailable=True, WMileageCost="30000", WRemainingSeats=4, WDirect=False,
            JAvailable=True, JMileageCost="60000", JRemainingSeats=2, JDirect=True,
            FAvailable=False, FMileageCost="120000",
        )

        cabins = parse_availability(record)

        assert [c.cabin_class for c in cabins] == [CabinClass.ECONOMY_PLUS, CabinClass.BUSINESS]
        business = cabins[1]
        assert business.mileage_cost == 60000
        assert business.remaining_seats == 2
        assert business.is_direct is True
        assert cabins[0].is_direct is False

    def test_skips_zero_or_unparseable_cost(self):
        record = _record(JAvailable=True, JMileageCost="0", FAvailable=True, FMileageCost="N/A")
        assert parse_availability(record) == []

    def test_zero_remaining_seats_is_unknown(self):
        record = _record(JAvailable=True, JMileageCost=70000, JRemainingSeats=0)
        assert parse_availability(record)[0].remaining_seats is None

    def test_string_remaining_seats_parsed_to_int(self):
        record = _record(JAvailable=True, JMileageCost=70000, JRemainingSeats="4",
                         FAvailable=True, FMileageCost=90000, FRemainingSeats="N/A")

        business, first = parse_availability(record)

        assert business.remaining_seats == 4
        assert first.remaining_seats is None

    def test_nothing_available(self):
        assert parse_availability(_record()) == []


class TestRouteCodesAndSources:
    def test_route_codes_uppercased(self):
        codes = get_route_codes(_record(origin="aus", destination="lhr"))
        assert (codes.origin, codes.destination) == ("AUS", "LHR")

    def test_missing_route(self):
        codes = get_route_codes({"ID": "x"})
        assert (codes.origin, codes.destination) == ("", "")

    def test_source_lookups(self):
        assert airline_code_for_source("flyingblue") == "AF"
        assert source_for_airline_code("AF") == "flyingblue"
        assert airline_code_for_source("american") is None
        assert source_for_airline_code("BA") is None


def test_error_body_preserved_as_text():
    err = SeatsAeroError("boom", status_code=500, body=json.dumps({"x": 1}))
    assert err.status_code == 500
    assert json.loads(err.body) == {"x": 1}
