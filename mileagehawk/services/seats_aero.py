"""
Seats.aero API client for award flight availability.

API docs: https://developers.seats.aero/reference/overview
Authentication: Partner-Authorization header with the API key.
Rate limit: 1,000 calls/day for Pro users, reported back in X-Ratelimit-Remaining.
"""
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import httpx

from mileagehawk.constants import SEATS_AERO_DAILY_LIMIT, SEATS_AERO_SOURCE_MAP
from mileagehawk.exceptions import ConfigurationError, SourceError
from mileagehawk.models.enums import CabinClass

logger = logging.getLogger(__name__)

BASE_URL = "https://seats.aero/partnerapi"
MAX_PAGES_PER_SOURCE = 20

# Cabin -> Seats.aero field prefix. Plain economy (Y) is not tracked.
CABIN_PREFIXES: dict[CabinClass, str] = {
    CabinClass.ECONOMY_PLUS: "W",
    CabinClass.BUSINESS: "J",
    CabinClass.FIRST: "F",
}


class SeatsAeroError(SourceError):
    """Seats.aero returned a non-2xx status or an unusable payload."""


@dataclass
class CabinAvailability:
    """One cabin's worth of availability parsed from a record."""
    cabin_class: CabinClass
    mileage_cost: int
    remaining_seats: Optional[int]
    is_direct: bool


@dataclass
class AvailabilityPage:
    """One page of availability records."""
    records: list[dict[str, Any]]
    has_more: bool = False
    next_cursor: Optional[str] = None
    count: int = 0


@dataclass
class RouteCodes:
    origin: str
    destination: str


class SeatsAeroClient:
    """
    Seats.aero partner API client.

    Build once and pass it to whatever needs it; the underlying
    httpx.AsyncClient is created lazily and reused across calls.

    Usage:
        client = SeatsAeroClient(api_key="your_key")
        page = await client.fetch_bulk_availability("aeroplan")
    """

    def __init__(self, api_key: str, base_url: str = BASE_URL, max_pages: int = MAX_PAGES_PER_SOURCE):
        if not api_key:
            raise ConfigurationError("SEATS_AERO_API_KEY is not configured", setting="seats_aero_api_key")
        self.api_key = api_key
        self.base_url = base_url
        self.max_pages = max_pages
        self.calls_remaining: int = SEATS_AERO_DAILY_LIMIT
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Partner-Authorization": self.api_key,
                    "Accept": "application/json",
                },
                timeout=30.0,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, endpoint: str, params: Optional[dict[str, str]] = None) -> Any:
        client = await self._get_client()
        # Drop empty params so optional filters are not sent as blanks
        query = {k: v for k, v in (params or {}).items() if v}

        response = await client.get(endpoint, params=query)

        remaining = response.headers.get("X-Ratelimit-Remaining")
        if remaining and remaining.isdigit():
            self.calls_remaining = int(remaining)

        if not response.is_success:
            logger.error(f"Seats.aero API error: {response.status_code} - {response.text[:200]}")
            raise SeatsAeroError(
                f"Seats.aero API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise SeatsAeroError(
                f"Seats.aero returned malformed JSON: {e}",
                status_code=response.status_code,
                body=response.text[:500],
            ) from e

    @staticmethod
    def _to_page(data: Any, status_code: int = 200) -> AvailabilityPage:
        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise SeatsAeroError(
                "Seats.aero response missing 'data' list",
                status_code=status_code,
                body=str(data)[:500],
            )
        cursor = data.get("cursor")
        return AvailabilityPage(
            records=data["data"],
            has_more=bool(data.get("hasMore", False)),
            next_cursor=str(cursor) if cursor not in (None, "") else None,
            count=data.get("count", len(data["data"])),
        )

    async def fetch_bulk_availability(
        self,
        source: str,
        cursor: Optional[str] = None,
        origin_region: Optional[str] = None,
        destination_region: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> AvailabilityPage:
        """
        Fetch one page of bulk availability for a program.

        The /availability endpoint is the cheapest way to cover every route a
        program publishes; callers filter to the routes they monitor.

        Raises:
            SeatsAeroError: on non-2xx responses or malformed payloads.
        """
        data = await self._request("/availability", {
            "source": source,
            "origin_region": origin_region or "",
            "destination_region": destination_region or "",
            "start_date": start_date or "",
            "end_date": end_date or "",
            "cursor": cursor or "",
        })
        return self._to_page(data)

    async def iter_bulk_availability(self, source: str, **filters) -> AsyncIterator[AvailabilityPage]:
        """
        Page through bulk availability for a program.

        Stops when the provider reports no more pages or after ``max_pages``,
        whichever comes first, so a provider that always says hasMore still
        terminates.
        """
        cursor: Optional[str] = None
        pages = 0
        while True:
            page = await self.fetch_bulk_availability(source, cursor=cursor, **filters)
            pages += 1
            yield page

            if not page.has_more or not page.next_cursor:
                break
            if pages >= self.max_pages:
                logger.info(f"Hit page limit ({self.max_pages}) for {source}, stopping pagination")
                break
            cursor = page.next_cursor

    async def search_availability(
        self,
        origin: str,
        destination: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        source: Optional[str] = None,
        cursor: Optional[str] = None,
    ) -> AvailabilityPage:
        """Search cached availability between two airports (the /search endpoint)."""
        data = await self._request("/search", {
            "origin_airport": origin.upper(),
            "destination_airport": destination.upper() if destination else "",
            "start_date": start_date or "",
            "end_date": end_date or "",
            "source": source or "",
            "cursor": cursor or "",
        })
        return self._to_page(data)

    async def get_trip_details(self, availability_id: str) -> dict:
        """Get flight-level details for a specific availability result."""
        return await self._request(f"/trips/{availability_id}")

    def get_remaining_calls(self) -> int:
        return self.calls_remaining


def airline_code_for_source(source: str) -> Optional[str]:
    return SEATS_AERO_SOURCE_MAP.get(source)


def source_for_airline_code(airline_code: str) -> Optional[str]:
    return next((s for s, code in SEATS_AERO_SOURCE_MAP.items() if code == airline_code), None)


def parse_mileage_cost(value: Any) -> int:
    """
    Parse a mileage cost that Seats.aero sends as either int or string.

    Anything unparseable (None, "", "N/A", negative) becomes 0, which callers
    treat as "no price" and skip.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0)
    if isinstance(value, str):
        value = value.strip()
        if value.isdigit():
            return int(value)
    return 0


def parse_availability(record: dict[str, Any]) -> list[CabinAvailability]:
    """
    Split one availability record into per-cabin prices.

    Only cabins flagged available with a positive cost are returned. Direct
    flags are per cabin (WDirect/JDirect/FDirect).
    """
    results = []
    for cabin_class, prefix in CABIN_PREFIXES.items():
        if not record.get(f"{prefix}Available"):
            continue

        cost = parse_mileage_cost(record.get(f"{prefix}MileageCost"))
        if cost <= 0:
            continue

        results.append(CabinAvailability(
            cabin_class=cabin_class,
            mileage_cost=cost,
            remaining_seats=parse_mileage_cost(record.get(f"{prefix}RemainingSeats")) or None,
            is_direct=bool(record.get(f"{prefix}Direct") or False),
        ))
    return results


def get_route_codes(record: dict[str, Any]) -> RouteCodes:
    """Origin/destination codes from a record's nested Route object."""
    route = record.get("Route") or {}
    return RouteCodes(
        origin=(route.get("OriginAirport") or "").upper(),
        destination=(route.get("DestinationAirport") or "").upper(),
    )
