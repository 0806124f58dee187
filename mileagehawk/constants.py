"""
Reference data: transfer partners, airports, regional thresholds and deal tiers.

Transfer ratios last verified February 2026. Thresholds are one-way
Membership Rewards points.
"""
from dataclasses import dataclass
from typing import Optional

from mileagehawk.models.enums import CabinClass, Region


@dataclass(frozen=True)
class AirlineData:
    name: str
    code: str
    loyalty_program: str
    loyalty_currency: str
    amex_transfer_ratio: float
    capital_one_transfer_ratio: Optional[float]  # None = not a Capital One partner
    alliance: Optional[str]
    seats_aero_code: Optional[str]  # None = no live availability feed


@dataclass(frozen=True)
class AirportData:
    code: str
    name: str
    city: str
    country: str
    region: Region
    latitude: float
    longitude: float
    is_origin: bool = False


@dataclass(frozen=True)
class ThresholdConfig:
    typical_range: tuple[int, int]
    good_deal: int
    exceptional_deal: int

    @property
    def typical_avg(self) -> float:
        return (self.typical_range[0] + self.typical_range[1]) / 2


@dataclass(frozen=True)
class RegionThresholds:
    region: Region
    destinations: tuple[str, ...]
    economy_plus: ThresholdConfig
    business: ThresholdConfig
    first: ThresholdConfig

    def for_cabin(self, cabin_class: CabinClass) -> ThresholdConfig:
        return {
            CabinClass.ECONOMY_PLUS: self.economy_plus,
            CabinClass.BUSINESS: self.business,
            CabinClass.FIRST: self.first,
        }[cabin_class]


# ==========================================
# AMEX Membership Rewards transfer partners
# ==========================================

AIRLINES: list[AirlineData] = [
    AirlineData("Aer Lingus", "EI", "AerClub", "Avios", 1.0, None, None, None),
    AirlineData("Aeromexico", "AM", "Aeromexico Rewards", "Points", 1.6, 1.0, "SkyTeam", "aeromexico"),  # 1:1.6 (kilometers)
    AirlineData("Air Canada", "AC", "Aeroplan", "Aeroplan Points", 1.0, 1.0, "Star Alliance", "aeroplan"),
    AirlineData("Air France / KLM", "AF", "Flying Blue", "Miles", 1.0, 1.0, "SkyTeam", "flyingblue"),
    AirlineData("ANA", "NH", "ANA Mileage Club", "Miles", 1.0, None, "Star Alliance", None),
    AirlineData("Avianca", "AV", "LifeMiles", "Miles", 1.0, 1.0, "Star Alliance", "lifemiles"),
    AirlineData("British Airways", "BA", "Executive Club", "Avios", 1.0, 1.0, "Oneworld", None),
    AirlineData("Cathay Pacific", "CX", "Asia Miles", "Asia Miles", 0.8, 1.0, "Oneworld", None),  # 5:4 from March 2026
    AirlineData("Delta Air Lines", "DL", "SkyMiles", "Miles", 1.0, None, "SkyTeam", "delta"),
    AirlineData("Emirates", "EK", "Skywards", "Skywards Miles", 0.8, 0.75, None, "emirates"),
    AirlineData("Etihad Airways", "EY", "Etihad Guest", "Miles", 1.0, 1.0, None, "etihad"),
    AirlineData("Iberia", "IB", "Iberia Plus", "Avios", 1.0, None, "Oneworld", None),
    AirlineData("JetBlue", "B6", "TrueBlue", "Points", 0.8, 0.6, None, "jetblue"),
    AirlineData("Qantas", "QF", "Frequent Flyer", "Qantas Points", 1.0, 1.0, "Oneworld", "qantas"),
    AirlineData("Qatar Airways", "QR", "Privilege Club", "Avios", 1.0, 1.0, "Oneworld", "qatar"),
    AirlineData("Singapore Airlines", "SQ", "KrisFlyer", "Miles", 1.0, 1.0, "Star Alliance", "singapore"),
    AirlineData("Virgin Atlantic", "VS", "Flying Club", "Virgin Points", 1.0, 1.0, "SkyTeam", "virginatlantic"),
]

# ==========================================
# Airports
# ==========================================

_E, _A, _M, _O = Region.EUROPE, Region.ASIA, Region.MIDDLE_EAST, Region.OCEANIA
_MX, _SA, _CB = Region.LATIN_AMERICA_MEXICO, Region.LATIN_AMERICA_SOUTH, Region.CARIBBEAN

AIRPORTS: list[AirportData] = [
    # Origins
    AirportData("AUS", "Austin-Bergstrom International", "Austin", "United States", _MX, 30.1975, -97.6664, True),
    AirportData("DFW", "Dallas/Fort Worth International", "Dallas", "United States", _MX, 32.8968, -97.038, True),
    AirportData("DAL", "Dallas Love Field", "Dallas", "United States", _MX, 32.8471, -96.8518, True),
    # Europe
    AirportData("LHR", "London Heathrow", "London", "United Kingdom", _E, 51.4700, -0.4543),
    AirportData("LGW", "London Gatwick", "London", "United Kingdom", _E, 51.1537, -0.1821),
    AirportData("CDG", "Charles de Gaulle", "Paris", "France", _E, 49.0097, 2.5479),
    AirportData("BER", "Berlin Brandenburg", "Berlin", "Germany", _E, 52.3667, 13.5033),
    AirportData("FCO", "Leonardo da Vinci-Fiumicino", "Rome", "Italy", _E, 41.8003, 12.2389),
    AirportData("BCN", "Barcelona-El Prat", "Barcelona", "Spain", _E, 41.2971, 2.0785),
    AirportData("MAD", "Adolfo Suarez Madrid-Barajas", "Madrid", "Spain", _E, 40.4936, -3.5668),
    AirportData("ATH", "Athens International", "Athens", "Greece", _E, 37.9364, 23.9445),
    AirportData("LIS", "Humberto Delgado", "Lisbon", "Portugal", _E, 38.7756, -9.1354),
    AirportData("DUB", "Dublin Airport", "Dublin", "Ireland", _E, 53.4264, -6.2499),
    AirportData("AMS", "Amsterdam Schiphol", "Amsterdam", "Netherlands", _E, 52.3105, 4.7683),
    # Asia
    AirportData("NRT", "Narita International", "Tokyo", "Japan", _A, 35.7647, 140.3864),
    AirportData("HND", "Tokyo Haneda", "Tokyo", "Japan", _A, 35.5494, 139.7798),
    AirportData("BKK", "Suvarnabhumi", "Bangkok", "Thailand", _A, 13.6900, 100.7501),
    AirportData("ICN", "Incheon International", "Seoul", "South Korea", _A, 37.4602, 126.4407),
    # Middle East
    AirportData("DXB", "Dubai International", "Dubai", "United Arab Emirates", _M, 25.2532, 55.3657),
    # Oceania
    AirportData("SYD", "Sydney Kingsford Smith", "Sydney", "Australia", _O, -33.9399, 151.1753),
    AirportData("MEL", "Melbourne Tullamarine", "Melbourne", "Australia", _O, -37.6690, 144.8410),
    # Mexico & Central America
    AirportData("MEX", "Mexico City International", "Mexico City", "Mexico", _MX, 19.4361, -99.0719),
    AirportData("CUN", "Cancun International", "Cancun", "Mexico", _MX, 21.0365, -86.8771),
    AirportData("SJD", "Los Cabos International", "San Jose del Cabo", "Mexico", _MX, 23.1518, -109.7215),
    # South America
    AirportData("BOG", "El Dorado International", "Bogota", "Colombia", _SA, 4.7016, -74.1469),
    AirportData("GRU", "Sao Paulo-Guarulhos", "Sao Paulo", "Brazil", _SA, -23.4356, -46.4731),
    AirportData("PTY", "Tocumen International", "Panama City", "Panama", _SA, 9.0714, -79.3835),
    # Caribbean
    AirportData("MBJ", "Sangster International", "Montego Bay", "Jamaica", _CB, 18.5037, -77.9134),
    AirportData("SJU", "Luis Munoz Marin International", "San Juan", "Puerto Rico", _CB, 18.4394, -66.0018),
    AirportData("AUA", "Queen Beatrix International", "Oranjestad", "Aruba", _CB, 12.5014, -70.0152),
]

ORIGIN_CODES = ("AUS", "DFW", "DAL")

# ==========================================
# Default thresholds (AMEX points, one-way)
# ==========================================

DEFAULT_THRESHOLDS: list[RegionThresholds] = [
    RegionThresholds(
        Region.EUROPE,
        ("London", "Paris", "Berlin", "Rome", "Barcelona", "Madrid", "Athens", "Lisbon", "Dublin", "Amsterdam"),
        economy_plus=ThresholdConfig((35000, 50000), 30000, 20000),
        business=ThresholdConfig((55000, 80000), 50000, 35000),
        first=ThresholdConfig((90000, 130000), 85000, 70000),
    ),
    RegionThresholds(
        Region.ASIA,
        ("Tokyo", "Bangkok", "Shanghai", "Seoul", "Beijing"),
        economy_plus=ThresholdConfig((40000, 55000), 35000, 25000),
        business=ThresholdConfig((60000, 90000), 55000, 43000),
        first=ThresholdConfig((85000, 120000), 75000, 55000),
    ),
    RegionThresholds(
        Region.MIDDLE_EAST,
        ("Dubai",),
        economy_plus=ThresholdConfig((45000, 60000), 40000, 30000),
        business=ThresholdConfig((80000, 120000), 70000, 55000),
        first=ThresholdConfig((130000, 180000), 115000, 90000),
    ),
    RegionThresholds(
        Region.OCEANIA,
        ("Sydney", "Melbourne"),
        economy_plus=ThresholdConfig((50000, 65000), 45000, 35000),
        business=ThresholdConfig((75000, 100000), 72500, 60000),
        first=ThresholdConfig((110000, 160000), 100000, 80000),
    ),
    RegionThresholds(
        Region.LATIN_AMERICA_MEXICO,
        ("Mexico City", "Cancun", "San Jose del Cabo"),
        economy_plus=ThresholdConfig((12000, 20000), 10000, 7500),
        business=ThresholdConfig((20000, 35000), 17500, 12500),
        first=ThresholdConfig((35000, 50000), 30000, 22500),
    ),
    RegionThresholds(
        Region.LATIN_AMERICA_SOUTH,
        ("Bogota", "Sao Paulo", "Panama City"),
        economy_plus=ThresholdConfig((25000, 35000), 20000, 15000),
        business=ThresholdConfig((40000, 60000), 35000, 25000),
        first=ThresholdConfig((60000, 85000), 55000, 45000),
    ),
    RegionThresholds(
        Region.CARIBBEAN,
        ("Montego Bay", "San Juan", "Oranjestad"),
        economy_plus=ThresholdConfig((15000, 25000), 12500, 9000),
        business=ThresholdConfig((25000, 45000), 22000, 16000),
        first=ThresholdConfig((45000, 65000), 40000, 30000),
    ),
]

# ==========================================
# Deal scoring
# ==========================================

# Ordered high to low; first cut point the score reaches wins.
DEAL_TIERS: list[tuple[str, float, str]] = [
    ("unicorn", 50, "Unicorn"),
    ("amazing", 35, "Amazing"),
    ("great", 20, "Great Deal"),
    ("good", 10, "Good Deal"),
    ("fair", 0, "Fair"),
]


def get_deal_tier(score: float) -> str:
    for tier, min_score, _label in DEAL_TIERS:
        if score >= min_score:
            return tier
    return "fair"


CABIN_CLASS_LABELS = {
    CabinClass.ECONOMY_PLUS: "Economy Plus",
    CabinClass.BUSINESS: "Business",
    CabinClass.FIRST: "First",
}

# ==========================================
# Seats.aero
# ==========================================

SEATS_AERO_DAILY_LIMIT = 1000

# Seats.aero source name -> airline code
SEATS_AERO_SOURCE_MAP: dict[str, str] = {
    airline.seats_aero_code: airline.code
    for airline in AIRLINES
    if airline.seats_aero_code
}
