import enum


class CabinClass(str, enum.Enum):
    """Cabins tracked by the pipeline. Plain economy is not monitored."""
    ECONOMY_PLUS = "ECONOMY_PLUS"
    BUSINESS = "BUSINESS"
    FIRST = "FIRST"


class Region(str, enum.Enum):
    EUROPE = "EUROPE"
    ASIA = "ASIA"
    MIDDLE_EAST = "MIDDLE_EAST"
    OCEANIA = "OCEANIA"
    LATIN_AMERICA_MEXICO = "LATIN_AMERICA_MEXICO"
    LATIN_AMERICA_SOUTH = "LATIN_AMERICA_SOUTH"
    CARIBBEAN = "CARIBBEAN"


class AlertChannel(str, enum.Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"


class ScrapeStatus(str, enum.Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"
