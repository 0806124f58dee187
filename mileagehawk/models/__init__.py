# SQLAlchemy models
from mileagehawk.models.enums import CabinClass, Region, AlertChannel, ScrapeStatus
from mileagehawk.models.route import Airport, Route
from mileagehawk.models.airline import Airline
from mileagehawk.models.mileage_price import DailyMileagePrice
from mileagehawk.models.price_history import PriceHistory
from mileagehawk.models.user import User
from mileagehawk.models.alert import UserAlert, AlertHistory
from mileagehawk.models.scrape_log import ScrapeLog

__all__ = [
    "Airport",
    "Route",
    "Airline",
    "DailyMileagePrice",
    "PriceHistory",
    "User",
    "UserAlert",
    "AlertHistory",
    "ScrapeLog",
    # Enums
    "CabinClass",
    "Region",
    "AlertChannel",
    "ScrapeStatus",
]
