from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from mileagehawk.database import Base
from mileagehawk.models.enums import CabinClass
from mileagehawk.utils.dates import utc_now


class DailyMileagePrice(Base):
    """
    Normalized award price for one route/airline/cabin/travel date from one source.

    The natural key (route, airline, cabin, travel date, source) is unique:
    re-ingesting the same availability overwrites the row instead of
    adding another.
    """
    __tablename__ = "daily_mileage_prices"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    route_id = Column(Integer, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False)
    airline_id = Column(Integer, ForeignKey("airlines.id", ondelete="CASCADE"), nullable=False)
    cabin_class = Column(SQLEnum(CabinClass), nullable=False)
    travel_date = Column(Date, nullable=False)
    source = Column(String(30), nullable=False, default="seats_aero")

    mileage_cost = Column(Integer, nullable=False)
    amex_points_equivalent = Column(Integer, nullable=False)  # ceil(miles / amex ratio)
    capital_one_points_equivalent = Column(Integer, nullable=True)
    availability_count = Column(Integer, nullable=True)  # remaining seats, if reported
    is_direct = Column(Boolean, default=False, nullable=False)

    scraped_at = Column(DateTime, default=utc_now, nullable=False)
    source_id = Column(String(100), nullable=True)  # provider record id, for traceability
    booking_url = Column(String(500), nullable=True)

    route = relationship("Route")
    airline = relationship("Airline")

    __table_args__ = (
        UniqueConstraint(
            "route_id", "airline_id", "cabin_class", "travel_date", "source",
            name="uq_daily_price_natural_key",
        ),
        Index("ix_daily_price_scraped", "scraped_at"),
        Index("ix_daily_price_route_scraped", "route_id", "scraped_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<DailyMileagePrice {self.id}: route={self.route_id} {self.cabin_class} "
            f"{self.mileage_cost} miles / {self.amex_points_equivalent} pts>"
        )
