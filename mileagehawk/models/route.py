from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from mileagehawk.database import Base
from mileagehawk.models.enums import Region


class Airport(Base):
    __tablename__ = "airports"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(3), nullable=False, unique=True, index=True)  # IATA code
    name = Column(String(100), nullable=False)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    region = Column(SQLEnum(Region), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_origin = Column(Boolean, default=False, nullable=False)


class Route(Base):
    """
    A monitored origin -> destination pair.

    Seeded from reference data; only ``is_active`` changes at runtime.
    """
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)
    origin_airport_id = Column(Integer, ForeignKey("airports.id"), nullable=False)
    destination_airport_id = Column(Integer, ForeignKey("airports.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    origin_airport = relationship("Airport", foreign_keys=[origin_airport_id], lazy="joined")
    destination_airport = relationship("Airport", foreign_keys=[destination_airport_id], lazy="joined")

    __table_args__ = (
        UniqueConstraint("origin_airport_id", "destination_airport_id", name="uq_route_origin_destination"),
    )

    @property
    def origin_code(self) -> str:
        return self.origin_airport.code

    @property
    def destination_code(self) -> str:
        return self.destination_airport.code

    @property
    def region(self) -> Region:
        """Region of the destination airport; drives threshold-based scoring."""
        return self.destination_airport.region

    @property
    def key(self) -> str:
        return f"{self.origin_code}-{self.destination_code}"

    def __repr__(self) -> str:
        return f"<Route {self.id}: {self.key}>"
