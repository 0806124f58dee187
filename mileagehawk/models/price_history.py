from sqlalchemy import Column, Integer, Date, ForeignKey, UniqueConstraint, Enum as SQLEnum
from mileagehawk.database import Base
from mileagehawk.models.enums import CabinClass


class PriceHistory(Base):
    """
    Daily min/avg/max of points-equivalent cost per route/airline/cabin.

    Written only by the price aggregator; min_price <= avg_price <= max_price.
    """
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False)
    airline_id = Column(Integer, ForeignKey("airlines.id", ondelete="CASCADE"), nullable=False)
    cabin_class = Column(SQLEnum(CabinClass), nullable=False)
    date = Column(Date, nullable=False)

    min_price = Column(Integer, nullable=False)
    avg_price = Column(Integer, nullable=False)
    max_price = Column(Integer, nullable=False)
    sample_size = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("route_id", "airline_id", "cabin_class", "date", name="uq_price_history_day"),
    )
