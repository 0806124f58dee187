from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, JSON, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from mileagehawk.database import Base
from mileagehawk.models.enums import AlertChannel, CabinClass
from mileagehawk.utils.dates import utc_now


class UserAlert(Base):
    """
    A subscription: notify when a route/cabin (optionally one airline) drops
    below ``threshold_points``.

    Managed by the user-facing layer; the pipeline only updates
    ``last_triggered_at``.
    """
    __tablename__ = "user_alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False)
    cabin_class = Column(SQLEnum(CabinClass), nullable=False)
    airline_id = Column(Integer, ForeignKey("airlines.id", ondelete="SET NULL"), nullable=True)  # null = any airline
    threshold_points = Column(Integer, nullable=False)
    alert_channels = Column(JSON, nullable=False, default=lambda: [AlertChannel.EMAIL.value])
    is_active = Column(Boolean, default=True, nullable=False)
    last_triggered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User")
    route = relationship("Route")
    airline = relationship("Airline")

    @property
    def channels(self) -> list[AlertChannel]:
        """Configured channels as enums, de-duplicated in order."""
        seen: list[AlertChannel] = []
        for value in self.alert_channels or []:
            channel = AlertChannel(value)
            if channel not in seen:
                seen.append(channel)
        return seen


class AlertHistory(Base):
    """
    One row per (alert, channel) per trigger.

    Created with notification_sent=False before delivery is attempted, then
    updated with the outcome. Also the per-day duplicate fence.
    """
    __tablename__ = "alert_history"

    id = Column(Integer, primary_key=True, index=True)
    user_alert_id = Column(Integer, ForeignKey("user_alerts.id", ondelete="CASCADE"), nullable=False)
    daily_mileage_price_id = Column(
        Integer, ForeignKey("daily_mileage_prices.id", ondelete="SET NULL"), nullable=True
    )
    channel = Column(SQLEnum(AlertChannel), nullable=False)
    notification_sent = Column(Boolean, default=False, nullable=False)
    triggered_at = Column(DateTime, default=utc_now, nullable=False)

    user_alert = relationship("UserAlert")

    __table_args__ = (
        Index("ix_alert_history_alert_time", "user_alert_id", "triggered_at"),
    )
