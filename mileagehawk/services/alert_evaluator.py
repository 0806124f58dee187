"""
Alert evaluation.

Compares today's prices against every active subscription and fans out
notifications for the ones that dropped below their threshold. A run issues
one price query and one trigger-history query no matter how many alerts
exist; everything per alert is resolved against in-memory indexes.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Optional, Union

from sqlalchemy.orm import Session, joinedload

from mileagehawk.models import AlertHistory, CabinClass, DailyMileagePrice, Route, UserAlert
from mileagehawk.services.notification import AlertNotification, NotificationService
from mileagehawk.utils.dates import start_of_utc_day, utc_now

logger = logging.getLogger(__name__)

ANY_AIRLINE = "*"

PriceKey = tuple[int, CabinClass, Union[int, str]]


@dataclass
class AlertEvalResult:
    alerts_checked: int = 0
    alerts_triggered: int = 0  # alerts, not channel attempts
    notifications_sent: int = 0  # successful channel deliveries
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PriceMatch:
    """Detached copy of a price row, safe to read after the session commits."""
    id: int
    airline_id: int
    airline_name: str
    loyalty_program: str
    mileage_cost: int
    amex_points_equivalent: int
    travel_date: date
    booking_url: Optional[str]


class AlertEvaluator:
    def __init__(self, db: Session, notifier: NotificationService):
        self.db = db
        self.notifier = notifier

    async def run(self) -> AlertEvalResult:
        result = AlertEvalResult()
        logger.info("Starting alert evaluation")

        # Loading alerts is the one fatal precondition; let it propagate
        alerts = self.db.query(UserAlert).options(
            joinedload(UserAlert.user),
            joinedload(UserAlert.route).joinedload(Route.origin_airport),
            joinedload(UserAlert.route).joinedload(Route.destination_airport),
            joinedload(UserAlert.airline),
        ).filter(UserAlert.is_active == True).all()

        result.alerts_checked = len(alerts)
        logger.info(f"Checking {len(alerts)} active alerts")
        if not alerts:
            return result

        today_start = start_of_utc_day()
        price_index = self._load_price_index(alerts, today_start)
        already_triggered = self._load_triggered_today(alerts, today_start)

        # Snapshot before the loop; per-alert commits expire ORM state
        pending = []
        for alert in alerts:
            try:
                pending.append((self._build_notification(alert), _alert_price_key(alert), alert.channels))
            except Exception as e:
                msg = f"Error evaluating alert {alert.id}: {e}"
                logger.error(msg)
                result.errors.append(msg)

        for base, price_key, channels in pending:
            alert_id = base.alert_id
            try:
                price = price_index.get(price_key)
                if price is None:
                    continue
                if price.amex_points_equivalent >= base.threshold_points:
                    continue
                if alert_id in already_triggered:
                    logger.debug(f"Alert {alert_id} already triggered today")
                    continue

                result.alerts_triggered += 1
                notification = replace(
                    base,
                    airline_name=price.airline_name,
                    loyalty_program=price.loyalty_program,
                    mileage_cost=price.mileage_cost,
                    amex_points_equivalent=price.amex_points_equivalent,
                    travel_date=price.travel_date.isoformat(),
                    booking_url=price.booking_url,
                )
                logger.info(
                    f"TRIGGERED: {notification.origin}->{notification.destination} "
                    f"{notification.cabin_class.value} on {notification.airline_name}: "
                    f"{notification.amex_points_equivalent} pts (threshold: {notification.threshold_points})"
                )

                recorded = 0
                for channel in channels:
                    sent = await self._dispatch(replace(notification, channel=channel), price.id, result)
                    recorded += 1
                    if sent:
                        result.notifications_sent += 1

                if recorded:
                    self.db.query(UserAlert).filter(UserAlert.id == alert_id).update(
                        {UserAlert.last_triggered_at: utc_now()}, synchronize_session=False
                    )
                    self.db.commit()

            except Exception as e:
                self.db.rollback()
                msg = f"Error evaluating alert {alert_id}: {e}"
                logger.error(msg)
                result.errors.append(msg)

        logger.info(
            f"Alert evaluation complete: {result.alerts_triggered}/{result.alerts_checked} triggered, "
            f"{result.notifications_sent} notifications"
        )
        return result

    def _load_price_index(self, alerts: list[UserAlert], today_start) -> dict[PriceKey, PriceMatch]:
        """
        Cheapest of today's prices per (route, cabin, airline) and per
        (route, cabin, any airline).
        """
        route_ids = {alert.route_id for alert in alerts}
        prices = self.db.query(DailyMileagePrice).options(
            joinedload(DailyMileagePrice.airline),
        ).filter(
            DailyMileagePrice.route_id.in_(sorted(route_ids)),
            DailyMileagePrice.scraped_at >= today_start,
            DailyMileagePrice.scraped_at < today_start + timedelta(days=1),
        ).order_by(DailyMileagePrice.amex_points_equivalent.asc()).all()

        index: dict[PriceKey, PriceMatch] = {}
        for price in prices:
            match = PriceMatch(
                id=price.id,
                airline_id=price.airline_id,
                airline_name=price.airline.name,
                loyalty_program=price.airline.loyalty_program,
                mileage_cost=price.mileage_cost,
                amex_points_equivalent=price.amex_points_equivalent,
                travel_date=price.travel_date,
                booking_url=price.booking_url,
            )
            # Sorted ascending, so the first row seen per key is the cheapest
            index.setdefault((price.route_id, price.cabin_class, price.airline_id), match)
            index.setdefault((price.route_id, price.cabin_class, ANY_AIRLINE), match)

        logger.info(f"Indexed {len(prices)} prices from today for {len(route_ids)} routes")
        return index

    def _load_triggered_today(self, alerts: list[UserAlert], today_start) -> set[int]:
        alert_ids = [alert.id for alert in alerts]
        rows = self.db.query(AlertHistory.user_alert_id).filter(
            AlertHistory.user_alert_id.in_(alert_ids),
            AlertHistory.triggered_at >= today_start,
        ).distinct().all()
        return {row[0] for row in rows}

    def _build_notification(self, alert: UserAlert) -> AlertNotification:
        """Subscriber and route half of the payload; price fields are filled per trigger."""
        user = alert.user
        route = alert.route
        return AlertNotification(
            alert_id=alert.id,
            user_id=user.id,
            user_email=user.email,
            user_name=user.name,
            user_phone=user.phone,
            channel=None,
            origin=route.origin_airport.code,
            origin_city=route.origin_airport.city,
            destination=route.destination_airport.code,
            destination_city=route.destination_airport.city,
            cabin_class=alert.cabin_class,
            airline_name="",
            loyalty_program="",
            mileage_cost=0,
            amex_points_equivalent=0,
            threshold_points=alert.threshold_points,
            travel_date="",
            timezone=user.timezone,
            quiet_hours_start=user.quiet_hours_start,
            quiet_hours_end=user.quiet_hours_end,
        )

    async def _dispatch(self, notification: AlertNotification, price_id: int, result: AlertEvalResult) -> bool:
        """Record the trigger, attempt delivery, then store the outcome."""
        record = AlertHistory(
            user_alert_id=notification.alert_id,
            daily_mileage_price_id=price_id,
            channel=notification.channel,
            notification_sent=False,
        )
        self.db.add(record)
        self.db.flush()
        record_id = record.id
        self.db.commit()

        try:
            sent = bool(await self.notifier.send(notification))
        except Exception as e:
            sent = False
            msg = f"Notification error for alert {notification.alert_id} via {notification.channel.value}: {e}"
            logger.error(msg)
            result.errors.append(msg)

        # Update by key; the committed instance is expired and would reload first
        self.db.query(AlertHistory).filter(AlertHistory.id == record_id).update(
            {AlertHistory.notification_sent: sent}, synchronize_session=False
        )
        self.db.commit()

        if sent:
            logger.info(f"Notification sent via {notification.channel.value} for alert {notification.alert_id}")
        else:
            logger.warning(f"Notification via {notification.channel.value} failed for alert {notification.alert_id}")
        return sent


def _alert_price_key(alert: UserAlert) -> PriceKey:
    if alert.airline_id is not None:
        return (alert.route_id, alert.cabin_class, alert.airline_id)
    return (alert.route_id, alert.cabin_class, ANY_AIRLINE)


async def run_alert_evaluation(db: Session, notifier: NotificationService) -> AlertEvalResult:
    """Entry point for the scheduler and cron endpoint."""
    return await AlertEvaluator(db, notifier).run()
