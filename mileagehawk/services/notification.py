from dataclasses import dataclass
from typing import Optional
import html
import logging

import httpx

from mileagehawk.config import Settings, get_settings
from mileagehawk.constants import CABIN_CLASS_LABELS
from mileagehawk.exceptions import ConfigurationError, NotificationError
from mileagehawk.models.enums import AlertChannel, CabinClass
from mileagehawk.services.quiet_hours import is_in_quiet_hours
from mileagehawk.services.transfer_partners import format_points, format_points_short

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


@dataclass
class AlertNotification:
    """Everything a channel needs to tell one subscriber about one price drop."""
    alert_id: int
    user_id: int
    user_email: str
    user_name: Optional[str]
    user_phone: Optional[str]
    channel: AlertChannel
    origin: str
    origin_city: str
    destination: str
    destination_city: str
    cabin_class: CabinClass
    airline_name: str
    loyalty_program: str
    mileage_cost: int
    amex_points_equivalent: int
    threshold_points: int
    travel_date: str  # YYYY-MM-DD
    booking_url: Optional[str] = None
    timezone: Optional[str] = None
    quiet_hours_start: Optional[int] = None
    quiet_hours_end: Optional[int] = None

    @property
    def cabin_label(self) -> str:
        return CABIN_CLASS_LABELS.get(self.cabin_class, str(self.cabin_class))

    @property
    def is_quiet_hours(self) -> bool:
        return is_in_quiet_hours(self.timezone, self.quiet_hours_start, self.quiet_hours_end)


class NotificationService:
    """
    Delivers alert notifications by channel.

    - EMAIL (Resend): always sent, quiet hours do not apply.
    - SMS (Twilio): skipped during the subscriber's quiet hours; a skipped
      send counts as handled (returns True).
    - PUSH: same quiet-hours rule; delivery is not implemented yet, so an
      unsuppressed push returns False.

    Provider errors never propagate out of ``send``; they are logged and
    reported as False.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=10.0)
        return self._http_client

    async def close(self):
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def send(self, notification: AlertNotification) -> bool:
        channel = notification.channel
        if channel == AlertChannel.EMAIL:
            return await self.send_email(notification)
        if channel == AlertChannel.SMS:
            return await self.send_sms(notification)
        if channel == AlertChannel.PUSH:
            return await self.send_push(notification)

        logger.error(f"Unknown notification channel: {channel}")
        return False

    async def send_email(self, notification: AlertNotification) -> bool:
        try:
            if not self.settings.resend_api_key:
                raise ConfigurationError("RESEND_API_KEY is not set", setting="resend_api_key")

            client = await self._get_client()
            response = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
                json={
                    "from": f"MileageHawk <{self.settings.resend_from_email}>",
                    "to": [notification.user_email],
                    "subject": build_email_subject(notification),
                    "html": build_email_html(notification, self.settings.app_url),
                },
            )
            if not response.is_success:
                raise NotificationError(
                    f"Resend returned {response.status_code}: {response.text[:200]}",
                    channel=AlertChannel.EMAIL.value,
                    status_code=response.status_code,
                )

            logger.info(f"Email sent to user {notification.user_id} for alert {notification.alert_id}")
            return True

        except ConfigurationError as e:
            logger.error(f"Email not configured: {e}")
            return False
        except (NotificationError, httpx.HTTPError) as e:
            logger.error(f"Email send error: {e}")
            return False

    async def send_sms(self, notification: AlertNotification) -> bool:
        if notification.is_quiet_hours:
            logger.info(f"SMS suppressed by quiet hours for user {notification.user_id}")
            return True

        sid = self.settings.twilio_account_sid
        token = self.settings.twilio_auth_token
        from_number = self.settings.twilio_phone_number
        if not sid or not token or not from_number:
            logger.error("Twilio credentials not configured")
            return False

        if not notification.user_phone:
            logger.warning(f"No phone number for user {notification.user_id}, skipping SMS")
            return False

        try:
            client = await self._get_client()
            response = await client.post(
                TWILIO_API_URL.format(sid=sid),
                auth=(sid, token),
                data={
                    "Body": build_sms_body(notification),
                    "From": from_number,
                    "To": notification.user_phone,
                },
            )
            if not response.is_success:
                raise NotificationError(
                    f"Twilio returned {response.status_code}: {response.text[:200]}",
                    channel=AlertChannel.SMS.value,
                    status_code=response.status_code,
                )

            logger.info(f"SMS sent to user {notification.user_id} for alert {notification.alert_id}")
            return True

        except (NotificationError, httpx.HTTPError) as e:
            logger.error(f"SMS error: {e}")
            return False

    async def send_push(self, notification: AlertNotification) -> bool:
        if notification.is_quiet_hours:
            logger.info(f"Push suppressed by quiet hours for user {notification.user_id}")
            return True

        # Web push delivery is not implemented; no subscriptions are stored
        logger.info("Push notifications not implemented")
        return False


def build_email_subject(n: AlertNotification) -> str:
    return (
        f"Price Drop: {n.origin}-{n.destination} {n.cabin_label} "
        f"— {format_points_short(n.amex_points_equivalent)} pts"
    )


def build_sms_body(n: AlertNotification) -> str:
    message = (
        f"MileageHawk: {n.origin}-{n.destination} {n.cabin_label} "
        f"on {n.airline_name} dropped to {format_points_short(n.amex_points_equivalent)} pts "
        f"({format_points_short(n.mileage_cost)} miles)."
    )
    if n.booking_url:
        message += f" Book: {n.booking_url}"
    return message


def build_email_html(n: AlertNotification, app_url: str) -> str:
    esc = html.escape
    booking_cta = ""
    if n.booking_url:
        booking_cta = (
            f'<a href="{esc(n.booking_url)}" style="display:inline-block;background:#2563eb;color:#fff;'
            f'padding:12px 24px;text-decoration:none;border-radius:6px;font-weight:600;margin-top:16px;">Book Now</a>'
        )

    return f"""
    <div style="font-family:-apple-system,BlinkMacSystemFont,sans-serif;max-width:600px;margin:0 auto;padding:24px;">
      <h1 style="font-size:24px;margin:0 0 24px;color:#0f172a;text-align:center;">MileageHawk Alert</h1>

      <div style="background:#f8fafc;border:1px solid #e2e8f0;border-radius:12px;padding:24px;margin-bottom:16px;">
        <div style="font-size:14px;color:#64748b;">{esc(n.cabin_label)}</div>
        <div style="font-size:28px;font-weight:700;color:#0f172a;">
          {esc(n.origin_city)} ({n.origin}) &rarr; {esc(n.destination_city)} ({n.destination})
        </div>
        <div style="font-size:16px;color:#475569;">via {esc(n.airline_name)} ({esc(n.loyalty_program)})</div>
      </div>

      <div style="background:#ecfdf5;border-radius:8px;padding:16px;text-align:center;margin-bottom:8px;">
        <div style="font-size:12px;color:#059669;font-weight:600;">CURRENT PRICE</div>
        <div style="font-size:24px;font-weight:700;color:#047857;">{format_points(n.amex_points_equivalent)} pts</div>
        <div style="font-size:12px;color:#6b7280;">{format_points(n.mileage_cost)} {esc(n.loyalty_program)} miles</div>
      </div>
      <div style="background:#fef3c7;border-radius:8px;padding:16px;text-align:center;margin-bottom:16px;">
        <div style="font-size:12px;color:#d97706;font-weight:600;">YOUR THRESHOLD</div>
        <div style="font-size:24px;font-weight:700;color:#b45309;">{format_points(n.threshold_points)} pts</div>
      </div>

      <div style="font-size:14px;color:#64748b;">Travel date: {n.travel_date}</div>
      <div style="text-align:center;">{booking_cta}</div>

      <div style="margin-top:32px;padding-top:16px;border-top:1px solid #e2e8f0;font-size:12px;color:#94a3b8;text-align:center;">
        <a href="{esc(app_url)}/alerts" style="color:#64748b;">Manage Alerts</a> &middot;
        Prices are estimates; always verify on the airline site before booking.
      </div>
    </div>
    """
