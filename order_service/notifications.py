# order_service/notifications.py
import asyncio
import logging
from typing import Optional

import requests

from order_service.config import Settings
from order_service.errors import NotificationFailure

logger = logging.getLogger(__name__)

HEADERS = {"Content-Type": "application/json"}
PUSH_TITLE = "New Order Received!"


def format_amount(amount) -> str:
    amount = float(amount or 0)
    if amount.is_integer():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def push_message(summary: dict) -> str:
    return (
        f"Order {summary['reference']} from {summary.get('customer') or 'a customer'}"
        f" - ₦{format_amount(summary.get('totalAmount'))}"
    )


def sms_message(summary: dict) -> str:
    return (
        f"Thank you for your order! Your payment reference is {summary['reference']}."
        " We are preparing your meal."
    )


class NotificationDispatcher:
    """Best-effort push + SMS fan-out for a freshly placed order.

    Both channels run concurrently in worker threads and are joined before
    ``dispatch`` returns. A failing channel is logged and never raised.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def send_push(self, summary: dict) -> None:
        payload = {
            "app_id": self.settings.onesignal_app_id,
            "headings": {"en": PUSH_TITLE},
            "contents": {"en": push_message(summary)},
            "included_segments": ["All"],
        }
        if self.settings.admin_dashboard_url:
            payload["url"] = self.settings.admin_dashboard_url
        headers = dict(HEADERS, Authorization=f"Basic {self.settings.onesignal_rest_key}")
        try:
            response = self.session.post(
                self.settings.onesignal_api_url, json=payload, headers=headers, timeout=self.settings.http_timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationFailure("push notification failed", str(e)) from e
        logger.info(f"Push notification sent for order {summary['reference']}")

    def send_sms(self, summary: dict) -> None:
        phone = summary.get("phone")
        if not phone:
            raise NotificationFailure("sms skipped", "order has no phone number")
        payload = {
            "to": phone,
            "from": self.settings.sms_sender_id,
            "sms": sms_message(summary),
            "type": "plain",
            "channel": "generic",
            "api_key": self.settings.sms_api_key,
        }
        try:
            response = self.session.post(
                self.settings.sms_api_url, json=payload, headers=HEADERS, timeout=self.settings.http_timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationFailure("sms failed", str(e)) from e
        logger.info(f"SMS sent to {phone} for order {summary['reference']}")

    async def _attempt(self, channel: str, send, summary: dict) -> bool:
        try:
            await asyncio.to_thread(send, summary)
            return True
        except NotificationFailure as e:
            logger.error(f"{channel} notification for {summary.get('reference')} failed: {e.detail}")
        except Exception as e:
            logger.exception(f"{channel} notification for {summary.get('reference')} crashed: {e}")
        return False

    async def dispatch(self, summary: dict) -> dict:
        """Returns ``{channel: delivered}`` for every enabled channel."""
        channels = []
        if self.settings.push_enabled:
            channels.append(("push", self.send_push))
        if self.settings.sms_enabled:
            channels.append(("sms", self.send_sms))
        if not channels:
            logger.info("No notification channels configured, skipping")
            return {}

        results = await asyncio.gather(*(self._attempt(name, send, summary) for name, send in channels))
        return {name: ok for (name, _), ok in zip(channels, results)}
