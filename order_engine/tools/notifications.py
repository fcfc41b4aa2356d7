"""
Order notification channel.

When an order completes, the summary is forwarded to the store staff. In
production this is a Telegram chat; without credentials the order is only
logged. Delivery is fire-and-forget from the engine's point of view: the
engine logs a failed send and keeps the order completed.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from order_engine.config import NotificationConfig
from order_engine.prompts.reply_templates import build_order_notification
from order_engine.schemas.order_schema import OrderSummary

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class NotificationSink(ABC):
    """Receives finalized orders."""

    @abstractmethod
    async def send_order(self, order: OrderSummary) -> None:
        """Deliver one finalized order."""


class MemoryNotificationSink(NotificationSink):
    """Keeps every order in a list. Used by tests and the console demo."""

    def __init__(self) -> None:
        self.orders: list[OrderSummary] = []

    async def send_order(self, order: OrderSummary) -> None:
        self.orders.append(order)

    def reset(self) -> None:
        """Clear recorded orders. Used by test fixtures for isolation."""
        self.orders.clear()


class LoggingNotificationSink(NotificationSink):
    """Fallback when no delivery channel is configured."""

    async def send_order(self, order: OrderSummary) -> None:
        logger.info(
            "Order received (no notification channel configured): %s, %d lines, total %d",
            order.customer_name, len(order.lines), order.total,
        )


class TelegramNotificationSink(NotificationSink):
    """Posts the order summary to a Telegram chat via the Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout_seconds: float = 10.0,
        business_name: str = "Perrote y Gatote",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._business_name = business_name
        self._url = f"{TELEGRAM_API_BASE}/bot{bot_token}/sendMessage"
        self._chat_id = chat_id
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send_order(self, order: OrderSummary) -> None:
        payload = {
            "chat_id": self._chat_id,
            "text": build_order_notification(order, self._business_name),
            "parse_mode": "Markdown",
        }
        resp = await self._client.post(self._url, json=payload)
        if resp.status_code >= 400:
            logger.error(
                "Telegram send failed",
                extra={"status": resp.status_code, "body": resp.text[:300]},
            )
            resp.raise_for_status()
        logger.info("Order sent to Telegram chat %s", self._chat_id)

    async def close(self) -> None:
        await self._client.aclose()


def create_notification_sink(
    config: NotificationConfig, business_name: str = "Perrote y Gatote"
) -> NotificationSink:
    """Pick the Telegram sink when credentials are configured, else log only."""
    if config.telegram_enabled:
        return TelegramNotificationSink(
            bot_token=config.telegram_bot_token or "",
            chat_id=config.telegram_chat_id or "",
            timeout_seconds=config.telegram_timeout_seconds,
            business_name=business_name,
        )
    logger.info("Telegram not configured; orders will only be logged")
    return LoggingNotificationSink()
