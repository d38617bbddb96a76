"""Telegram Bot API notifier.

Sends alerts and reports to the user's private chat (chat id = user id).
"""

import logging

import httpx

from domainwatch.config import settings
from domainwatch.engine.models import DomainEvent, PeriodicReport, UserId

from .base import Notifier, NotifierError
from .formatting import format_event_alert, format_status_report

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4000  # Telegram hard limit is 4096


class TelegramNotifier(Notifier):
    """Lightweight Telegram Bot API notifier."""

    def __init__(
        self,
        token: str | None = None,
        parse_mode: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token or settings.telegram_bot_token
        self.parse_mode = parse_mode or settings.telegram_parse_mode
        self._timeout = timeout or settings.telegram_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        if not self.token:
            raise NotifierError("Telegram bot token is not configured")
        self._client = httpx.AsyncClient(
            base_url=API_BASE_URL, timeout=self._timeout, transport=self._transport
        )

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "TelegramNotifier":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    async def send_message(self, user_id: UserId, text: str) -> None:
        """Send a message to a user's chat.

        Raises:
            NotifierError: If the client is not connected or the API rejects the message
        """
        if not self._client:
            raise NotifierError("Client not connected")

        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[: MAX_MESSAGE_LENGTH - 3] + "..."

        payload = {
            "chat_id": user_id,
            "text": text,
            "parse_mode": self.parse_mode,
            "disable_web_page_preview": True,
        }
        try:
            response = await self._client.post(f"/bot{self.token}/sendMessage", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotifierError(f"Failed to send message to {user_id}: {e}") from e

    async def send_event_alert(
        self, user_id: UserId, domain: str, events: list[DomainEvent]
    ) -> None:
        await self.send_message(user_id, format_event_alert(domain, events))

    async def send_periodic_report(self, user_id: UserId, report: PeriodicReport) -> None:
        await self.send_message(user_id, format_status_report(report))
