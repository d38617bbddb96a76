"""Notifier that logs rendered messages instead of sending them (dry run)."""

import logging

from domainwatch.engine.models import DomainEvent, PeriodicReport, UserId

from .base import Notifier
from .formatting import format_event_alert, format_status_report

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """Writes every notification to the log and keeps a count."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level
        self.sent = 0

    async def send_message(self, user_id: UserId, text: str) -> None:
        self.sent += 1
        logger.log(self.level, f"[dry-run] -> {user_id}\n{text}")

    async def send_event_alert(
        self, user_id: UserId, domain: str, events: list[DomainEvent]
    ) -> None:
        await self.send_message(user_id, format_event_alert(domain, events))

    async def send_periodic_report(self, user_id: UserId, report: PeriodicReport) -> None:
        await self.send_message(user_id, format_status_report(report))
