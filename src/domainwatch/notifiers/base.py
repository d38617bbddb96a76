"""Base notifier interface.

The engine emits alerts and reports through this interface and has no
dependency on the concrete chat transport.
"""

from abc import ABC, abstractmethod

from domainwatch.engine.models import DomainEvent, PeriodicReport, UserId


class NotifierError(Exception):
    """Raised when a notification cannot be delivered."""

    pass


class Notifier(ABC):
    """Abstract sink for event alerts and periodic reports."""

    @abstractmethod
    async def send_event_alert(
        self, user_id: UserId, domain: str, events: list[DomainEvent]
    ) -> None:
        """Deliver newly detected events for a watched domain."""
        pass

    @abstractmethod
    async def send_periodic_report(self, user_id: UserId, report: PeriodicReport) -> None:
        """Deliver a periodic status report."""
        pass

    @abstractmethod
    async def send_message(self, user_id: UserId, text: str) -> None:
        """Deliver a plain text message (confirmations, errors, stats)."""
        pass
