"""Event detection loop.

A single global interval schedule checks every watched domain for new
activities, listings and offers and fans alerts out to the domain's
watchers. One failing domain never aborts the tick, and the tick handler
never raises, so the schedule survives indefinitely.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from apscheduler import ConflictPolicy
from apscheduler.triggers.interval import IntervalTrigger

from domainwatch.providers.base import DomainEventProvider, DomainSnapshot

from .models import DomainEvent, EventType, UserId
from .registry import DomainWatchRegistry

if TYPE_CHECKING:
    from apscheduler import AsyncScheduler

    from domainwatch.notifiers.base import Notifier

logger = logging.getLogger(__name__)

EVENT_SCHEDULE_ID = "domain-event-check"
DEFAULT_EVENT_CHECK_SECONDS = 30


def _event_key(item: dict[str, Any]) -> str:
    """Identity of a provider item: its id, else its timestamp."""
    return str(item.get("id") or item.get("timestamp") or sorted(item.items()))


class EventDetector:
    """Decides which of a domain's latest items are new.

    With ``dedupe`` off every latest item counts as new on every tick.
    With ``dedupe`` on, an item is new only if its id differs from the last
    one alerted for the same domain and event type.
    """

    def __init__(self, dedupe: bool = False) -> None:
        self.dedupe = dedupe
        self._last_seen: dict[tuple[str, EventType], str] = {}

    def detect(self, snapshot: DomainSnapshot) -> list[DomainEvent]:
        """Build events from the newest activity, listing and offer."""
        events: list[DomainEvent] = []

        if snapshot.activities:
            latest = snapshot.activities[0]
            if self._is_new(snapshot.domain, EventType.ACTIVITY, latest):
                events.append(
                    self._make_event(
                        EventType.ACTIVITY,
                        f"New activity detected: {latest.get('type', 'UNKNOWN')}",
                        latest,
                    )
                )

        if snapshot.listings:
            latest = snapshot.listings[0]
            if self._is_new(snapshot.domain, EventType.LISTING, latest):
                events.append(
                    self._make_event(EventType.LISTING, f"New listing: {_price(latest)}", latest)
                )

        if snapshot.offers:
            latest = snapshot.offers[0]
            if self._is_new(snapshot.domain, EventType.OFFER, latest):
                events.append(
                    self._make_event(EventType.OFFER, f"New offer: {_price(latest)}", latest)
                )

        return events

    def forget(self, domain: str) -> None:
        """Drop remembered ids for a domain."""
        for key in [key for key in self._last_seen if key[0] == domain]:
            del self._last_seen[key]

    def _is_new(self, domain: str, event_type: EventType, item: dict[str, Any]) -> bool:
        if not self.dedupe:
            return True
        key = _event_key(item)
        if self._last_seen.get((domain, event_type)) == key:
            return False
        self._last_seen[(domain, event_type)] = key
        return True

    @staticmethod
    def _make_event(event_type: EventType, message: str, item: dict[str, Any]) -> DomainEvent:
        event = DomainEvent(type=event_type, message=message, data=item)
        if item.get("timestamp"):
            event.timestamp = str(item["timestamp"])
        return event


def _price(item: dict[str, Any]) -> str:
    price = item.get("price", "?")
    currency = item.get("currency") or "ETH"
    usd = item.get("priceInUSD")
    return f"{price} {currency} (${usd})" if usd else f"{price} {currency}"


class EventMonitor:
    """Owns the global event-check schedule."""

    def __init__(
        self,
        registry: DomainWatchRegistry,
        provider: DomainEventProvider,
        notifier: "Notifier",
        scheduler: "AsyncScheduler",
        interval_seconds: int = DEFAULT_EVENT_CHECK_SECONDS,
        detector: EventDetector | None = None,
    ) -> None:
        self.registry = registry
        self.provider = provider
        self.notifier = notifier
        self.interval_seconds = interval_seconds
        self.detector = detector or EventDetector()
        self._scheduler = scheduler
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the event-check schedule is active."""
        return self._running

    async def start(self) -> None:
        """Register the recurring event check. No-op if already running."""
        if self._running:
            return

        await self._scheduler.add_schedule(
            self.check_for_events,
            IntervalTrigger(seconds=self.interval_seconds),
            id=EVENT_SCHEDULE_ID,
            conflict_policy=ConflictPolicy.replace,
        )
        self._running = True
        logger.info(f"Started domain event monitoring (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Remove the recurring event check."""
        if not self._running:
            return

        await self._scheduler.remove_schedule(EVENT_SCHEDULE_ID)
        self._running = False
        logger.info("Stopped domain event monitoring")

    async def check_for_events(self) -> int:
        """Run one tick over a snapshot of the watched domains.

        Returns:
            Number of alerts delivered
        """
        try:
            domains = self.registry.watched_domains()
            if not domains:
                return 0
            logger.debug(f"Checking {len(domains)} domains for events")
            sent = await asyncio.gather(*(self.check_domain(domain) for domain in domains))
            return sum(sent)
        except Exception:
            logger.exception("Error checking for events")
            return 0

    async def check_domain(self, domain: str) -> int:
        """Fetch, detect and alert for one domain.

        Returns:
            Number of alerts delivered for this domain
        """
        try:
            snapshot = await self.provider.fetch_snapshot(domain)
            events = self.detector.detect(snapshot)
        except Exception as e:
            logger.error(f"Error checking events for domain {domain}: {e}")
            return 0

        if not events:
            return 0

        # Watchers are read after the fetch so users who left mid-tick are skipped
        sent = 0
        for user_id in self.registry.watchers(domain):
            if await self._deliver(user_id, domain, events):
                sent += 1
        return sent

    async def _deliver(self, user_id: UserId, domain: str, events: list[DomainEvent]) -> bool:
        try:
            await self.notifier.send_event_alert(user_id, domain, events)
            return True
        except Exception:
            logger.exception(f"Failed to send alert for {domain} to user {user_id}")
            return False
