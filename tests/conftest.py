"""Shared test fixtures for domainwatch."""

from typing import Any

import pytest

from domainwatch.engine.models import DomainEvent, PeriodicReport, UserId
from domainwatch.engine.service import SubscriptionService
from domainwatch.notifiers.base import Notifier
from domainwatch.providers.base import DomainEventProvider


class FakeScheduler:
    """In-memory stand-in for APScheduler's AsyncScheduler."""

    def __init__(self) -> None:
        self.schedules: dict[str, dict[str, Any]] = {}
        self.added: list[str] = []
        self.removed: list[str] = []
        self.fail_ids: set[str] = set()

    def _check(self, id: str) -> None:
        if id in self.fail_ids:
            raise RuntimeError(f"scheduler rejected {id}")

    async def add_schedule(self, func, trigger, *, id, args=(), conflict_policy=None, **options):
        self._check(id)
        self.schedules[id] = {"func": func, "trigger": trigger, "args": tuple(args or ())}
        self.added.append(id)
        return id

    async def remove_schedule(self, id):
        self._check(id)
        self.removed.append(id)
        self.schedules.pop(id, None)

    async def fire(self, schedule_id: str):
        """Run a schedule's callable once, like a timer tick."""
        entry = self.schedules[schedule_id]
        return await entry["func"](*entry["args"])


class FakeProvider(DomainEventProvider):
    """Provider serving canned data; domains in ``failing`` raise."""

    def __init__(self) -> None:
        self.data: dict[str, dict[str, Any] | None] = {}
        self.activities: dict[str, list[dict[str, Any]]] = {}
        self.listings: dict[str, list[dict[str, Any]]] = {}
        self.offers: dict[str, list[dict[str, Any]]] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def add_domain(
        self,
        domain: str,
        activities: list[dict[str, Any]] | None = None,
        listings: list[dict[str, Any]] | None = None,
        offers: list[dict[str, Any]] | None = None,
        on_chain: bool = True,
    ) -> None:
        self.data[domain] = {"name": domain} if on_chain else None
        self.activities[domain] = activities or []
        self.listings[domain] = listings or []
        self.offers[domain] = offers or []

    def _check(self, domain: str) -> None:
        self.calls.append(domain)
        if domain in self.failing:
            raise RuntimeError(f"provider unavailable for {domain}")

    async def get_domain_data(self, domain):
        self._check(domain)
        return self.data.get(domain)

    async def get_domain_activities(self, domain):
        self._check(domain)
        return self.activities.get(domain, [])

    async def get_domain_listings(self, domain):
        self._check(domain)
        return self.listings.get(domain, [])

    async def get_domain_offers(self, domain):
        self._check(domain)
        return self.offers.get(domain, [])


class RecordingNotifier(Notifier):
    """Notifier that records everything it is asked to send."""

    def __init__(self) -> None:
        self.alerts: list[tuple[UserId, str, list[DomainEvent]]] = []
        self.reports: list[tuple[UserId, PeriodicReport]] = []
        self.messages: list[tuple[UserId, str]] = []
        self.fail_for: set[UserId] = set()

    async def send_message(self, user_id, text):
        if user_id in self.fail_for:
            raise RuntimeError("chat blocked the bot")
        self.messages.append((user_id, text))

    async def send_event_alert(self, user_id, domain, events):
        if user_id in self.fail_for:
            raise RuntimeError("chat blocked the bot")
        self.alerts.append((user_id, domain, events))

    async def send_periodic_report(self, user_id, report):
        if user_id in self.fail_for:
            raise RuntimeError("chat blocked the bot")
        self.reports.append((user_id, report))

    def messages_for(self, user_id: UserId) -> list[str]:
        return [text for recipient, text in self.messages if recipient == user_id]

    def alerted_users(self, domain: str) -> set[UserId]:
        return {user_id for user_id, alert_domain, _ in self.alerts if alert_domain == domain}


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(
    provider: FakeProvider, notifier: RecordingNotifier, scheduler: FakeScheduler
) -> SubscriptionService:
    """Service wired to fakes, with default (non-deduplicating) event detection."""
    return SubscriptionService(
        provider,
        notifier,
        scheduler=scheduler,  # type: ignore[arg-type]
        event_check_interval=30,
        dedupe_events=False,
    )


@pytest.fixture
def sample_activity() -> dict[str, Any]:
    return {
        "id": "activity_1",
        "type": "TRANSFER",
        "timestamp": "2025-09-01T12:00:00Z",
        "transactionHash": "0xabc",
    }


@pytest.fixture
def sample_listing() -> dict[str, Any]:
    return {
        "id": "listing_1",
        "price": "1.5",
        "currency": "ETH",
        "priceInUSD": "1500.00",
        "timestamp": "2025-09-01T12:00:00Z",
    }


@pytest.fixture
def sample_offer() -> dict[str, Any]:
    return {
        "id": "offer_1",
        "price": "1.2",
        "currency": "ETH",
        "priceInUSD": "1200.00",
        "timestamp": "2025-09-01T12:30:00Z",
    }
