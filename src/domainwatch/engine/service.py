"""Subscription service: the public entry point of the engine.

Inbound calls from the chat layer land here. Every mutating operation
returns an ``OperationResult`` and never raises; engine exceptions are
converted into human-readable failure messages.
"""

import logging
from collections.abc import Mapping
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any

from apscheduler import AsyncScheduler
from pydantic import ValidationError

from domainwatch.config import settings
from domainwatch.providers.base import DomainEventProvider

from .events import EventDetector, EventMonitor
from .exceptions import InvalidIntervalError, SubscriptionError
from .models import (
    AlertPreferences,
    OperationResult,
    PreferencesUpdate,
    ReportInterval,
    SubscriptionSnapshot,
    SubscriptionStats,
    UserId,
    normalize_domain,
)
from .registry import DomainWatchRegistry
from .reports import ReportScheduler

if TYPE_CHECKING:
    from domainwatch.notifiers.base import Notifier

logger = logging.getLogger(__name__)

PreferencesInput = PreferencesUpdate | Mapping[str, Any] | None


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class SubscriptionService:
    """Manages subscriptions, event monitoring and periodic reports.

    The service owns its registry and, unless one is injected, its
    APScheduler ``AsyncScheduler``. Call ``start()`` before use and
    ``shutdown()`` on exit, or use it as an async context manager.
    """

    def __init__(
        self,
        provider: DomainEventProvider,
        notifier: "Notifier",
        *,
        scheduler: AsyncScheduler | None = None,
        registry: DomainWatchRegistry | None = None,
        event_check_interval: int | None = None,
        dedupe_events: bool | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            provider: Source of domain data and events
            notifier: Sink for alerts and reports
            scheduler: Externally managed scheduler. Creates and owns one if not provided.
            registry: Subscription registry. Creates an empty one if not provided.
            event_check_interval: Seconds between event checks (default from settings)
            dedupe_events: Only alert on unseen items (default from settings)
        """
        if event_check_interval is None:
            event_check_interval = settings.event_check_interval_seconds
        if dedupe_events is None:
            dedupe_events = settings.dedupe_events

        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or AsyncScheduler()
        self._exit_stack = AsyncExitStack()
        self._started = False

        self.registry = registry or DomainWatchRegistry()
        self.events = EventMonitor(
            self.registry,
            provider,
            notifier,
            self._scheduler,
            interval_seconds=event_check_interval,
            detector=EventDetector(dedupe=dedupe_events),
        )
        self.reports = ReportScheduler(self.registry, provider, notifier, self._scheduler)

    @property
    def scheduler(self) -> AsyncScheduler:
        """The scheduler holding the event and report schedules."""
        return self._scheduler

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the owned scheduler in the background."""
        if self._started:
            logger.warning("Subscription service already started")
            return

        if self._owns_scheduler:
            await self._exit_stack.enter_async_context(self._scheduler)
            await self._scheduler.start_in_background()
        self._started = True
        logger.info("Subscription service started")

    async def shutdown(self) -> None:
        """Stop event monitoring, cancel every report timer, stop the scheduler."""
        logger.info("Shutting down subscription service...")
        try:
            await self.stop_event_monitoring()
        except Exception:
            logger.exception("Failed to stop event monitoring")

        cancelled = await self.reports.cancel_all()
        logger.info(f"Cancelled {cancelled} report timers")

        if self._owns_scheduler and self._started:
            await self._scheduler.stop()
            await self._exit_stack.aclose()
        self._started = False
        logger.info("Subscription service stopped")

    async def __aenter__(self) -> "SubscriptionService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    async def start_event_monitoring(self) -> None:
        await self.events.start()

    async def stop_event_monitoring(self) -> None:
        await self.events.stop()

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def subscribe(
        self, user_id: UserId, domain: str, preferences: PreferencesInput = None
    ) -> OperationResult:
        """Subscribe a user to a domain's events.

        Args:
            user_id: Chat user id
            domain: Domain to watch (case-insensitive)
            preferences: Optional preference overrides merged into the user's record

        Returns:
            OperationResult with a confirmation or failure reason
        """
        domain = normalize_domain(domain)
        if not domain:
            return OperationResult.fail("Failed to subscribe: domain name is required")

        try:
            update = self._coerce_update(preferences)
        except ValidationError as e:
            return OperationResult.fail(f"Failed to subscribe: {_validation_message(e)}")

        existed = user_id in self.registry
        previous = self.registry.snapshot(user_id).preferences
        added = False
        try:
            added = self.registry.add_domain(user_id, domain)
            if update is not None:
                self.registry.update_preferences(user_id, update)

            await self.events.start()
            await self.reports.sync(user_id)
        except Exception as e:
            logger.error(f"Error subscribing user {user_id} to {domain}: {e}")
            self._rollback_subscribe(user_id, domain, existed, added, previous)
            return OperationResult.fail(f"Failed to subscribe: {e}")

        logger.info(f"User {user_id} subscribed to domain {domain}")
        return OperationResult.ok(f"Successfully subscribed to {domain}")

    def _rollback_subscribe(
        self,
        user_id: UserId,
        domain: str,
        existed: bool,
        added: bool,
        previous: AlertPreferences,
    ) -> None:
        """Undo the registry changes of a failed subscribe."""
        if not existed:
            self.registry.discard_user(user_id)
            return
        if added:
            self.registry.remove_domain(user_id, domain)
        self.registry.restore_preferences(user_id, previous)

    async def unsubscribe(self, user_id: UserId, domain: str) -> OperationResult:
        """Stop watching a domain. The user's report timer is left running."""
        domain = normalize_domain(domain)
        try:
            self.registry.remove_domain(user_id, domain)
        except SubscriptionError as e:
            return OperationResult.fail(str(e))
        except Exception as e:
            logger.error(f"Error unsubscribing user {user_id} from {domain}: {e}")
            return OperationResult.fail(f"Failed to unsubscribe: {e}")

        if not self.registry.watchers(domain):
            self.events.detector.forget(domain)

        logger.info(f"User {user_id} unsubscribed from domain {domain}")
        return OperationResult.ok(f"Successfully unsubscribed from {domain}")

    def get_user_subscriptions(self, user_id: UserId) -> SubscriptionSnapshot:
        """Get a user's domains and preferences. Never creates a record."""
        return self.registry.snapshot(user_id)

    # =========================================================================
    # Preferences
    # =========================================================================

    async def update_preferences(
        self, user_id: UserId, preferences: PreferencesInput
    ) -> OperationResult:
        """Merge a partial preference update into the user's record."""
        try:
            update = self._coerce_update(preferences)
        except ValidationError as e:
            return OperationResult.fail(f"Invalid preferences: {_validation_message(e)}")

        if update is None:
            update = PreferencesUpdate()

        try:
            await self._apply_update(user_id, update)
        except SubscriptionError as e:
            return OperationResult.fail(str(e))
        except Exception as e:
            logger.error(f"Error updating preferences for user {user_id}: {e}")
            return OperationResult.fail(f"Failed to update preferences: {e}")

        logger.info(f"Updated preferences for user {user_id}")
        return OperationResult.ok("Preferences updated successfully")

    async def set_report_interval(
        self, user_id: UserId, interval: str | ReportInterval
    ) -> OperationResult:
        """Change the report cadence and re-arm the timer immediately."""
        try:
            self.registry.require_user(user_id)
            try:
                parsed = ReportInterval.parse(interval)
            except ValueError:
                raise InvalidIntervalError(interval) from None

            await self._apply_update(user_id, PreferencesUpdate(report_interval=parsed))
        except SubscriptionError as e:
            return OperationResult.fail(str(e))
        except Exception as e:
            logger.error(f"Error setting report interval for user {user_id}: {e}")
            return OperationResult.fail(f"Failed to set report interval: {e}")

        logger.info(f"User {user_id} report interval set to {parsed.value}")
        return OperationResult.ok(f"Report interval set to {parsed.value}")

    async def toggle_periodic_reports(self, user_id: UserId, enabled: bool) -> OperationResult:
        """Enable (arm) or disable (cancel) the user's periodic reports."""
        try:
            await self._apply_update(user_id, PreferencesUpdate(periodic_reports=enabled))
        except SubscriptionError as e:
            return OperationResult.fail(str(e))
        except Exception as e:
            logger.error(f"Error toggling reports for user {user_id}: {e}")
            return OperationResult.fail(f"Failed to toggle periodic reports: {e}")

        state = "enabled" if enabled else "disabled"
        logger.info(f"User {user_id} periodic reports {state}")
        return OperationResult.ok(f"Periodic reports {state}")

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_stats(self) -> SubscriptionStats:
        """Aggregate counts over the registry and timers."""
        return SubscriptionStats(
            total_users=self.registry.user_count,
            total_domains=self.registry.domain_count,
            is_monitoring=self.events.is_running,
            active_report_timers=self.reports.active_count,
        )

    async def _apply_update(self, user_id: UserId, update: PreferencesUpdate) -> None:
        """Merge an update and re-sync the report timer, restoring on failure.

        Raises:
            NoSubscriptionError: If the user has no record
        """
        previous = self.registry.require_user(user_id).preferences
        self.registry.update_preferences(user_id, update)
        if not update.touches_reports:
            return
        try:
            await self.reports.sync(user_id)
        except Exception:
            self.registry.restore_preferences(user_id, previous)
            raise

    @staticmethod
    def _coerce_update(preferences: PreferencesInput) -> PreferencesUpdate | None:
        if preferences is None:
            return None
        if isinstance(preferences, PreferencesUpdate):
            return preferences
        return PreferencesUpdate.model_validate(dict(preferences))
