"""Periodic report scheduler.

Each user with periodic reports enabled owns one interval schedule
(``report-<user_id>``). Re-arming replaces the schedule in place, so a
user never has two report timers at once.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from apscheduler import ConflictPolicy
from apscheduler.triggers.interval import IntervalTrigger

from domainwatch.providers.base import DomainEventProvider, DomainSnapshot

from .models import DomainState, DomainStatus, PeriodicReport, ReportInterval, UserId
from .registry import DomainWatchRegistry

if TYPE_CHECKING:
    from apscheduler import AsyncScheduler

    from domainwatch.notifiers.base import Notifier

logger = logging.getLogger(__name__)

# Status heuristic weights
ON_CHAIN_POINTS = 50
ACTIVITY_POINTS, ACTIVITY_CAP = 5, 20
LISTING_POINTS, LISTING_CAP = 10, 15
OFFER_POINTS, OFFER_CAP = 10, 15
MAX_SCORE = 100


@dataclass
class ReportTimer:
    """Handle for a user's live report schedule."""

    schedule_id: str
    interval: ReportInterval


def report_schedule_id(user_id: UserId) -> str:
    return f"report-{user_id}"


def score_snapshot(snapshot: DomainSnapshot) -> int:
    """Lightweight presence/activity score, 0-100."""
    score = ON_CHAIN_POINTS if snapshot.exists_on_chain else 0
    score += min(len(snapshot.activities) * ACTIVITY_POINTS, ACTIVITY_CAP)
    score += min(len(snapshot.listings) * LISTING_POINTS, LISTING_CAP)
    score += min(len(snapshot.offers) * OFFER_POINTS, OFFER_CAP)
    return min(score, MAX_SCORE)


def build_domain_status(snapshot: DomainSnapshot, score_threshold: int = 0) -> DomainStatus:
    """Summarize one domain for a periodic report."""
    score = score_snapshot(snapshot)
    has_activity = bool(snapshot.activities or snapshot.listings or snapshot.offers)
    active = snapshot.exists_on_chain and has_activity
    status = DomainState.ACTIVE if active else DomainState.INACTIVE

    last_activity = "N/A"
    if snapshot.activities:
        last_activity = str(snapshot.activities[0].get("timestamp") or "N/A")

    current_price = "N/A"
    if snapshot.listings:
        listing = snapshot.listings[0]
        current_price = f"{listing.get('price', '?')} {listing.get('currency') or 'ETH'}"

    return DomainStatus(
        domain=snapshot.domain,
        score=score,
        status=status,
        activities=len(snapshot.activities),
        listings=len(snapshot.listings),
        offers=len(snapshot.offers),
        last_activity=last_activity,
        current_price=current_price,
        below_threshold=score < score_threshold,
    )


class ReportScheduler:
    """Owns the per-user report schedules and builds the reports."""

    def __init__(
        self,
        registry: DomainWatchRegistry,
        provider: DomainEventProvider,
        notifier: "Notifier",
        scheduler: "AsyncScheduler",
    ) -> None:
        self.registry = registry
        self.provider = provider
        self.notifier = notifier
        self._scheduler = scheduler
        self._timers: dict[UserId, ReportTimer] = {}

    @property
    def active_count(self) -> int:
        """Number of live report schedules."""
        return len(self._timers)

    def timer_for(self, user_id: UserId) -> ReportTimer | None:
        return self._timers.get(user_id)

    async def arm(self, user_id: UserId, interval: ReportInterval) -> ReportTimer:
        """Create or replace the user's report schedule."""
        schedule_id = report_schedule_id(user_id)
        await self._scheduler.add_schedule(
            self.run_report,
            IntervalTrigger(seconds=interval.seconds),
            id=schedule_id,
            args=(user_id,),
            conflict_policy=ConflictPolicy.replace,
        )
        timer = ReportTimer(schedule_id=schedule_id, interval=interval)
        self._timers[user_id] = timer
        logger.info(f"Armed {interval.value} report timer for user {user_id}")
        return timer

    async def cancel(self, user_id: UserId) -> bool:
        """Remove the user's report schedule.

        Returns:
            True if a schedule was removed
        """
        timer = self._timers.get(user_id)
        if timer is None:
            return False
        await self._scheduler.remove_schedule(timer.schedule_id)
        del self._timers[user_id]
        logger.info(f"Cancelled report timer for user {user_id}")
        return True

    async def sync(self, user_id: UserId) -> None:
        """Arm or cancel the user's timer to match their preferences."""
        subscription = self.registry.get(user_id)
        if subscription is None or not subscription.preferences.periodic_reports:
            await self.cancel(user_id)
            return
        await self.arm(user_id, subscription.preferences.report_interval)

    async def cancel_all(self) -> int:
        """Remove every report schedule (used on shutdown)."""
        cancelled = 0
        for user_id in list(self._timers):
            try:
                if await self.cancel(user_id):
                    cancelled += 1
            except Exception:
                logger.exception(f"Failed to cancel report timer for user {user_id}")
        return cancelled

    async def run_report(self, user_id: UserId) -> PeriodicReport | None:
        """Tick body: build and send one report for the user.

        Returns:
            The report sent, or None if skipped or failed
        """
        try:
            subscription = self.registry.get(user_id)
            if subscription is None or not subscription.domains:
                logger.debug(f"No domains for user {user_id}, skipping report")
                return None

            report = await self.build_report(user_id)
            await self.notifier.send_periodic_report(user_id, report)
            logger.info(f"Sent periodic report to user {user_id} ({len(report.domains)} domains)")
            return report
        except Exception:
            logger.exception(f"Periodic report for user {user_id} failed")
            return None

    async def build_report(self, user_id: UserId) -> PeriodicReport:
        """Assemble a status snapshot across the user's domains."""
        subscription = self.registry.require_user(user_id)
        threshold = subscription.preferences.score_threshold
        domains = sorted(subscription.domains)
        statuses = await asyncio.gather(
            *(self._domain_status(domain, threshold) for domain in domains)
        )
        return PeriodicReport(user_id=user_id, domains=list(statuses))

    async def _domain_status(self, domain: str, threshold: int) -> DomainStatus:
        try:
            snapshot = await self.provider.fetch_snapshot(domain)
        except Exception as e:
            logger.warning(f"Status check failed for {domain}: {e}")
            return DomainStatus(
                domain=domain,
                score=0,
                status=DomainState.ERROR,
                below_threshold=threshold > 0,
                error=str(e),
            )
        return build_domain_status(snapshot, threshold)
