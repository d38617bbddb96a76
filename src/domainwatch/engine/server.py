"""Engine server for running domainwatch as a foreground process.

The server wires the provider, notifier and subscription service together,
seeds optional subscriptions, and waits for SIGINT/SIGTERM to shut down
gracefully (event schedule, every report timer, then the scheduler).
"""

import asyncio
import logging
import signal
from collections.abc import Iterable
from datetime import datetime

from domainwatch.config import settings
from domainwatch.notifiers.base import Notifier
from domainwatch.notifiers.formatting import (
    format_error,
    format_report_settings,
    format_stats,
    format_subscriptions,
)
from domainwatch.providers.base import DomainEventProvider

from .models import UserId
from .service import SubscriptionService

logger = logging.getLogger(__name__)


class EngineServer:
    """Runs the subscription service until a shutdown signal arrives."""

    def __init__(
        self,
        provider: DomainEventProvider,
        notifier: Notifier,
        service: SubscriptionService | None = None,
    ) -> None:
        self.provider = provider
        self.notifier = notifier
        self.service = service or SubscriptionService(provider, notifier)
        self.started_at: datetime | None = None
        self._shutdown_event = asyncio.Event()

    async def seed(
        self, watches: Iterable[tuple[UserId, str]], interval: str | None = None
    ) -> int:
        """Subscribe initial (user, domain) pairs and tell each user the outcome.

        Failures are sent to the user as error messages. Every user with at
        least one seeded domain then receives their subscription list, and
        their report settings when ``interval`` is given.

        Returns:
            Number of successful subscriptions
        """
        subscribed = 0
        seeded_users: list[UserId] = []
        for user_id, domain in watches:
            result = await self.service.subscribe(user_id, domain)
            if not result.success:
                logger.warning(f"Seed subscription {user_id}:{domain} failed: {result.message}")
                await self._send(user_id, format_error(result.message))
                continue
            subscribed += 1
            if user_id not in seeded_users:
                seeded_users.append(user_id)

        for user_id in seeded_users:
            if interval:
                result = await self.service.set_report_interval(user_id, interval)
                if result.success:
                    preferences = self.service.get_user_subscriptions(user_id).preferences
                    await self._send(
                        user_id,
                        format_report_settings(
                            preferences.report_interval, preferences.periodic_reports
                        ),
                    )
                else:
                    logger.warning(f"Seed interval for {user_id} failed: {result.message}")
                    await self._send(user_id, format_error(result.message))
            await self._send(
                user_id, format_subscriptions(self.service.get_user_subscriptions(user_id))
            )
        return subscribed

    async def notify_admin(self) -> bool:
        """Send engine statistics to the configured admin.

        Returns:
            True if a message was sent
        """
        if not settings.admin_user_id:
            return False
        return await self._send(settings.admin_user_id, format_stats(self.service.get_stats()))

    async def _send(self, user_id: UserId, text: str) -> bool:
        try:
            await self.notifier.send_message(user_id, text)
            return True
        except Exception:
            logger.exception(f"Failed to send message to user {user_id}")
            return False

    def request_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    async def run(
        self, watches: Iterable[tuple[UserId, str]] = (), interval: str | None = None
    ) -> None:
        """Start the service and block until shutdown is requested."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                # Signal handlers are unavailable on some platforms (Windows)
                pass

        self.started_at = datetime.now()
        try:
            await self.service.start()
            seeded = await self.seed(watches, interval)
            logger.info(f"Engine running with {seeded} seeded subscriptions")
            await self.notify_admin()
            await self._shutdown_event.wait()
        except Exception as e:
            logger.exception(f"Engine error: {e}")
        finally:
            await self.service.shutdown()
            logger.info("Engine stopped")


async def run_engine(
    watches: Iterable[tuple[UserId, str]] = (),
    interval: str | None = None,
    dry_run: bool = False,
) -> None:
    """Build the configured provider and notifier, then run the engine.

    Args:
        watches: Initial (user id, domain) subscriptions
        interval: Report interval applied to seeded users
        dry_run: Log notifications instead of sending them
    """
    from domainwatch.notifiers import LogNotifier, TelegramNotifier
    from domainwatch.providers import DomaClient

    if not settings.has_doma_api_key:
        logger.info("DOMA_API_KEY not set, querying the registry anonymously")

    async with DomaClient() as provider:
        if dry_run or not settings.has_telegram:
            if not dry_run:
                logger.warning("TELEGRAM_BOT_TOKEN not set, logging notifications instead")
            server = EngineServer(provider, LogNotifier())
            await server.run(watches, interval)
            return

        async with TelegramNotifier() as notifier:
            server = EngineServer(provider, notifier)
            await server.run(watches, interval)
