"""In-memory registry of users, watched domains and preferences.

Two maps are kept in sync on every mutation:
- user id -> UserSubscription (domains + preferences)
- domain -> set of watching user ids

A domain is present in the watch index only while at least one user
watches it.
"""

import logging

from .exceptions import NoSubscriptionError, NotSubscribedError
from .models import (
    AlertPreferences,
    PreferencesUpdate,
    SubscriptionSnapshot,
    UserId,
    UserSubscription,
    normalize_domain,
)

logger = logging.getLogger(__name__)


class DomainWatchRegistry:
    """Owns subscription state for a single engine instance."""

    def __init__(self) -> None:
        self._subscriptions: dict[UserId, UserSubscription] = {}
        self._watchers: dict[str, set[UserId]] = {}

    # =========================================================================
    # Mutations
    # =========================================================================

    def ensure_user(self, user_id: UserId) -> UserSubscription:
        """Get the user's record, creating it with default preferences."""
        subscription = self._subscriptions.get(user_id)
        if subscription is None:
            subscription = UserSubscription(user_id=user_id)
            self._subscriptions[user_id] = subscription
            logger.debug(f"Created subscription record for user {user_id}")
        return subscription

    def add_domain(self, user_id: UserId, domain: str) -> bool:
        """Add a domain to the user's watch set.

        Returns:
            True if the domain was newly added, False if already watched
        """
        domain = normalize_domain(domain)
        subscription = self.ensure_user(user_id)
        added = domain not in subscription.domains
        subscription.domains.add(domain)
        self._watchers.setdefault(domain, set()).add(user_id)
        return added

    def remove_domain(self, user_id: UserId, domain: str) -> None:
        """Remove a domain from the user's watch set.

        Raises:
            NoSubscriptionError: If the user has no record
            NotSubscribedError: If the user does not watch the domain
        """
        domain = normalize_domain(domain)
        subscription = self.require_user(user_id)
        if domain not in subscription.domains:
            raise NotSubscribedError(user_id, domain)

        subscription.domains.discard(domain)
        watchers = self._watchers.get(domain)
        if watchers is not None:
            watchers.discard(user_id)
            if not watchers:
                del self._watchers[domain]

    def update_preferences(self, user_id: UserId, update: PreferencesUpdate) -> AlertPreferences:
        """Merge a partial update into the user's preferences.

        Raises:
            NoSubscriptionError: If the user has no record
        """
        subscription = self.require_user(user_id)
        subscription.preferences = subscription.preferences.merged(update)
        return subscription.preferences

    def restore_preferences(self, user_id: UserId, preferences: AlertPreferences) -> None:
        """Put back preferences saved before a failed operation."""
        self.require_user(user_id).preferences = preferences

    def discard_user(self, user_id: UserId) -> None:
        """Drop a user's record and every watch it holds."""
        subscription = self._subscriptions.pop(user_id, None)
        if subscription is None:
            return
        for domain in subscription.domains:
            watchers = self._watchers.get(domain)
            if watchers is None:
                continue
            watchers.discard(user_id)
            if not watchers:
                del self._watchers[domain]

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, user_id: UserId) -> UserSubscription | None:
        return self._subscriptions.get(user_id)

    def require_user(self, user_id: UserId) -> UserSubscription:
        """Get the user's record.

        Raises:
            NoSubscriptionError: If the user has no record
        """
        subscription = self._subscriptions.get(user_id)
        if subscription is None:
            raise NoSubscriptionError(user_id)
        return subscription

    def snapshot(self, user_id: UserId) -> SubscriptionSnapshot:
        """Copy of the user's domains and preferences; defaults for unknown users."""
        subscription = self._subscriptions.get(user_id)
        if subscription is None:
            return SubscriptionSnapshot(domains=[], preferences=AlertPreferences())
        return SubscriptionSnapshot(
            domains=sorted(subscription.domains),
            preferences=subscription.preferences.model_copy(),
        )

    def watchers(self, domain: str) -> frozenset[UserId]:
        """Users currently watching a domain."""
        return frozenset(self._watchers.get(normalize_domain(domain), ()))

    def watched_domains(self) -> list[str]:
        """Snapshot of every domain with at least one watcher."""
        return list(self._watchers)

    @property
    def user_count(self) -> int:
        return len(self._subscriptions)

    @property
    def domain_count(self) -> int:
        return len(self._watchers)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._subscriptions
