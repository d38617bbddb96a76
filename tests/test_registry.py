"""Tests for the domain watch registry."""

import pytest

from domainwatch.engine.exceptions import NoSubscriptionError, NotSubscribedError
from domainwatch.engine.models import PreferencesUpdate
from domainwatch.engine.registry import DomainWatchRegistry


@pytest.fixture
def registry() -> DomainWatchRegistry:
    return DomainWatchRegistry()


class TestAddDomain:
    """Tests for adding domains."""

    def test_creates_user_lazily(self, registry: DomainWatchRegistry) -> None:
        """Test the first watch creates the user's record."""
        assert 42 not in registry
        registry.add_domain(42, "example.com")
        assert 42 in registry
        assert registry.user_count == 1

    def test_indexes_both_directions(self, registry: DomainWatchRegistry) -> None:
        """Test a watch is visible from the user and from the domain."""
        registry.add_domain(42, "example.com")
        assert registry.snapshot(42).domains == ["example.com"]
        assert registry.watchers("example.com") == {42}

    def test_is_idempotent(self, registry: DomainWatchRegistry) -> None:
        """Test adding the same domain twice keeps one entry."""
        assert registry.add_domain(42, "example.com") is True
        assert registry.add_domain(42, "example.com") is False
        assert registry.snapshot(42).domains == ["example.com"]
        assert registry.domain_count == 1

    def test_normalizes_case(self, registry: DomainWatchRegistry) -> None:
        """Test domain names are stored lowercase."""
        registry.add_domain(42, "Example.COM")
        assert registry.snapshot(42).domains == ["example.com"]
        assert registry.watchers("EXAMPLE.com") == {42}


class TestRemoveDomain:
    """Tests for removing domains."""

    def test_unknown_user_raises(self, registry: DomainWatchRegistry) -> None:
        """Test removing for a user without a record raises."""
        with pytest.raises(NoSubscriptionError):
            registry.remove_domain(42, "example.com")

    def test_unwatched_domain_raises(self, registry: DomainWatchRegistry) -> None:
        """Test removing an unwatched domain raises and changes nothing."""
        registry.add_domain(42, "a.com")
        with pytest.raises(NotSubscribedError, match="Not subscribed to b.com"):
            registry.remove_domain(42, "b.com")
        assert registry.snapshot(42).domains == ["a.com"]
        assert registry.domain_count == 1

    def test_last_watcher_removes_index_entry(self, registry: DomainWatchRegistry) -> None:
        """Test the domain leaves the index with its last watcher."""
        registry.add_domain(42, "a.com")
        registry.remove_domain(42, "a.com")
        assert registry.watched_domains() == []
        assert registry.domain_count == 0
        # The record survives with an empty domain set
        assert 42 in registry
        assert registry.snapshot(42).domains == []

    def test_other_watchers_keep_index_entry(self, registry: DomainWatchRegistry) -> None:
        """Test the domain stays indexed while others watch it."""
        registry.add_domain(42, "a.com")
        registry.add_domain(7, "a.com")
        registry.remove_domain(42, "a.com")
        assert registry.watchers("a.com") == {7}
        assert registry.domain_count == 1


class TestRollbackHelpers:
    """Tests for undoing partially applied operations."""

    def test_discard_user_drops_record_and_watches(self, registry: DomainWatchRegistry) -> None:
        """Test discarding a user removes them from every watched domain."""
        registry.add_domain(42, "a.com")
        registry.add_domain(42, "b.com")
        registry.add_domain(7, "a.com")

        registry.discard_user(42)

        assert 42 not in registry
        assert registry.watchers("a.com") == {7}
        assert registry.watched_domains() == ["a.com"]

    def test_discard_unknown_user_is_noop(self, registry: DomainWatchRegistry) -> None:
        """Test discarding a user without a record does nothing."""
        registry.add_domain(7, "a.com")
        registry.discard_user(42)
        assert registry.user_count == 1
        assert registry.domain_count == 1

    def test_restore_preferences(self, registry: DomainWatchRegistry) -> None:
        """Test saved preferences replace the current ones."""
        registry.add_domain(42, "a.com")
        saved = registry.snapshot(42).preferences
        registry.update_preferences(42, PreferencesUpdate(score_threshold=10))

        registry.restore_preferences(42, saved)

        assert registry.snapshot(42).preferences.score_threshold == 80

    def test_restore_requires_record(self, registry: DomainWatchRegistry) -> None:
        """Test restoring for an unknown user raises."""
        with pytest.raises(NoSubscriptionError):
            registry.restore_preferences(42, registry.snapshot(42).preferences)


class TestPreferencesAndSnapshots:
    """Tests for preference updates and snapshots."""

    def test_update_requires_record(self, registry: DomainWatchRegistry) -> None:
        """Test updating preferences without a record raises."""
        with pytest.raises(NoSubscriptionError):
            registry.update_preferences(42, PreferencesUpdate(price_alerts=False))

    def test_update_merges(self, registry: DomainWatchRegistry) -> None:
        """Test successive updates accumulate."""
        registry.add_domain(42, "a.com")
        registry.update_preferences(42, PreferencesUpdate(score_threshold=55))
        registry.update_preferences(42, PreferencesUpdate(sale_alerts=False))
        prefs = registry.snapshot(42).preferences
        assert prefs.score_threshold == 55
        assert prefs.sale_alerts is False

    def test_snapshot_for_unknown_user(self, registry: DomainWatchRegistry) -> None:
        """Test an unknown user reads as defaults without gaining a record."""
        snapshot = registry.snapshot(99)
        assert snapshot.domains == []
        assert snapshot.preferences.score_threshold == 80
        assert 99 not in registry

    def test_snapshot_is_a_copy(self, registry: DomainWatchRegistry) -> None:
        """Test mutating a snapshot leaves the registry unchanged."""
        registry.add_domain(42, "a.com")
        snapshot = registry.snapshot(42)
        snapshot.domains.append("b.com")
        snapshot.preferences.price_alerts = False

        fresh = registry.snapshot(42)
        assert fresh.domains == ["a.com"]
        assert fresh.preferences.price_alerts is True

    def test_watched_domains_is_a_snapshot(self, registry: DomainWatchRegistry) -> None:
        """Test the watched list does not change under later additions."""
        registry.add_domain(42, "a.com")
        domains = registry.watched_domains()
        registry.add_domain(42, "b.com")
        assert domains == ["a.com"]
