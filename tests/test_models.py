"""Tests for preference models and report intervals."""

import pytest
from pydantic import ValidationError

from domainwatch.engine.models import (
    AlertPreferences,
    DomainEvent,
    EventType,
    PreferencesUpdate,
    ReportInterval,
    normalize_domain,
)


class TestReportInterval:
    """Test ReportInterval parsing and durations."""

    @pytest.mark.parametrize(
        ("value", "seconds"),
        [
            ("10min", 600),
            ("30min", 1800),
            ("12h", 43200),
            ("1day", 86400),
        ],
        ids=["10min", "30min", "12h", "1day"],
    )
    def test_seconds(self, value: str, seconds: int) -> None:
        """Test each interval maps to its length in seconds."""
        assert ReportInterval.parse(value).seconds == seconds

    def test_parse_normalizes_case_and_whitespace(self) -> None:
        """Test parsing ignores case and surrounding whitespace."""
        assert ReportInterval.parse(" 12H ") is ReportInterval.TWELVE_HOURS

    def test_parse_passes_members_through(self) -> None:
        """Test parsing an enum member returns it unchanged."""
        assert ReportInterval.parse(ReportInterval.ONE_DAY) is ReportInterval.ONE_DAY

    @pytest.mark.parametrize("value", ["45min", "", "daily", "1h"])
    def test_parse_rejects_unknown(self, value: str) -> None:
        """Test unknown interval strings are rejected."""
        with pytest.raises(ValueError):
            ReportInterval.parse(value)

    def test_every_interval_has_description(self) -> None:
        """Test every interval has a human description."""
        for interval in ReportInterval:
            assert interval.description


class TestAlertPreferences:
    """Test preference defaults and validation."""

    def test_defaults(self) -> None:
        """Test the default alert preferences."""
        prefs = AlertPreferences()
        assert prefs.price_alerts is True
        assert prefs.expiration_alerts is True
        assert prefs.sale_alerts is True
        assert prefs.transfer_alerts is True
        assert prefs.score_threshold == 80
        assert prefs.report_interval is ReportInterval.THIRTY_MINUTES
        assert prefs.periodic_reports is True

    def test_score_threshold_bounds(self) -> None:
        """Test the score threshold must lie between 0 and 100."""
        with pytest.raises(ValidationError):
            AlertPreferences(score_threshold=101)
        with pytest.raises(ValidationError):
            AlertPreferences(score_threshold=-1)

    def test_assignment_is_validated(self) -> None:
        """Test invalid values are rejected on assignment."""
        prefs = AlertPreferences()
        with pytest.raises(ValidationError):
            prefs.report_interval = "45min"  # type: ignore[assignment]
        assert prefs.report_interval is ReportInterval.THIRTY_MINUTES

    def test_merged_applies_only_supplied_fields(self) -> None:
        """Test merging changes only the fields set on the update."""
        prefs = AlertPreferences(sale_alerts=False, score_threshold=60)
        merged = prefs.merged(PreferencesUpdate(price_alerts=False))

        assert merged.price_alerts is False
        assert merged.sale_alerts is False
        assert merged.score_threshold == 60
        # Original is untouched
        assert prefs.price_alerts is True

    def test_merged_converts_interval_strings(self) -> None:
        """Test merged interval strings become enum members."""
        update = PreferencesUpdate.model_validate({"report_interval": "12h"})
        merged = AlertPreferences().merged(update)
        assert merged.report_interval is ReportInterval.TWELVE_HOURS


class TestPreferencesUpdate:
    """Test partial preference updates."""

    def test_rejects_unknown_fields(self) -> None:
        """Test unknown preference names are rejected."""
        with pytest.raises(ValidationError):
            PreferencesUpdate.model_validate({"price_alert": False})

    def test_rejects_invalid_interval(self) -> None:
        """Test an unknown interval is rejected."""
        with pytest.raises(ValidationError):
            PreferencesUpdate.model_validate({"report_interval": "45min"})

    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({"report_interval": "1day"}, True),
            ({"periodic_reports": False}, True),
            ({"price_alerts": False}, False),
            ({}, False),
        ],
        ids=["interval", "toggle", "alerts-only", "empty"],
    )
    def test_touches_reports(self, fields: dict, expected: bool) -> None:
        """Test which updates affect report scheduling."""
        assert PreferencesUpdate.model_validate(fields).touches_reports is expected


class TestDomainEvent:
    """Test DomainEvent serialization."""

    def test_to_dict(self) -> None:
        """Test events serialize with their type value."""
        event = DomainEvent(
            type=EventType.LISTING,
            message="New listing: 1.5 ETH",
            data={"id": "l1"},
            timestamp="2025-09-01T12:00:00Z",
        )
        assert event.to_dict() == {
            "type": "LISTING",
            "message": "New listing: 1.5 ETH",
            "data": {"id": "l1"},
            "timestamp": "2025-09-01T12:00:00Z",
        }


def test_normalize_domain() -> None:
    """Test domain names are trimmed and lowercased."""
    assert normalize_domain("  Example.COM ") == "example.com"
