"""Data model for subscriptions, preferences, events and reports."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UserId = int | str


class ReportInterval(Enum):
    """Supported cadences for periodic reports."""

    TEN_MINUTES = "10min"
    THIRTY_MINUTES = "30min"
    TWELVE_HOURS = "12h"
    ONE_DAY = "1day"

    @property
    def seconds(self) -> int:
        """Length of the interval in seconds."""
        return REPORT_INTERVAL_SECONDS[self]

    @property
    def description(self) -> str:
        return REPORT_INTERVAL_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: "str | ReportInterval") -> "ReportInterval":
        """Parse user input such as ``" 12H "`` into an interval.

        Raises:
            ValueError: If the value is not one of the supported cadences
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


REPORT_INTERVAL_SECONDS: dict[ReportInterval, int] = {
    ReportInterval.TEN_MINUTES: 10 * 60,
    ReportInterval.THIRTY_MINUTES: 30 * 60,
    ReportInterval.TWELVE_HOURS: 12 * 60 * 60,
    ReportInterval.ONE_DAY: 24 * 60 * 60,
}

REPORT_INTERVAL_DESCRIPTIONS: dict[ReportInterval, str] = {
    ReportInterval.TEN_MINUTES: "Every 10 minutes",
    ReportInterval.THIRTY_MINUTES: "Every 30 minutes (default)",
    ReportInterval.TWELVE_HOURS: "Every 12 hours",
    ReportInterval.ONE_DAY: "Every 24 hours",
}


class AlertPreferences(BaseModel):
    """Per-user notification preferences."""

    model_config = ConfigDict(validate_assignment=True)

    price_alerts: bool = True
    expiration_alerts: bool = True
    sale_alerts: bool = True
    transfer_alerts: bool = True
    # Reports flag domains scoring below this; the engine never suppresses on it
    score_threshold: int = Field(default=80, ge=0, le=100)
    report_interval: ReportInterval = ReportInterval.THIRTY_MINUTES
    periodic_reports: bool = True

    def merged(self, update: "PreferencesUpdate") -> "AlertPreferences":
        """Return a copy with every supplied field of ``update`` applied."""
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        return self.model_copy(update=changes)


class PreferencesUpdate(BaseModel):
    """Partial preference update. Fields left unset keep their prior value."""

    model_config = ConfigDict(extra="forbid")

    price_alerts: bool | None = None
    expiration_alerts: bool | None = None
    sale_alerts: bool | None = None
    transfer_alerts: bool | None = None
    score_threshold: int | None = Field(default=None, ge=0, le=100)
    report_interval: ReportInterval | None = None
    periodic_reports: bool | None = None

    @property
    def touches_reports(self) -> bool:
        """Whether applying this update can change the report timer."""
        fields = self.model_dump(exclude_unset=True, exclude_none=True)
        return "report_interval" in fields or "periodic_reports" in fields


@dataclass
class UserSubscription:
    """A user's watched domains and preferences."""

    user_id: UserId
    domains: set[str] = field(default_factory=set)
    preferences: AlertPreferences = field(default_factory=AlertPreferences)


@dataclass
class SubscriptionSnapshot:
    """Read-only view of a user's subscription."""

    domains: list[str]
    preferences: AlertPreferences


@dataclass
class OperationResult:
    """Outcome of an inbound operation, suitable for relaying to the user."""

    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "OperationResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message)


class EventType(Enum):
    """Kinds of domain events detected by the monitor."""

    ACTIVITY = "ACTIVITY"
    LISTING = "LISTING"
    OFFER = "OFFER"


@dataclass
class DomainEvent:
    """A single event detected for a watched domain."""

    type: EventType
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type.value,
            "message": self.message,
            "data": self.data,
            "timestamp": self.timestamp,
        }


class DomainState(Enum):
    """Status shown for a domain in periodic reports."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ERROR = "Error"


@dataclass
class DomainStatus:
    """Per-domain entry of a periodic report."""

    domain: str
    score: int
    status: DomainState
    activities: int = 0
    listings: int = 0
    offers: int = 0
    last_activity: str = "N/A"
    current_price: str = "N/A"
    below_threshold: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "domain": self.domain,
            "score": self.score,
            "status": self.status.value,
            "activities": self.activities,
            "listings": self.listings,
            "offers": self.offers,
            "last_activity": self.last_activity,
            "current_price": self.current_price,
            "below_threshold": self.below_threshold,
            "error": self.error,
        }


@dataclass
class PeriodicReport:
    """Status snapshot across all of a user's watched domains."""

    user_id: UserId
    domains: list[DomainStatus]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "timestamp": self.timestamp.isoformat(),
            "domains": [status.to_dict() for status in self.domains],
        }


@dataclass
class SubscriptionStats:
    """Aggregate counts over the registry and timers."""

    total_users: int
    total_domains: int
    is_monitoring: bool
    active_report_timers: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_users": self.total_users,
            "total_domains": self.total_domains,
            "is_monitoring": self.is_monitoring,
            "active_report_timers": self.active_report_timers,
        }


def normalize_domain(domain: str) -> str:
    """Case-normalize a domain name for use as a registry key."""
    return domain.strip().lower()
