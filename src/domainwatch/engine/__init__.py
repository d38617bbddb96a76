"""domainwatch subscription engine.

This module provides:
- Registry of users, watched domains and alert preferences
- Event detection loop (one global schedule)
- Periodic report scheduler (one schedule per user)

Architecture:
    ┌──────────────────────────────────────────────────┐
    │               SubscriptionService                │
    │  ┌──────────────┐  ┌──────────────────────────┐  │
    │  │ EventMonitor │  │      ReportScheduler     │  │
    │  │ (30s global) │  │ (10min/30min/12h/1day)   │  │
    │  └──────────────┘  └──────────────────────────┘  │
    │          │     AsyncScheduler     │              │
    │          └──────────┬─────────────┘              │
    │                     ▼                            │
    │          ┌─────────────────────┐                 │
    │          │ DomainWatchRegistry │                 │
    │          └─────────────────────┘                 │
    └──────────────────────────────────────────────────┘
            │ DomainEventProvider      │ Notifier
"""

from .events import EventDetector, EventMonitor
from .exceptions import (
    InvalidIntervalError,
    NoSubscriptionError,
    NotSubscribedError,
    SubscriptionError,
)
from .models import (
    AlertPreferences,
    DomainEvent,
    DomainState,
    DomainStatus,
    EventType,
    OperationResult,
    PeriodicReport,
    PreferencesUpdate,
    ReportInterval,
    SubscriptionSnapshot,
    SubscriptionStats,
    UserSubscription,
)
from .registry import DomainWatchRegistry
from .reports import ReportScheduler
from .service import SubscriptionService

__all__ = [
    # Service
    "SubscriptionService",
    "DomainWatchRegistry",
    "EventMonitor",
    "EventDetector",
    "ReportScheduler",
    # Models
    "AlertPreferences",
    "PreferencesUpdate",
    "ReportInterval",
    "UserSubscription",
    "SubscriptionSnapshot",
    "SubscriptionStats",
    "OperationResult",
    "DomainEvent",
    "EventType",
    "DomainStatus",
    "DomainState",
    "PeriodicReport",
    # Exceptions
    "SubscriptionError",
    "NoSubscriptionError",
    "NotSubscribedError",
    "InvalidIntervalError",
]
