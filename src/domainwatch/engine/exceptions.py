"""Engine exceptions.

Raised by the registry and schedulers; the service layer converts them
into failed ``OperationResult`` values.
"""


class SubscriptionError(Exception):
    """Base exception for subscription engine errors."""

    pass


class NoSubscriptionError(SubscriptionError):
    """Raised when a user has no subscription record."""

    def __init__(self, user_id: object) -> None:
        super().__init__("No active subscriptions found")
        self.user_id = user_id


class NotSubscribedError(SubscriptionError):
    """Raised when a user does not watch the given domain."""

    def __init__(self, user_id: object, domain: str) -> None:
        super().__init__(f"Not subscribed to {domain}")
        self.user_id = user_id
        self.domain = domain


class InvalidIntervalError(SubscriptionError):
    """Raised when a report interval is not one of the supported values."""

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Invalid interval '{value}'. Valid options: 10min, 30min, 12h, 1day"
        )
        self.value = value
