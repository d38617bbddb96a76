"""Notification sinks for alerts and periodic reports."""

from .base import Notifier, NotifierError
from .log import LogNotifier
from .telegram import TelegramNotifier

__all__ = [
    "Notifier",
    "NotifierError",
    "LogNotifier",
    "TelegramNotifier",
]
