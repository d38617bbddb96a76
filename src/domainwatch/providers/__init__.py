"""Domain data providers."""

from .base import DomainEventProvider, DomainSnapshot, ProviderError
from .doma import DomaClient

__all__ = [
    "DomainEventProvider",
    "DomainSnapshot",
    "ProviderError",
    "DomaClient",
]
