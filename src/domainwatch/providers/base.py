"""Base domain event provider interface.

Defines the abstract interface the engine uses to read on-chain domain
state, so the registry client can be swapped (real client, fake in tests).
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ProviderError(Exception):
    """Base exception for provider client errors."""

    pass


@dataclass
class DomainSnapshot:
    """Everything fetched for one domain in a single pass."""

    domain: str
    data: dict[str, Any] | None = None
    activities: list[dict[str, Any]] = field(default_factory=list)
    listings: list[dict[str, Any]] = field(default_factory=list)
    offers: list[dict[str, Any]] = field(default_factory=list)

    @property
    def exists_on_chain(self) -> bool:
        return self.data is not None


class DomainEventProvider(ABC):
    """Abstract source of domain metadata, activities, listings and offers.

    Implementations should return ``None`` / ``[]`` on failure; the engine
    still guards against providers that raise.
    """

    @abstractmethod
    async def get_domain_data(self, domain: str) -> dict[str, Any] | None:
        """Fetch registry metadata for a domain."""
        pass

    @abstractmethod
    async def get_domain_activities(self, domain: str) -> list[dict[str, Any]]:
        """Fetch activities, newest first."""
        pass

    @abstractmethod
    async def get_domain_listings(self, domain: str) -> list[dict[str, Any]]:
        """Fetch marketplace listings, newest first."""
        pass

    @abstractmethod
    async def get_domain_offers(self, domain: str) -> list[dict[str, Any]]:
        """Fetch offers, newest first."""
        pass

    async def fetch_snapshot(self, domain: str) -> DomainSnapshot:
        """Fetch all four views of a domain concurrently.

        Raises:
            Exception: Whatever the first failing provider call raised
        """
        data, activities, listings, offers = await asyncio.gather(
            self.get_domain_data(domain),
            self.get_domain_activities(domain),
            self.get_domain_listings(domain),
            self.get_domain_offers(domain),
        )
        return DomainSnapshot(
            domain=domain,
            data=data,
            activities=activities or [],
            listings=listings or [],
            offers=offers or [],
        )
