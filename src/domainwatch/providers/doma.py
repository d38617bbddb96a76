"""Doma registry client.

Reads tokenized domain metadata, activities, listings and offers from the
Doma GraphQL API. Public methods never raise: failures are logged and the
call degrades to ``None`` (metadata) or ``[]`` (collections).

Usage:
    async with DomaClient() as client:
        activities = await client.get_domain_activities("example.com")
"""

import logging
from typing import Any

import httpx

from domainwatch.config import settings

from .base import DomainEventProvider, ProviderError

logger = logging.getLogger(__name__)

NAME_QUERY = """
query GetDomain($name: String!) {
  name(name: $name) {
    name
    expiresAt
    tokenizedAt
    eoi
    registrar { name }
    nameservers { ldhName }
    transferLock
    claimedBy
    isFractionalized
  }
}
"""

ACTIVITIES_QUERY = """
query GetActivities($name: String!, $take: Int!) {
  nameActivities(name: $name, take: $take, sortOrder: DESC) {
    items {
      type
      txHash
      createdAt
    }
  }
}
"""

LISTINGS_QUERY = """
query GetListings($sld: String!, $tld: String!, $take: Int!) {
  listings(sld: $sld, tlds: [$tld], take: $take) {
    items {
      id
      price
      currency { symbol usdExchangeRate }
      createdAt
      offererAddress
    }
  }
}
"""

OFFERS_QUERY = """
query GetOffers($name: String!, $take: Int!) {
  offers(name: $name, take: $take, sortOrder: DESC) {
    items {
      id
      price
      currency { symbol usdExchangeRate }
      createdAt
      offererAddress
    }
  }
}
"""


def _items(payload: Any) -> list[dict[str, Any]]:
    """Extract a list of items from either a list or a paginated object."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict):
        return _items(payload.get("items"))
    return []


def _normalize_activity(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": item.get("id") or item.get("txHash"),
        "type": item.get("type", "UNKNOWN"),
        "timestamp": item.get("timestamp") or item.get("createdAt"),
        "transactionHash": item.get("transactionHash") or item.get("txHash"),
    }


def _normalize_order(item: dict[str, Any]) -> dict[str, Any]:
    """Normalize a listing or offer to price/currency/USD fields."""
    currency = item.get("currency")
    symbol = "ETH"
    usd_rate: float | None = None
    if isinstance(currency, dict):
        symbol = currency.get("symbol") or symbol
        usd_rate = currency.get("usdExchangeRate")
    elif isinstance(currency, str) and currency:
        symbol = currency

    price = item.get("price")
    price_usd = item.get("priceInUSD")
    if price_usd is None and usd_rate is not None and price is not None:
        try:
            price_usd = f"{float(price) * float(usd_rate):.2f}"
        except (TypeError, ValueError):
            price_usd = None

    return {
        "id": item.get("id"),
        "price": price,
        "currency": symbol,
        "priceInUSD": price_usd,
        "timestamp": item.get("timestamp") or item.get("createdAt"),
        "address": item.get("offererAddress"),
    }


class DomaClient(DomainEventProvider):
    """Async GraphQL client for the Doma registry."""

    DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}
    PAGE_SIZE = 10

    def __init__(
        self,
        endpoint: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: GraphQL endpoint (default from settings)
            api_key: Optional API key (default from settings)
            timeout: Request timeout in seconds (default from settings)
            transport: Custom httpx transport (used by tests)
        """
        self.endpoint = endpoint or settings.doma_graphql_endpoint
        self._api_key = api_key if api_key is not None else settings.doma_api_key
        self._timeout = timeout or settings.doma_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_headers(self) -> dict[str, str]:
        headers = self.DEFAULT_HEADERS.copy()
        if self._api_key:
            headers["Api-Key"] = self._api_key
        return headers

    async def connect(self) -> None:
        """Initialize the HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._get_headers(),
            transport=self._transport,
        )

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "DomaClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    async def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object.

        Raises:
            ProviderError: On transport, HTTP or GraphQL errors
        """
        if not self._client:
            raise ProviderError("Client not connected")

        try:
            response = await self._client.post(
                self.endpoint, json={"query": query, "variables": variables}
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Malformed response: {e}") from e

        if not isinstance(payload, dict):
            raise ProviderError("Malformed response: expected a JSON object")
        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else None
            raise ProviderError(f"GraphQL error: {message or first}")

        data = payload.get("data")
        if data is not None and not isinstance(data, dict):
            raise ProviderError("Malformed response: 'data' is not an object")
        return data or {}

    async def get_domain_data(self, domain: str) -> dict[str, Any] | None:
        try:
            data = await self._query(NAME_QUERY, {"name": domain})
        except ProviderError as e:
            logger.warning(f"Could not fetch domain data for {domain}: {e}")
            return None
        return data.get("name")

    async def get_domain_activities(self, domain: str) -> list[dict[str, Any]]:
        try:
            data = await self._query(ACTIVITIES_QUERY, {"name": domain, "take": self.PAGE_SIZE})
        except ProviderError as e:
            logger.warning(f"Could not fetch activities for {domain}: {e}")
            return []
        return [_normalize_activity(item) for item in _items(data.get("nameActivities"))]

    async def get_domain_listings(self, domain: str) -> list[dict[str, Any]]:
        sld, _, tld = domain.partition(".")
        try:
            data = await self._query(
                LISTINGS_QUERY, {"sld": sld, "tld": tld, "take": self.PAGE_SIZE}
            )
        except ProviderError as e:
            logger.warning(f"Could not fetch listings for {domain}: {e}")
            return []
        return [_normalize_order(item) for item in _items(data.get("listings"))]

    async def get_domain_offers(self, domain: str) -> list[dict[str, Any]]:
        try:
            data = await self._query(OFFERS_QUERY, {"name": domain, "take": self.PAGE_SIZE})
        except ProviderError as e:
            logger.warning(f"Could not fetch offers for {domain}: {e}")
            return []
        return [_normalize_order(item) for item in _items(data.get("offers"))]
