"""
feeds/provider.py - Market-data provider client.

Venue-level price pairs from the CoinMarketCap market-pairs endpoint.

Failure classification:
- HTTP status >= 400, unreadable JSON, unexpected shape -> ProviderUnavailable
- Timeout                                                 -> ProviderUnavailable
- Transport failure with no HTTP status                   -> NetworkBlocked
"""

import time
from dataclasses import dataclass
from typing import Any

import httpx

from core.exceptions import ErrorCode, NetworkBlocked, ProviderUnavailable
from core.logging import get_logger
from strategy.config import ProviderConfig

logger = get_logger(__name__)

API_KEY_HEADER = "X-CMC_PRO_API_KEY"


@dataclass
class ProviderStats:
    """Request statistics for one provider session."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    def to_dict(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "avg_latency_ms": self.avg_latency_ms,
            "last_error": self.last_error,
        }


class MarketDataProvider:
    """
    Async client for venue-level market pairs.

    Use as an async context manager; one instance per PriceSource fetch.
    """

    def __init__(
        self,
        config: ProviderConfig,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._api_key = api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.stats = ProviderStats()

    async def __aenter__(self) -> "MarketDataProvider":
        await self._get_client()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
                headers={
                    API_KEY_HEADER: self._api_key,
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _fail(self, message: str) -> None:
        self.stats.failed_requests += 1
        self.stats.last_error = message

    async def fetch_market_pairs(self, provider_id: str) -> list[dict[str, Any]]:
        """
        Fetch raw market pairs for one provider token id.

        Args:
            provider_id: Provider-specific token id (e.g. "1" for BTC)

        Returns:
            List of raw pair dicts (exchange + quote)

        Raises:
            ProviderUnavailable: bad status, timeout or malformed payload
            NetworkBlocked: request never produced an HTTP status
        """
        client = await self._get_client()
        params = {
            "id": provider_id,
            "start": 1,
            "limit": self.config.pair_limit,
            "convert": "USD",
        }

        self.stats.total_requests += 1
        start_ms = int(time.time() * 1000)

        try:
            resp = await client.get(self.config.market_pairs_path, params=params)
        except httpx.TimeoutException as e:
            self._fail(f"timeout: {e}")
            raise ProviderUnavailable(
                f"Provider timed out for id {provider_id}",
                code=ErrorCode.PROVIDER_TIMEOUT,
                details={"provider_id": provider_id},
            ) from e
        except httpx.TransportError as e:
            self._fail(f"transport: {e}")
            raise NetworkBlocked(
                f"Request for id {provider_id} failed before any response: {e}",
                details={"provider_id": provider_id, "error": type(e).__name__},
            ) from e

        latency_ms = int(time.time() * 1000) - start_ms

        if resp.status_code >= 400:
            self._fail(f"HTTP {resp.status_code}")
            raise ProviderUnavailable(
                f"Provider returned HTTP {resp.status_code} for id {provider_id}",
                code=ErrorCode.PROVIDER_BAD_STATUS,
                details={"provider_id": provider_id, "status": resp.status_code},
            )

        try:
            body = resp.json()
        except ValueError as e:
            self._fail("invalid JSON")
            raise ProviderUnavailable(
                f"Provider returned invalid JSON for id {provider_id}",
                code=ErrorCode.PROVIDER_MALFORMED,
                details={"provider_id": provider_id},
            ) from e

        pairs = extract_market_pairs(body, provider_id)

        self.stats.successful_requests += 1
        self.stats.total_latency_ms += latency_ms
        logger.debug(
            f"Fetched {len(pairs)} market pairs",
            extra={"context": {"provider_id": provider_id, "latency_ms": latency_ms}},
        )
        return pairs


def extract_market_pairs(body: Any, provider_id: str) -> list[dict[str, Any]]:
    """
    Pull the pair list out of a market-pairs response.

    Accepts both shapes seen in the wild:
      {"data": {"<id>": [...pairs]}}
      {"data": {"<id>": {"market_pairs": [...]}}} / {"data": {"market_pairs": [...]}}

    Raises:
        ProviderUnavailable: no pair list could be found
    """
    data = body.get("data") if isinstance(body, dict) else None
    if isinstance(data, dict) and provider_id in data:
        data = data[provider_id]
    if isinstance(data, dict):
        data = data.get("market_pairs")
    if not isinstance(data, list):
        raise ProviderUnavailable(
            f"Unexpected market-pairs payload for id {provider_id}",
            code=ErrorCode.PROVIDER_MALFORMED,
            details={"provider_id": provider_id},
        )
    return [p for p in data if isinstance(p, dict)]
