# PATH: tests/unit/test_price_source.py
"""
Unit tests for PriceSource: live/simulated selection and error classification.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from core.constants import ErrorKind, Mode
from feeds.price_source import PriceSource
from strategy.config import ProviderConfig, ScannerConfig


def source_with(handler, **provider_overrides) -> PriceSource:
    config = ScannerConfig(provider=ProviderConfig(**provider_overrides))
    return PriceSource(config, transport=httpx.MockTransport(handler))


def body(provider_id: str, pairs: list) -> dict:
    return {"data": {provider_id: pairs}}


class TestNoCredentials:
    """Simulation without an API key."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credentials", [None, "", "   "])
    async def test_simulated_without_error(self, credentials):
        result = await PriceSource(ScannerConfig()).fetch(Mode.CEX, credentials)

        assert result.is_live is False
        assert result.error_kind is None
        assert len(result.snapshot) == 9

    @pytest.mark.asyncio
    async def test_network_never_touched(self):
        handler = MagicMock(side_effect=AssertionError("no request expected"))
        result = await source_with(handler).fetch(Mode.DEX, None)
        assert result.is_live is False
        handler.assert_not_called()


class TestLive:
    """Live acquisition with credentials."""

    @pytest.mark.asyncio
    async def test_live_snapshot_contains_live_tokens_only(self, pair):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["id"] == "1":
                return httpx.Response(200, json=body("1", [pair("Binance", 64000), pair("OKX", 64500)]))
            return httpx.Response(200, json=body(request.url.params["id"], []))

        result = await source_with(handler).fetch(Mode.CEX, "key")

        assert result.is_live is True
        assert result.error_kind is None
        assert result.snapshot.tokens == ["BTC"]

    @pytest.mark.asyncio
    async def test_transport_failure_is_cross_origin_blocked(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("blocked", request=request)

        result = await source_with(handler).fetch(Mode.CEX, "key")

        assert result.is_live is False
        assert result.error_kind == ErrorKind.CROSS_ORIGIN_BLOCKED
        assert len(result.snapshot) > 0

    @pytest.mark.asyncio
    async def test_all_tokens_failing_falls_back_silently(self):
        result = await source_with(lambda r: httpx.Response(429)).fetch(Mode.CEX, "key")

        assert result.is_live is False
        assert result.error_kind is None
        assert len(result.snapshot) == 9

    @pytest.mark.asyncio
    async def test_no_matching_venue_falls_back(self, pair):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body(request.url.params["id"], [pair("Coinbase", 1), pair("Kraken", 1)]))

        result = await source_with(handler).fetch(Mode.CEX, "key")

        assert result.is_live is False
        assert result.error_kind is None

    @pytest.mark.asyncio
    async def test_overall_timeout_falls_back(self):
        async def slow(mode):
            await asyncio.sleep(5)

        source = PriceSource(ScannerConfig(provider=ProviderConfig(fetch_timeout_seconds=0.01)))
        live = MagicMock()
        live.acquire = slow
        with patch.object(source, "live_strategy", return_value=live):
            result = await source.fetch(Mode.CEX, "key")

        assert result.is_live is False
        assert result.error_kind is None
        assert len(result.snapshot) == 9

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self):
        source = PriceSource(ScannerConfig())
        live = MagicMock()
        live.acquire = AsyncMock(side_effect=RuntimeError("boom"))
        with patch.object(source, "live_strategy", return_value=live):
            result = await source.fetch(Mode.DEX, "key")

        assert result.is_live is False
        assert result.error_kind is None
        assert len(result.snapshot) > 0
