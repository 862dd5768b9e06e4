# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for ARBSCOPE tests.
"""

import random
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.models import MarketSnapshot, TokenMarket, VenuePrice  # noqa: E402
from strategy.config import ScannerConfig  # noqa: E402

FIXED_NOW = datetime(2026, 1, 22, 17, 14, 26, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture
def scanner_config() -> ScannerConfig:
    return ScannerConfig()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def make_market():
    """
    Factory: make_market("BTC", {"Binance": "64000", "OKX": "64500"}).

    Liquidity defaults deep enough for a full liquidity score; timestamps
    are identical unless skew_seconds is given (applied to the last venue).
    """
    def _make(
        token: str,
        prices: dict,
        liquidity: str = "5000000",
        volatility: str = "2",
        skew_seconds: int = 0,
        now: datetime = FIXED_NOW,
    ) -> TokenMarket:
        items = list(prices.items())
        entries = []
        for i, (venue, price) in enumerate(items):
            ts = now + timedelta(seconds=skew_seconds) if i == len(items) - 1 else now
            entries.append(VenuePrice(
                symbol=token,
                venue=venue,
                price=Decimal(str(price)),
                liquidity=Decimal(liquidity),
                last_updated=ts,
                volatility_24h=Decimal(volatility),
            ))
        return TokenMarket(token, tuple(entries))
    return _make


@pytest.fixture
def make_snapshot(make_market):
    """Factory: make_snapshot({"BTC": {"Binance": "64000", "OKX": "64500"}})."""
    def _make(tokens: dict, **kwargs) -> MarketSnapshot:
        return MarketSnapshot(tuple(make_market(t, p, **kwargs) for t, p in tokens.items()))
    return _make


def market_pair(exchange: str, price, depth=None, last_updated: str = "2026-01-22T17:14:26.000Z") -> dict:
    """One raw provider market pair."""
    usd = {"price": price, "last_updated": last_updated}
    if depth is not None:
        usd["depth_negative_two"] = depth
    return {"exchange": {"name": exchange}, "quote": {"USD": usd}}


@pytest.fixture
def pair():
    return market_pair
