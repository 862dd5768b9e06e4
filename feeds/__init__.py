"""
feeds/ - Market data acquisition.

Modules:
- price_source: PriceSource.fetch(mode, credentials) -> FetchResult
- live: LiveStrategy (market-data provider)
- simulated: SimulatedStrategy (seeded synthesis)
- provider: MarketDataProvider HTTP client
"""

from feeds.live import LiveStrategy
from feeds.price_source import AcquisitionStrategy, PriceSource
from feeds.provider import MarketDataProvider
from feeds.simulated import SimulatedStrategy

__all__ = [
    "AcquisitionStrategy",
    "LiveStrategy",
    "MarketDataProvider",
    "PriceSource",
    "SimulatedStrategy",
]
