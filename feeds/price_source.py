"""
feeds/price_source.py - Uniform price acquisition.

fetch(mode, credentials) always returns a renderable FetchResult:

    credentials | live outcome                 | is_live | error_kind           | snapshot
    ------------+------------------------------+---------+----------------------+----------
    absent      | -                            | False   | None                 | simulated
    present     | >= 1 usable token            | True    | None                 | live only
    present     | 0 usable tokens              | False   | None                 | simulated
    present     | NetworkBlocked               | False   | CROSS_ORIGIN_BLOCKED | simulated
    present     | any other failure / timeout  | False   | None                 | simulated
"""

import asyncio
import random
from typing import Protocol, runtime_checkable

import httpx

from core.constants import ErrorKind, Mode
from core.exceptions import NetworkBlocked
from core.logging import get_logger
from core.models import FetchResult, MarketSnapshot
from feeds.live import LiveStrategy
from feeds.simulated import SimulatedStrategy
from strategy.config import ScannerConfig

logger = get_logger(__name__)


@runtime_checkable
class AcquisitionStrategy(Protocol):
    """Something that turns a mode into a MarketSnapshot."""

    name: str

    async def acquire(self, mode: Mode) -> MarketSnapshot:
        ...


class PriceSource:
    """
    Selects Live or Simulated acquisition per call.

    Holds configuration only; nothing is retained between fetches.
    """

    def __init__(
        self,
        config: ScannerConfig,
        rng: random.Random | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.simulated = SimulatedStrategy(config.simulation, rng)
        self._transport = transport

    def live_strategy(self, api_key: str) -> LiveStrategy:
        return LiveStrategy(self.config.provider, api_key, self._transport)

    async def _simulated_result(self, mode: Mode, error_kind: ErrorKind | None = None) -> FetchResult:
        snapshot = await self.simulated.acquire(mode)
        return FetchResult(snapshot=snapshot, is_live=False, error_kind=error_kind)

    async def fetch(self, mode: Mode, credentials: str | None = None) -> FetchResult:
        """
        Acquire a market snapshot for the mode.

        Args:
            mode: Venue family
            credentials: Market-data API key (None/blank -> simulation)

        Returns:
            FetchResult; never raises for provider or network failures
        """
        mode = Mode(mode)
        if not credentials or not credentials.strip():
            return await self._simulated_result(mode)

        strategy = self.live_strategy(credentials.strip())
        try:
            snapshot = await asyncio.wait_for(
                strategy.acquire(mode),
                timeout=self.config.provider.fetch_timeout_seconds,
            )
        except NetworkBlocked as e:
            logger.warning(
                "Market-data request blocked at network level, using simulation",
                extra={"context": {"mode": mode.value, "error": e.message}},
            )
            return await self._simulated_result(mode, ErrorKind.CROSS_ORIGIN_BLOCKED)
        except asyncio.TimeoutError:
            logger.warning(
                "Live fetch exceeded time budget, using simulation",
                extra={"context": {"timeout_s": self.config.provider.fetch_timeout_seconds}},
            )
            return await self._simulated_result(mode)
        except Exception as e:
            logger.warning(
                f"Live fetch failed, using simulation: {e}",
                exc_info=True,
                extra={"context": {"mode": mode.value}},
            )
            return await self._simulated_result(mode)

        if len(snapshot) == 0:
            logger.warning(
                "Live data fetched but no token matched the venue allow-list",
                extra={"context": {"mode": mode.value}},
            )
            return await self._simulated_result(mode)

        return FetchResult(snapshot=snapshot, is_live=True, error_kind=None)
