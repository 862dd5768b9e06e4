"""
feeds/live.py - Live acquisition strategy.

Queries the market-data provider for a small fixed token worklist and
keeps only venues on the active mode's allow-list.

Per-token rules:
- no provider id configured  -> token skipped (not an error)
- ProviderUnavailable        -> token dropped, siblings unaffected
- fewer than 2 allowed venues -> token dropped
- NetworkBlocked on any token -> whole attempt raises NetworkBlocked
"""

import asyncio
from decimal import Decimal
from typing import Any

import httpx

from core.constants import Mode, match_venue
from core.exceptions import NetworkBlocked, ProviderUnavailable
from core.logging import get_logger
from core.math import safe_decimal
from core.models import MarketSnapshot, TokenMarket, VenuePrice
from core.time import now_utc, parse_timestamp
from feeds.provider import MarketDataProvider
from strategy.config import ProviderConfig

logger = get_logger(__name__)


def pair_to_venue_price(
    symbol: str,
    pair: dict[str, Any],
    mode: Mode,
    default_liquidity: Decimal,
) -> VenuePrice | None:
    """
    Convert one raw market pair into a VenuePrice.

    Returns None when the venue is not allowed for the mode or the pair
    carries no well-formed USD quote with a positive price. The venue is
    stored under its canonical allow-list name.
    """
    exchange = pair.get("exchange") or {}
    name = exchange.get("name") if isinstance(exchange, dict) else None
    if not isinstance(name, str):
        return None

    venue = match_venue(name, mode)
    if venue is None:
        return None

    quote = pair.get("quote")
    usd = quote.get("USD") if isinstance(quote, dict) else None
    if not isinstance(usd, dict):
        return None

    price = safe_decimal(usd.get("price"))
    if price <= 0:
        return None

    liquidity = safe_decimal(usd.get("depth_negative_two"))
    if liquidity <= 0:
        liquidity = default_liquidity

    try:
        last_updated = parse_timestamp(usd.get("last_updated"))
    except ValueError:
        last_updated = now_utc()

    return VenuePrice(
        symbol=symbol,
        venue=venue,
        price=price,
        liquidity=liquidity,
        last_updated=last_updated,
        volatility_24h=Decimal("0"),
    )


def build_token_market(
    symbol: str,
    pairs: list[dict[str, Any]],
    mode: Mode,
    default_liquidity: Decimal,
) -> TokenMarket | None:
    """Allowed venue prices for one token; None if fewer than 2 remain."""
    by_venue: dict[str, VenuePrice] = {}
    for pair in pairs:
        price = pair_to_venue_price(symbol, pair, mode, default_liquidity)
        if price is not None and price.venue not in by_venue:
            by_venue[price.venue] = price

    market = TokenMarket(symbol, tuple(by_venue.values()))
    if not market.has_coverage:
        logger.debug(
            f"{symbol}: {len(by_venue)} allowed venue(s), dropped",
            extra={"context": {"mode": mode.value, "pairs": len(pairs)}},
        )
        return None
    return market


class LiveStrategy:
    """Acquisition from the external market-data provider."""

    name = "live"

    def __init__(
        self,
        config: ProviderConfig,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._api_key = api_key
        self._transport = transport

    async def _fetch_token(
        self,
        provider: MarketDataProvider,
        symbol: str,
        mode: Mode,
    ) -> TokenMarket | None:
        provider_id = self.config.token_ids.get(symbol)
        if provider_id is None:
            logger.debug(f"{symbol}: no provider id, skipped")
            return None

        pairs = await provider.fetch_market_pairs(provider_id)
        return build_token_market(symbol, pairs, mode, self.config.default_liquidity_usd)

    async def acquire(self, mode: Mode) -> MarketSnapshot:
        """
        Fetch the worklist concurrently and join.

        Returns:
            Snapshot of usable tokens (may be empty)

        Raises:
            NetworkBlocked: any request failed with no HTTP status
        """
        worklist = self.config.live_tokens
        async with MarketDataProvider(self.config, self._api_key, self._transport) as provider:
            results = await asyncio.gather(
                *(self._fetch_token(provider, symbol, mode) for symbol in worklist),
                return_exceptions=True,
            )
            stats = provider.stats.to_dict()

        markets: list[TokenMarket] = []
        blocked: NetworkBlocked | None = None
        for symbol, result in zip(worklist, results):
            if isinstance(result, NetworkBlocked):
                blocked = blocked or result
            elif isinstance(result, ProviderUnavailable):
                logger.warning(
                    f"{symbol}: provider unavailable",
                    extra={"context": {"code": result.code.value, "error": result.message}},
                )
            elif isinstance(result, BaseException):
                raise result
            elif result is not None:
                markets.append(result)

        logger.info(
            f"Live fetch: {len(markets)}/{len(worklist)} tokens usable",
            extra={"context": {"mode": mode.value, **stats}},
        )

        if blocked is not None:
            raise blocked

        return MarketSnapshot(tuple(markets))
