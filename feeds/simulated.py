"""
feeds/simulated.py - Simulated acquisition strategy.

Deterministic shape, randomized magnitude: every seed token gets exactly
one price per allow-listed venue of the mode.

    price = base * shock * noise
    noise ~ U(1 - noise_pct%, 1 + noise_pct%)        (bid/ask jitter)
    shock = 1 with prob 1 - p, else 1 +/- shock_pct%  (real dislocation)

With the default catalog (9 tokens x 8 venues, p = 0.08) a scan contains
at least one shocked venue with probability > 0.99.
"""

import random
from decimal import Decimal

from core.constants import Mode, venues_for
from core.logging import get_logger
from core.models import MarketSnapshot, TokenMarket, VenuePrice
from core.time import now_utc
from strategy.config import SimulationConfig

logger = get_logger(__name__)

ONE = Decimal("1")
HUNDRED = Decimal("100")


class SimulatedStrategy:
    """Acquisition by synthesis from seed base prices (no network)."""

    name = "simulated"

    def __init__(self, config: SimulationConfig, rng: random.Random | None = None):
        self.config = config
        self._rng = rng or random.Random()

    def _shock(self) -> Decimal:
        if self._rng.random() >= self.config.shock_probability:
            return ONE
        jump = self.config.shock_pct / HUNDRED
        return ONE + jump if self._rng.random() > 0.5 else ONE - jump

    def _noise(self) -> Decimal:
        width = float(self.config.noise_pct)
        return ONE + Decimal(str(round(self._rng.uniform(-width, width), 6))) / HUNDRED

    def simulate_token(self, symbol: str, base_price: Decimal, mode: Mode) -> TokenMarket:
        """One VenuePrice per allow-listed venue for a seed token."""
        cfg = self.config
        timestamp = now_utc()
        prices = []
        for venue in venues_for(mode):
            volatility = round(self._rng.uniform(cfg.min_volatility_pct, cfg.max_volatility_pct), 2)
            prices.append(VenuePrice(
                symbol=symbol,
                venue=venue,
                price=base_price * self._shock() * self._noise(),
                liquidity=Decimal(self._rng.randint(cfg.min_liquidity_usd, cfg.max_liquidity_usd)),
                last_updated=timestamp,
                volatility_24h=Decimal(str(volatility)),
            ))
        return TokenMarket(symbol, tuple(prices))

    def simulate_gas_price_gwei(self) -> int:
        """Cosmetic network fee level for DEX scans (no gas oracle)."""
        low, high = self.config.gas_price_gwei_range
        return self._rng.randint(low, high)

    async def acquire(self, mode: Mode) -> MarketSnapshot:
        """Synthesize a snapshot for the full seed catalog."""
        snapshot = MarketSnapshot(tuple(
            self.simulate_token(symbol, base, mode)
            for symbol, base in self.config.base_prices.items()
        ))
        logger.debug(
            "Simulated snapshot generated",
            extra={"context": {"mode": mode.value, "tokens": len(snapshot), "prices": snapshot.price_count}},
        )
        return snapshot
