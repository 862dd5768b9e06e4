"""
strategy/cost_model.py - Execution cost estimates per Mode.

CEX: fixed withdrawal fee + taker fee on each leg's notional
DEX: gas estimate + swap fee on each leg's notional

Gas estimate (DEX only):
    gas_usd = gas_price_gwei * gas_units * gas_token_price / 1e9
    clamped to [min_gas_cost_usd, max_gas_cost_usd]

The gas price is supplied per scan; there is no gas oracle.
"""

from dataclasses import dataclass
from decimal import Decimal

from core.constants import Mode
from core.math import clamp, pct_of
from strategy.config import CostModelConfig, DexCosts

GWEI_PER_ETH = Decimal("1000000000")


@dataclass(frozen=True)
class CostBreakdown:
    """Estimated cost of one round trip (buy leg + sell leg)."""
    fixed_usd: Decimal
    buy_fee_usd: Decimal
    sell_fee_usd: Decimal

    @property
    def total_usd(self) -> Decimal:
        return self.fixed_usd + self.buy_fee_usd + self.sell_fee_usd

    def to_dict(self) -> dict:
        return {
            "fixed_usd": str(self.fixed_usd),
            "buy_fee_usd": str(self.buy_fee_usd),
            "sell_fee_usd": str(self.sell_fee_usd),
            "total_usd": str(self.total_usd),
        }


def estimate_gas_cost_usd(gas_price_gwei: int, costs: DexCosts) -> Decimal:
    """
    Gas cost of one arbitrage transaction in USD.

    Example (defaults, 14 gwei):
        14 * 300_000 * 3450 / 1e9 = 14.49
    """
    raw = Decimal(gas_price_gwei) * Decimal(costs.gas_units) * costs.gas_token_price_usd / GWEI_PER_ETH
    return clamp(raw, costs.min_gas_cost_usd, costs.max_gas_cost_usd)


class CostModel:
    """Per-mode cost estimator for one scan."""

    def __init__(
        self,
        mode: Mode,
        config: CostModelConfig | None = None,
        gas_price_gwei: int | None = None,
    ):
        self.mode = Mode(mode)
        self.config = config or CostModelConfig()
        if gas_price_gwei is None:
            gas_price_gwei = self.config.dex.default_gas_price_gwei
        self.gas_price_gwei = gas_price_gwei

    @property
    def fixed_cost_usd(self) -> Decimal:
        if self.mode == Mode.CEX:
            return self.config.cex.withdrawal_fee_usd
        return estimate_gas_cost_usd(self.gas_price_gwei, self.config.dex)

    @property
    def leg_fee_pct(self) -> Decimal:
        if self.mode == Mode.CEX:
            return self.config.cex.taker_fee_pct
        return self.config.dex.swap_fee_pct

    def estimate(self, buy_notional: Decimal, sell_notional: Decimal) -> CostBreakdown:
        """
        Estimate round-trip cost.

        Args:
            buy_notional: USD spent on the buy leg
            sell_notional: USD received on the sell leg (before fees)
        """
        return CostBreakdown(
            fixed_usd=self.fixed_cost_usd,
            buy_fee_usd=pct_of(buy_notional, self.leg_fee_pct),
            sell_fee_usd=pct_of(sell_notional, self.leg_fee_pct),
        )
