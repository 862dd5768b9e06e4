"""
strategy/analyzers.py - Opportunity scorers.

An Analyzer turns a (coverage-filtered) MarketSnapshot into candidate
Opportunities. The detector validates and normalizes whatever comes back,
so analyzers are free to be sloppy about ids, ordering and thresholds.

- RuleBasedAnalyzer: deterministic cost model + verdict rules (default)
- RemoteAnalyzer: POSTs the snapshot to an HTTP analysis endpoint
"""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx

from core.constants import Mode, venues_for
from core.exceptions import AnalysisSchemaViolation, AnalyzerUnavailable
from core.logging import get_logger
from core.math import ratio_pct, spread_pct
from core.models import MarketSnapshot, Opportunity, TokenMarket, VenuePrice, Verdict
from core.time import timestamp_skew_seconds
from core.validators import parse_opportunity_payload
from strategy.config import AnalysisConfig, ScannerConfig
from strategy.cost_model import CostModel
from strategy.verdict import (
    assess_risk,
    build_reasoning,
    execution_strategy_for,
    recommend_action,
    score_confidence,
)

logger = get_logger(__name__)


@runtime_checkable
class Analyzer(Protocol):
    """Scores a snapshot into candidate opportunities."""

    async def score(
        self,
        snapshot: MarketSnapshot,
        mode: Mode,
        gas_price_gwei: Optional[int] = None,
    ) -> List[Opportunity]:
        ...


def select_legs(market: TokenMarket) -> tuple[VenuePrice, VenuePrice]:
    """
    Cheapest venue (buy) and dearest venue (sell).

    First occurrence wins on ties.
    """
    buy = sell = market.prices[0]
    for price in market.prices[1:]:
        if price.price < buy.price:
            buy = price
        if price.price > sell.price:
            sell = price
    return buy, sell


def _mean_volatility(*prices: VenuePrice) -> Optional[Decimal]:
    values = [p.volatility_24h for p in prices if p.volatility_24h is not None]
    if not values:
        return None
    return sum(values, Decimal("0")) / len(values)


class RuleBasedAnalyzer:
    """Deterministic analyzer: best buy/sell per token, cost model, verdict rules."""

    def __init__(self, config: Optional[ScannerConfig] = None):
        self.config = config or ScannerConfig()

    def score_market(
        self,
        market: TokenMarket,
        mode: Mode,
        cost_model: CostModel,
        index: int = 0,
    ) -> Optional[Opportunity]:
        """Score one token. Returns None when no spread survives costs."""
        thresholds = self.config.thresholds
        buy, sell = select_legs(market)
        if sell.price <= buy.price:
            return None

        notional = self.config.notional_usd
        amount = notional / buy.price
        sell_notional = amount * sell.price
        gross = sell_notional - notional
        costs = cost_model.estimate(notional, sell_notional)
        net = gross - costs.total_usd
        net_spread = ratio_pct(net, notional)

        if net_spread <= thresholds.min_net_spread_pct:
            logger.debug(
                f"{market.token}: net spread below threshold",
                extra={"context": {"net_spread_pct": str(net_spread), "gross": str(gross)}},
            )
            return None

        gross_spread = spread_pct(buy.price, sell.price)
        skew = timestamp_skew_seconds([buy.last_updated, sell.last_updated])
        confidence, factors = score_confidence(
            skew_seconds=skew,
            min_liquidity=min(buy.liquidity, sell.liquidity),
            notional=notional,
            spread_pct=gross_spread,
            volatility_pct=_mean_volatility(buy, sell),
            thresholds=thresholds,
        )
        risk = assess_risk(confidence, net_spread, thresholds)

        verdict = Verdict(
            confidence=confidence,
            estimated_cost=costs.total_usd,
            net_profit=net,
            reasoning=build_reasoning(
                buy.venue, sell.venue, gross_spread, net, costs.total_usd, skew, factors, thresholds,
            ),
            execution_strategy=execution_strategy_for(mode),
            risk_level=risk,
            action=recommend_action(confidence, net, risk, thresholds),
        )
        return Opportunity(
            id=f"candidate_{index}",
            token=market.token,
            buy_venue=buy.venue,
            sell_venue=sell.venue,
            buy_price=buy.price,
            sell_price=sell.price,
            amount=amount,
            spread_pct=gross_spread,
            gross_profit=gross,
            verdict=verdict,
            mode=mode,
        )

    async def score(
        self,
        snapshot: MarketSnapshot,
        mode: Mode,
        gas_price_gwei: Optional[int] = None,
    ) -> List[Opportunity]:
        cost_model = CostModel(mode, self.config.cost_model, gas_price_gwei)
        candidates = []
        for market in snapshot:
            opportunity = self.score_market(market, mode, cost_model, len(candidates))
            if opportunity is not None:
                candidates.append(opportunity)
        return candidates


class RemoteAnalyzer:
    """
    Analyzer backed by an HTTP analysis endpoint.

    Request body:  {"mode", "venues", "gasPriceGwei", "snapshot"}
    Response body: JSON array of wire opportunities (see core.validators)

    Raises AnalyzerUnavailable for transport failures and error statuses,
    AnalysisSchemaViolation for anything that is not a valid array.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not config.remote_url:
            raise ValueError("RemoteAnalyzer requires analysis.remote_url")
        self.config = config
        self._transport = transport

    def build_request(
        self,
        snapshot: MarketSnapshot,
        mode: Mode,
        gas_price_gwei: Optional[int],
    ) -> Dict[str, Any]:
        return {
            "mode": mode.value,
            "venues": list(venues_for(mode)),
            "gasPriceGwei": gas_price_gwei,
            "snapshot": snapshot.to_dict(),
        }

    async def score(
        self,
        snapshot: MarketSnapshot,
        mode: Mode,
        gas_price_gwei: Optional[int] = None,
    ) -> List[Opportunity]:
        body = self.build_request(snapshot, mode, gas_price_gwei)
        start_ms = int(time.time() * 1000)

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(self.config.remote_url, json=body)
            except httpx.HTTPError as e:
                raise AnalyzerUnavailable(
                    f"Analysis endpoint unreachable: {e}",
                    details={"url": self.config.remote_url, "error": type(e).__name__},
                ) from e

        if resp.status_code >= 400:
            raise AnalyzerUnavailable(
                f"Analysis endpoint returned HTTP {resp.status_code}",
                details={"url": self.config.remote_url, "status": resp.status_code},
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise AnalysisSchemaViolation(
                "Analysis endpoint returned invalid JSON",
                details={"url": self.config.remote_url},
            ) from e

        opportunities = parse_opportunity_payload(payload, mode)
        logger.info(
            f"Remote analysis returned {len(opportunities)} candidates",
            extra={"context": {"latency_ms": int(time.time() * 1000) - start_ms}},
        )
        return opportunities
