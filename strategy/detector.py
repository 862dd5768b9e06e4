"""
strategy/detector.py - Opportunity detection.

analyze(snapshot, mode) -> ordered list[Opportunity]

Pipeline:
1. Restrict each token to the mode's allow-list, keep tokens with >= 2 venues
2. Nothing left -> [] (not an error)
3. Delegate scoring to the Analyzer
4. Validate analyzer output; any schema violation -> [] for the whole scan
5. Drop records that break business rules (unknown token, venue off the
   allow-list or not quoting the token, buy == sell, net spread <= threshold)
6. Demote SNIPE records that do not meet the SNIPE bar to HOLD
7. Sort by net profit descending (stable), re-issue ids, stamp processing time

AnalyzerUnavailable is NOT handled here; it propagates to the caller.
"""

import time
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from core.constants import Action, Mode, match_venue
from core.exceptions import AnalysisSchemaViolation
from core.logging import get_logger
from core.models import (
    MarketSnapshot,
    Opportunity,
    TokenMarket,
    format_spread_timestamp,
    generate_opportunity_id,
    generate_spread_id,
)
from core.time import now_utc
from core.validators import validate_opportunity
from strategy.analyzers import Analyzer, RuleBasedAnalyzer
from strategy.config import ScannerConfig
from strategy.verdict import is_snipe_eligible

logger = get_logger(__name__)


def restrict_to_mode(snapshot: MarketSnapshot, mode: Mode) -> MarketSnapshot:
    """
    Keep allow-listed venues only, then tokens with enough coverage.

    Tokens without coverage are a filtering outcome, logged at debug.
    """
    markets = []
    for market in snapshot:
        allowed = tuple(p for p in market.prices if match_venue(p.venue, mode) == p.venue)
        restricted = TokenMarket(market.token, allowed)
        if restricted.has_coverage:
            markets.append(restricted)
        else:
            logger.debug(
                f"{market.token}: insufficient coverage",
                extra={"context": {"mode": mode.value, "venues": len(allowed)}},
            )
    return MarketSnapshot(tuple(markets))


class OpportunityDetector:
    """Stateless detector; one analyze() call per scan."""

    def __init__(
        self,
        config: Optional[ScannerConfig] = None,
        analyzer: Optional[Analyzer] = None,
    ):
        self.config = config or ScannerConfig()
        self.analyzer = analyzer or RuleBasedAnalyzer(self.config)

    def _reject_reason(self, opportunity: Opportunity, filtered: MarketSnapshot) -> Optional[str]:
        market = filtered.get(opportunity.token)
        if market is None:
            return "UNKNOWN_TOKEN"
        quoted = {p.venue for p in market.prices}
        if opportunity.buy_venue not in quoted or opportunity.sell_venue not in quoted:
            return "VENUE_NOT_ALLOWED"
        if opportunity.buy_venue == opportunity.sell_venue:
            return "SAME_VENUE"
        if opportunity.net_spread_pct <= self.config.thresholds.min_net_spread_pct:
            return "BELOW_THRESHOLD"
        return None

    def _normalize(self, opportunity: Opportunity, mode: Mode) -> Opportunity:
        """Canonical venue names, mode stamp, SNIPE demotion."""
        opportunity = replace(
            opportunity,
            buy_venue=match_venue(opportunity.buy_venue, mode) or opportunity.buy_venue,
            sell_venue=match_venue(opportunity.sell_venue, mode) or opportunity.sell_venue,
            mode=mode,
        )
        verdict = opportunity.verdict
        if verdict.action == Action.SNIPE and not is_snipe_eligible(
            verdict.confidence, verdict.net_profit, verdict.risk_level, self.config.thresholds,
        ):
            logger.debug(
                f"{opportunity.token}: SNIPE demoted to HOLD",
                extra={"context": {"confidence": verdict.confidence, "net": str(verdict.net_profit)}},
            )
            opportunity = replace(opportunity, verdict=replace(verdict, action=Action.HOLD))
        return opportunity

    async def analyze(
        self,
        snapshot: MarketSnapshot,
        mode: Mode,
        cycle: int = 1,
        gas_price_gwei: Optional[int] = None,
        scan_time: Optional[datetime] = None,
    ) -> List[Opportunity]:
        """
        Detect and rank opportunities in a snapshot.

        Args:
            snapshot: PriceSource output
            mode: Venue family of the scan
            cycle: Scan counter used in opportunity ids
            gas_price_gwei: Per-scan gas price for the DEX cost model
            scan_time: Timestamp used in opportunity ids (default: now)

        Returns:
            Opportunities sorted by net profit, highest first

        Raises:
            AnalyzerUnavailable: analyzer could not be reached
        """
        mode = Mode(mode)
        started = time.perf_counter()

        filtered = restrict_to_mode(snapshot, mode)
        if len(filtered) == 0:
            logger.info("No token with enough venue coverage", extra={"context": {"mode": mode.value}})
            return []

        try:
            raw = await self.analyzer.score(filtered, mode, gas_price_gwei=gas_price_gwei)
            if not isinstance(raw, list):
                raise AnalysisSchemaViolation(
                    "Analyzer must return a list",
                    details={"type": type(raw).__name__},
                )
            for index, record in enumerate(raw):
                validate_opportunity(record, index)
        except AnalysisSchemaViolation as e:
            logger.warning(
                f"Analyzer output rejected: {e.message}",
                extra={"context": {"code": e.code.value, **e.details}},
            )
            return []

        kept: List[Opportunity] = []
        rejects: dict[str, int] = {}
        for record in raw:
            record = self._normalize(record, mode)
            reason = self._reject_reason(record, filtered)
            if reason is None:
                kept.append(record)
            else:
                rejects[reason] = rejects.get(reason, 0) + 1

        # sorted() is stable with reverse=True: ties keep discovery order
        ranked = sorted(kept, key=lambda o: o.net_profit, reverse=True)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        stamp = format_spread_timestamp(scan_time or now_utc())
        result = [
            replace(
                opportunity,
                id=generate_opportunity_id(generate_spread_id(cycle, stamp, index)),
                verdict=replace(opportunity.verdict, processing_time_ms=elapsed_ms),
            )
            for index, opportunity in enumerate(ranked)
        ]

        logger.info(
            f"Detected {len(result)} opportunities",
            extra={"context": {
                "mode": mode.value,
                "tokens": len(filtered),
                "candidates": len(raw),
                "rejected": rejects,
            }},
        )
        return result
