# PATH: tests/unit/test_detector.py
"""
Unit tests for OpportunityDetector.

Covers coverage filtering, analyzer output validation, business-rule
drops, SNIPE demotion, ordering and id re-issue.
"""

import random
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.constants import Action, Mode, RiskLevel, venues_for
from core.exceptions import AnalysisSchemaViolation, AnalyzerUnavailable
from core.models import MarketSnapshot, Opportunity, Verdict
from feeds.simulated import SimulatedStrategy
from strategy.config import ScannerConfig, SimulationConfig
from strategy.detector import OpportunityDetector, restrict_to_mode

NOTIONAL = Decimal("10000")
FIXED_NOW = datetime(2026, 1, 22, 17, 14, 26, tzinfo=timezone.utc)


def make_opportunity(
    token: str,
    buy_venue: str,
    sell_venue: str,
    buy_price: str,
    net_profit: str,
    action: Action = Action.HOLD,
    confidence: int = 75,
    risk: RiskLevel = RiskLevel.MEDIUM,
    opp_id: str = "raw",
) -> Opportunity:
    buy = Decimal(buy_price)
    amount = NOTIONAL / buy
    return Opportunity(
        id=opp_id,
        token=token,
        buy_venue=buy_venue,
        sell_venue=sell_venue,
        buy_price=buy,
        sell_price=buy * Decimal("1.01"),
        amount=amount,
        spread_pct=Decimal("1"),
        gross_profit=Decimal("100"),
        verdict=Verdict(
            confidence=confidence,
            estimated_cost=Decimal("30"),
            net_profit=Decimal(net_profit),
            reasoning="test",
            execution_strategy="test",
            risk_level=risk,
            action=action,
        ),
        mode=Mode.CEX,
    )


def mock_analyzer(result) -> MagicMock:
    analyzer = MagicMock()
    if isinstance(result, Exception):
        analyzer.score = AsyncMock(side_effect=result)
    else:
        analyzer.score = AsyncMock(return_value=result)
    return analyzer


@pytest.fixture
def two_token_snapshot(make_snapshot):
    return make_snapshot({
        "BTC": {"Binance": "64000", "OKX": "64500", "Bybit": "64100"},
        "ETH": {"Binance": "3450", "KuCoin": "3480"},
    })


class TestRestrictToMode:
    """Coverage filtering before scoring."""

    def test_single_venue_token_dropped(self, make_snapshot):
        snapshot = make_snapshot({"BTC": {"Binance": "64000"}})
        assert len(restrict_to_mode(snapshot, Mode.CEX)) == 0

    def test_foreign_venues_removed(self, make_snapshot):
        snapshot = make_snapshot({"BTC": {"Binance": "64000", "Curve": "64500", "OKX": "64200"}})
        filtered = restrict_to_mode(snapshot, Mode.CEX)
        assert [p.venue for p in filtered.get("BTC").prices] == ["Binance", "OKX"]

    def test_token_with_only_one_allowed_venue_dropped(self, make_snapshot):
        snapshot = make_snapshot({"BTC": {"Binance": "64000", "Curve": "64500"}})
        assert len(restrict_to_mode(snapshot, Mode.CEX)) == 0


class TestRuleBasedDetection:
    """End-to-end with the default analyzer."""

    @pytest.mark.asyncio
    async def test_btc_two_venues_cex(self, make_snapshot):
        """BTC 64000@Binance / 64500@OKX -> one opportunity, buy Binance, sell OKX."""
        snapshot = make_snapshot({"BTC": {"Binance": "64000", "OKX": "64500"}})
        detector = OpportunityDetector(ScannerConfig())

        result = await detector.analyze(snapshot, Mode.CEX, scan_time=FIXED_NOW)

        assert len(result) == 1
        opp = result[0]
        assert opp.token == "BTC"
        assert opp.buy_venue == "Binance"
        assert opp.sell_venue == "OKX"
        assert opp.amount == Decimal("0.15625")
        assert opp.gross_profit == Decimal("78.125")
        assert opp.verdict.estimated_cost == Decimal("30.078125")
        assert opp.net_profit == Decimal("48.046875")
        assert opp.verdict.confidence == 100
        assert opp.verdict.risk_level == RiskLevel.MEDIUM
        assert opp.verdict.action == Action.SNIPE
        assert opp.id == "opp_spread_1_20260122_171426_0"

    @pytest.mark.asyncio
    async def test_single_token_single_venue_returns_empty(self, make_snapshot):
        snapshot = make_snapshot({"BTC": {"Binance": "64000"}})
        detector = OpportunityDetector()
        assert await detector.analyze(snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_empty_snapshot_returns_empty(self):
        detector = OpportunityDetector()
        assert await detector.analyze(MarketSnapshot(), Mode.DEX) == []

    @pytest.mark.asyncio
    async def test_dex_costs_eat_small_spread(self, make_snapshot):
        """0.78% gross does not survive gas + 2 x 0.3% swap fees."""
        snapshot = make_snapshot({"BTC": {"Uniswap V3": "64000", "Curve": "64500"}})
        detector = OpportunityDetector()
        assert await detector.analyze(snapshot, Mode.DEX, gas_price_gwei=14) == []

    @pytest.mark.asyncio
    async def test_dex_wide_spread_detected(self, make_snapshot):
        snapshot = make_snapshot({"BTC": {"Uniswap V3": "64000", "Curve": "65000"}})
        detector = OpportunityDetector()

        result = await detector.analyze(snapshot, Mode.DEX, gas_price_gwei=14)

        assert len(result) == 1
        assert result[0].verdict.estimated_cost == Decimal("74.95875")
        assert result[0].mode == Mode.DEX

    @pytest.mark.asyncio
    async def test_processing_time_is_measured(self, make_snapshot):
        snapshot = make_snapshot({"BTC": {"Binance": "64000", "OKX": "64500"}})
        result = await OpportunityDetector().analyze(snapshot, Mode.CEX)
        assert result[0].verdict.processing_time_ms >= 0


class TestOrdering:
    """Sort by net profit, stable on ties."""

    @pytest.mark.asyncio
    async def test_sorted_by_net_profit_descending(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("ETH", "Binance", "KuCoin", "3450", "45"),
            make_opportunity("BTC", "Binance", "OKX", "64000", "120"),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX)

        assert [o.net_profit for o in result] == [Decimal("120"), Decimal("45")]

    @pytest.mark.asyncio
    async def test_ties_keep_discovery_order(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("BTC", "Binance", "OKX", "64000", "50", opp_id="first"),
            make_opportunity("ETH", "Binance", "KuCoin", "3450", "50", opp_id="second"),
            make_opportunity("BTC", "Bybit", "OKX", "64100", "50", opp_id="third"),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX)

        assert [(o.token, o.buy_venue) for o in result] == [
            ("BTC", "Binance"), ("ETH", "Binance"), ("BTC", "Bybit"),
        ]

    @pytest.mark.asyncio
    async def test_ids_reissued_unique(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("BTC", "Binance", "OKX", "64000", "60", opp_id="dup"),
            make_opportunity("ETH", "Binance", "KuCoin", "3450", "70", opp_id="dup"),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX, cycle=7, scan_time=FIXED_NOW)

        assert [o.id for o in result] == [
            "opp_spread_7_20260122_171426_0",
            "opp_spread_7_20260122_171426_1",
        ]


class TestValidation:
    """Schema violations discard the whole scan."""

    @pytest.mark.asyncio
    async def test_confidence_out_of_range_returns_empty(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("BTC", "Binance", "OKX", "64000", "120"),
            make_opportunity("ETH", "Binance", "KuCoin", "3450", "45", confidence=150),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_non_opportunity_record_returns_empty(self, two_token_snapshot):
        analyzer = mock_analyzer([{"tokenSymbol": "BTC"}])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_non_list_output_returns_empty(self, two_token_snapshot):
        analyzer = mock_analyzer({"opportunities": []})
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_analyzer_schema_violation_returns_empty(self, two_token_snapshot):
        analyzer = mock_analyzer(AnalysisSchemaViolation("bad payload"))
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_analyzer_unavailable_propagates(self, two_token_snapshot):
        analyzer = mock_analyzer(AnalyzerUnavailable("down"))
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        with pytest.raises(AnalyzerUnavailable):
            await detector.analyze(two_token_snapshot, Mode.CEX)

    @pytest.mark.asyncio
    async def test_analyzer_not_called_without_coverage(self, make_snapshot):
        analyzer = mock_analyzer([])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        await detector.analyze(make_snapshot({"BTC": {"Binance": "64000"}}), Mode.CEX)
        analyzer.score.assert_not_called()


class TestBusinessRules:
    """Records that validate but must not be shown."""

    @pytest.mark.asyncio
    async def test_unknown_token_dropped(self, two_token_snapshot):
        analyzer = mock_analyzer([make_opportunity("DOGE", "Binance", "OKX", "0.1", "50")])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_venue_outside_allow_list_dropped(self, two_token_snapshot):
        analyzer = mock_analyzer([make_opportunity("BTC", "Coinbase", "OKX", "64000", "50")])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_venue_not_quoting_token_dropped(self, two_token_snapshot):
        # MEXC is allow-listed but has no BTC price in the snapshot
        analyzer = mock_analyzer([make_opportunity("BTC", "MEXC", "OKX", "64000", "50")])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_same_buy_and_sell_venue_dropped(self, two_token_snapshot):
        analyzer = mock_analyzer([make_opportunity("BTC", "OKX", "OKX", "64000", "50")])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_net_spread_at_threshold_dropped(self, two_token_snapshot):
        # $20 on $10,000 is exactly 0.2%
        analyzer = mock_analyzer([make_opportunity("BTC", "Binance", "OKX", "64000", "20")])
        detector = OpportunityDetector(ScannerConfig(), analyzer)
        assert await detector.analyze(two_token_snapshot, Mode.CEX) == []

    @pytest.mark.asyncio
    async def test_venue_names_canonicalized(self, two_token_snapshot):
        analyzer = mock_analyzer([make_opportunity("BTC", "binance", "OKX", "64000", "50")])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX)

        assert result[0].buy_venue == "Binance"

    @pytest.mark.asyncio
    async def test_low_confidence_snipe_demoted(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("BTC", "Binance", "OKX", "64000", "120", action=Action.SNIPE, confidence=55),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX)

        assert result[0].verdict.action == Action.HOLD

    @pytest.mark.asyncio
    async def test_low_profit_snipe_demoted(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("BTC", "Binance", "OKX", "64000", "24", action=Action.SNIPE, confidence=95),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX)

        assert result[0].verdict.action == Action.HOLD

    @pytest.mark.asyncio
    async def test_eligible_snipe_kept(self, two_token_snapshot):
        analyzer = mock_analyzer([
            make_opportunity("BTC", "Binance", "OKX", "64000", "120", action=Action.SNIPE, confidence=90),
        ])
        detector = OpportunityDetector(ScannerConfig(), analyzer)

        result = await detector.analyze(two_token_snapshot, Mode.CEX)

        assert result[0].verdict.action == Action.SNIPE


class TestSimulatedProperties:
    """Output invariants over simulated snapshots."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [Mode.CEX, Mode.DEX])
    @pytest.mark.parametrize("seed", [1, 7, 42, 1234])
    async def test_invariants_hold(self, mode, seed):
        strategy = SimulatedStrategy(SimulationConfig(shock_probability=0.3), random.Random(seed))
        snapshot = await strategy.acquire(mode)
        detector = OpportunityDetector()

        result = await detector.analyze(snapshot, mode, gas_price_gwei=12)

        allowed = set(venues_for(mode))
        for opp in result:
            quoted = {p.venue for p in snapshot.get(opp.token).prices}
            assert len(quoted) >= 2
            assert opp.buy_venue in allowed and opp.sell_venue in allowed
            assert opp.buy_venue in quoted and opp.sell_venue in quoted
            assert opp.net_spread_pct > Decimal("0.2")
        profits = [o.net_profit for o in result]
        assert profits == sorted(profits, reverse=True)
        assert len({o.id for o in result}) == len(result)
