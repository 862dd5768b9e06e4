"""
strategy/verdict.py - Confidence, risk and action for a candidate spread.

Confidence (0..100) is a weighted sum of four factors, each in [0, 1]:

    freshness     0.40  venue timestamp skew (<=60s full, 0.5 at 300s, 0 beyond)
    liquidity     0.25  thinner leg depth relative to the trade notional
    plausibility  0.20  gross spread vs. what markets realistically leave open
    volatility    0.15  24h volatility of the two legs (calmer is better)

Risk:
    High   confidence < 50 or net spread < 0.3%
    Low    confidence >= 80 and net spread >= 0.5%
    Medium otherwise

Action:
    SNIPE  confidence >= 70, net profit >= $25, risk != High
    IGNORE confidence < 40
    HOLD   otherwise
"""

from decimal import Decimal
from typing import Dict, Optional, Tuple

from core.constants import Action, Mode, RiskLevel
from core.format_money import format_pct, format_usd
from core.time import calculate_freshness_score
from strategy.config import Thresholds

CONFIDENCE_WEIGHTS: Dict[str, float] = {
    "freshness": 0.40,
    "liquidity": 0.25,
    "plausibility": 0.20,
    "volatility": 0.15,
}

EXECUTION_STRATEGIES: Dict[Mode, str] = {
    Mode.CEX: "Parallel market orders on pre-funded accounts at both venues",
    Mode.DEX: "Atomic flash-loan route: borrow, buy, sell and repay in one transaction",
}


def _unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def liquidity_factor(min_liquidity: Decimal, notional: Decimal, depth_multiple: Decimal) -> float:
    """1.0 once the thinner leg is depth_multiple x notional deep."""
    if notional <= 0 or depth_multiple <= 0:
        return 0.0
    return _unit(float(min_liquidity / (notional * depth_multiple)))


def plausibility_factor(spread_pct: Decimal, max_plausible_pct: Decimal) -> float:
    """
    Wide gross spreads are more likely bad data than free money.

    Up to half of max_plausible_pct: 1.0; linear down to 0.2 at the cap;
    0.0 beyond it.
    """
    if max_plausible_pct <= 0:
        return 0.0
    half = max_plausible_pct / 2
    if spread_pct <= half:
        return 1.0
    if spread_pct > max_plausible_pct:
        return 0.0
    return _unit(1.0 - 0.8 * float((spread_pct - half) / half))


def volatility_factor(volatility_pct: Optional[Decimal], max_volatility_pct: Decimal) -> float:
    """
    1.0 for unknown or <= 2% volatility, linear down to 0.0 at the cap.

    Live quotes carry no volatility figure (0), which scores as calm.
    """
    if volatility_pct is None or volatility_pct <= 2:
        return 1.0
    if max_volatility_pct <= 2:
        return 0.0
    return _unit(1.0 - float((volatility_pct - 2) / (max_volatility_pct - 2)))


def score_confidence(
    skew_seconds: float,
    min_liquidity: Decimal,
    notional: Decimal,
    spread_pct: Decimal,
    volatility_pct: Optional[Decimal],
    thresholds: Thresholds,
) -> Tuple[int, Dict[str, float]]:
    """
    Calculate confidence for a buy/sell venue pair.

    Returns:
        (confidence 0..100, per-factor scores)
    """
    factors = {
        "freshness": calculate_freshness_score(
            skew_seconds,
            synced_seconds=thresholds.synced_skew_seconds,
            stale_seconds=thresholds.stale_skew_seconds,
        ),
        "liquidity": liquidity_factor(min_liquidity, notional, thresholds.min_depth_multiple),
        "plausibility": plausibility_factor(spread_pct, thresholds.max_plausible_spread_pct),
        "volatility": volatility_factor(volatility_pct, thresholds.max_volatility_pct),
    }
    score = sum(factors[k] * CONFIDENCE_WEIGHTS[k] for k in factors)
    return int(round(_unit(score) * 100)), factors


def assess_risk(confidence: int, net_spread_pct: Decimal, thresholds: Thresholds) -> RiskLevel:
    if (
        confidence < thresholds.high_risk_below_confidence
        or net_spread_pct < thresholds.high_risk_below_net_spread_pct
    ):
        return RiskLevel.HIGH
    if (
        confidence >= thresholds.low_risk_min_confidence
        and net_spread_pct >= thresholds.low_risk_min_net_spread_pct
    ):
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


def is_snipe_eligible(
    confidence: int,
    net_profit: Decimal,
    risk: RiskLevel,
    thresholds: Thresholds,
) -> bool:
    return (
        confidence >= thresholds.snipe_min_confidence
        and net_profit >= thresholds.snipe_min_net_profit_usd
        and risk != RiskLevel.HIGH
    )


def recommend_action(
    confidence: int,
    net_profit: Decimal,
    risk: RiskLevel,
    thresholds: Thresholds,
) -> Action:
    if is_snipe_eligible(confidence, net_profit, risk, thresholds):
        return Action.SNIPE
    if confidence < thresholds.ignore_below_confidence:
        return Action.IGNORE
    return Action.HOLD


def execution_strategy_for(mode: Mode) -> str:
    return EXECUTION_STRATEGIES[Mode(mode)]


def build_reasoning(
    buy_venue: str,
    sell_venue: str,
    spread_pct: Decimal,
    net_profit: Decimal,
    cost_usd: Decimal,
    skew_seconds: float,
    factors: Dict[str, float],
    thresholds: Thresholds,
) -> str:
    """Short human-readable rationale for the verdict."""
    parts = [
        f"{format_pct(spread_pct)} gross spread {buy_venue} -> {sell_venue}, "
        f"{format_usd(net_profit)} net after {format_usd(cost_usd)} estimated costs."
    ]
    if skew_seconds > thresholds.stale_skew_seconds:
        parts.append(f"Quotes are {int(skew_seconds)}s apart; prices may not be comparable.")
    elif skew_seconds > thresholds.synced_skew_seconds:
        parts.append(f"Quotes are {int(skew_seconds)}s apart.")
    weakest = min(factors, key=factors.get)
    if factors[weakest] < 0.5:
        parts.append(f"Weakest factor: {weakest} ({factors[weakest]:.2f}).")
    return " ".join(parts)
