# PATH: core/models.py
"""
Core data models for ARBSCOPE.

All records are frozen dataclasses: created once per scan and discarded
when a new scan lands or the mode changes.

OPPORTUNITY_ID CONTRACT:
  spread_id:      spread_{cycle}_{YYYYMMDD}_{HHMMSS}_{index}
  opportunity_id: opp_{spread_id}
  Example: "opp_spread_1_20260122_171426_0"
  Unique per scan; deterministic given cycle, scan time and index.

MONEY CONTRACT:
  Prices, amounts and profits are Decimal. to_dict() emits them as str.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.constants import (
    Action,
    ErrorKind,
    ExecutionStatus,
    Mode,
    MIN_VENUES_PER_TOKEN,
    NetworkStatus,
    RiskLevel,
)
from core.math import ratio_pct
from core.time import now_utc


# ============================================================================
# OPPORTUNITY IDS
# ============================================================================

def format_spread_timestamp(dt: datetime) -> str:
    """
    Format datetime to spread_id timestamp component.

    Returns: "YYYYMMDD_HHMMSS"
    """
    return dt.strftime("%Y%m%d_%H%M%S")


def generate_spread_id(cycle: int, timestamp_str: str, index: int) -> str:
    """
    Generate deterministic spread_id.

    Example:
        generate_spread_id(1, "20260122_171426", 0)
        -> "spread_1_20260122_171426_0"
    """
    return f"spread_{cycle}_{timestamp_str}_{index}"


def generate_opportunity_id(spread_id: str) -> str:
    """opp_{spread_id}, 1:1 with the spread."""
    return f"opp_{spread_id}"


# ============================================================================
# MARKET DATA
# ============================================================================

@dataclass(frozen=True)
class VenuePrice:
    """One token quoted at one venue."""
    symbol: str
    venue: str
    price: Decimal
    liquidity: Decimal
    last_updated: datetime
    volatility_24h: Optional[Decimal] = None

    def __post_init__(self):
        if self.price <= 0:
            raise ValueError(f"{self.symbol}@{self.venue}: price must be positive, got {self.price}")
        if self.liquidity < 0:
            raise ValueError(f"{self.symbol}@{self.venue}: liquidity must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "venue": self.venue,
            "price": str(self.price),
            "liquidity": str(self.liquidity),
            "last_updated": self.last_updated.isoformat(),
            "volatility_24h": str(self.volatility_24h) if self.volatility_24h is not None else None,
        }


@dataclass(frozen=True)
class TokenMarket:
    """All venue prices for one token. Venue names are unique."""
    token: str
    prices: Tuple[VenuePrice, ...]

    def __post_init__(self):
        venues = [p.venue for p in self.prices]
        if len(venues) != len(set(venues)):
            raise ValueError(f"{self.token}: duplicate venue in price list {venues}")

    @property
    def has_coverage(self) -> bool:
        """True if enough venues quote this token to compare."""
        return len(self.prices) >= MIN_VENUES_PER_TOKEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "prices": [p.to_dict() for p in self.prices],
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """Ordered token markets from one PriceSource fetch."""
    markets: Tuple[TokenMarket, ...] = ()

    @classmethod
    def from_prices(cls, grouped: Iterable[Tuple[str, Iterable[VenuePrice]]]) -> "MarketSnapshot":
        return cls(tuple(TokenMarket(token, tuple(prices)) for token, prices in grouped))

    def __len__(self) -> int:
        return len(self.markets)

    def __iter__(self):
        return iter(self.markets)

    @property
    def tokens(self) -> List[str]:
        return [m.token for m in self.markets]

    @property
    def price_count(self) -> int:
        return sum(len(m.prices) for m in self.markets)

    def venue_names(self) -> List[str]:
        """Distinct venue names in first-seen order."""
        seen: Dict[str, None] = {}
        for market in self.markets:
            for price in market.prices:
                seen.setdefault(price.venue, None)
        return list(seen)

    def get(self, token: str) -> Optional[TokenMarket]:
        for market in self.markets:
            if market.token == token:
                return market
        return None

    def covered(self) -> "MarketSnapshot":
        """Only tokens with enough venues to carry an arbitrage signal."""
        return MarketSnapshot(tuple(m for m in self.markets if m.has_coverage))

    def shape(self) -> List[Tuple[str, str]]:
        """(token, venue) pairs, ignoring prices."""
        return [(m.token, p.venue) for m in self.markets for p in m.prices]

    def to_dict(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.markets]


@dataclass(frozen=True)
class FetchResult:
    """PriceSource output: snapshot plus liveness and advisory error."""
    snapshot: MarketSnapshot
    is_live: bool = False
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_live": self.is_live,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "tokens": self.snapshot.tokens,
        }


# ============================================================================
# OPPORTUNITIES
# ============================================================================

@dataclass(frozen=True)
class Verdict:
    """Scoring verdict attached to an opportunity."""
    confidence: int
    estimated_cost: Decimal
    net_profit: Decimal
    reasoning: str
    execution_strategy: str
    risk_level: RiskLevel
    action: Action
    processing_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence": self.confidence,
            "estimated_cost": str(self.estimated_cost),
            "net_profit": str(self.net_profit),
            "reasoning": self.reasoning,
            "execution_strategy": self.execution_strategy,
            "risk_level": self.risk_level.value,
            "action": self.action.value,
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass(frozen=True)
class Opportunity:
    """Cross-venue arbitrage opportunity for one token."""
    id: str
    token: str
    buy_venue: str
    sell_venue: str
    buy_price: Decimal
    sell_price: Decimal
    amount: Decimal
    spread_pct: Decimal
    gross_profit: Decimal
    verdict: Verdict
    mode: Mode

    @property
    def notional(self) -> Decimal:
        """Capital deployed on the buy leg."""
        return self.amount * self.buy_price

    @property
    def net_profit(self) -> Decimal:
        return self.verdict.net_profit

    @property
    def net_spread_pct(self) -> Decimal:
        """Net profit relative to notional, in percent."""
        return ratio_pct(self.verdict.net_profit, self.notional)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "token": self.token,
            "buy_venue": self.buy_venue,
            "sell_venue": self.sell_venue,
            "buy_price": str(self.buy_price),
            "sell_price": str(self.sell_price),
            "amount": str(self.amount),
            "spread_pct": str(self.spread_pct),
            "gross_profit": str(self.gross_profit),
            "net_spread_pct": str(self.net_spread_pct),
            "verdict": self.verdict.to_dict(),
            "mode": self.mode.value,
        }


# ============================================================================
# SCAN AGGREGATES
# ============================================================================

@dataclass(frozen=True)
class ScanMetrics:
    """Aggregates derived from the current scan only."""
    markets_scanned: int = 0
    opportunities_found: int = 0
    potential_profit: Decimal = Decimal("0")
    gas_price_gwei: int = 0
    network_status: NetworkStatus = NetworkStatus.OPTIMAL
    venues_scanned: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "markets_scanned": self.markets_scanned,
            "opportunities_found": self.opportunities_found,
            "potential_profit": str(self.potential_profit),
            "gas_price_gwei": self.gas_price_gwei,
            "network_status": self.network_status.value,
            "venues_scanned": self.venues_scanned,
        }


@dataclass(frozen=True)
class ExecutionLog:
    """One line of the scripted execution playback."""
    step: str
    status: ExecutionStatus
    details: Optional[str] = None
    timestamp: datetime = field(default_factory=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "status": self.status.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }
