# PATH: core/constants.py
"""
Constants for ARBSCOPE.

Contains enums, venue allow-lists and scoring defaults.

CONTRACTS:
- Mode: selects venue allow-list AND cost model (immutable per scan)
- VENUE_ALLOW_LIST: canonical venue names per Mode (order is stable)
- ErrorKind: the only error classification PriceSource surfaces
"""

from decimal import Decimal
from enum import Enum
from typing import Final


class Mode(str, Enum):
    """Venue family a scan runs against."""
    CEX = "CEX"
    DEX = "DEX"


class RiskLevel(str, Enum):
    """Qualitative risk of an opportunity."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Action(str, Enum):
    """Recommended action for an opportunity."""
    SNIPE = "SNIPE"
    HOLD = "HOLD"
    IGNORE = "IGNORE"


class ErrorKind(str, Enum):
    """
    Advisory error surfaced by PriceSource.

    Absence of an error is represented by None, not by a member.
    """
    CROSS_ORIGIN_BLOCKED = "CROSS_ORIGIN_BLOCKED"


class NetworkStatus(str, Enum):
    """Qualitative network label shown next to scan metrics."""
    OPTIMAL = "Optimal"
    CONGESTED = "Congested"
    VOLATILE = "Volatile"


class ExecutionStatus(str, Enum):
    """Status of one scripted playback step."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# VENUES
# =============================================================================

CEX_VENUES: Final[tuple[str, ...]] = (
    "Binance",
    "Gate.io",
    "Bybit",
    "MEXC",
    "KuCoin",
    "OKX",
    "Huobi",
    "Bitget",
)

DEX_VENUES: Final[tuple[str, ...]] = (
    "Uniswap V3",
    "Curve",
    "PancakeSwap",
    "Balancer",
    "SushiSwap",
    "1inch",
    "Raydium",
    "Jupiter",
)

VENUE_ALLOW_LIST: Final[dict[Mode, tuple[str, ...]]] = {
    Mode.CEX: CEX_VENUES,
    Mode.DEX: DEX_VENUES,
}


def venues_for(mode: Mode) -> tuple[str, ...]:
    """Canonical venue allow-list for a mode."""
    return VENUE_ALLOW_LIST[Mode(mode)]


def match_venue(name: str, mode: Mode) -> str | None:
    """
    Map a provider venue name onto the canonical allow-list.

    Case-insensitive substring match ("Binance TR" -> "Binance").
    Returns the canonical name or None when the venue is not allowed.
    """
    lowered = name.lower()
    for canonical in venues_for(mode):
        if canonical.lower() in lowered:
            return canonical
    return None


def is_allowed_venue(name: str, mode: Mode) -> bool:
    """True if a venue name belongs to the mode's allow-list."""
    return match_venue(name, mode) is not None


# =============================================================================
# SCORING DEFAULTS
# =============================================================================

# Minimum number of venues for a token to carry any arbitrage signal
MIN_VENUES_PER_TOKEN: Final[int] = 2

# Net spread (after costs) must strictly exceed this, in percent
DEFAULT_MIN_NET_SPREAD_PCT: Final[Decimal] = Decimal("0.2")

# Venue timestamps further apart than this are considered unsynchronized
DEFAULT_STALE_SKEW_SECONDS: Final[int] = 300

# Default simulated trade notional (USD)
DEFAULT_NOTIONAL_USD: Final[Decimal] = Decimal("10000")

# Live provider worklist is capped per scan (provider rate limits)
MAX_LIVE_TOKENS: Final[int] = 5

# SCAN REPORT SCHEMA (bump on field changes)
SCHEMA_VERSION: Final[str] = "1.0.0"

REQUIRED_METRICS_KEYS: Final[frozenset[str]] = frozenset([
    "markets_scanned",
    "opportunities_found",
    "potential_profit",
    "gas_price_gwei",
    "network_status",
    "venues_scanned",
])
