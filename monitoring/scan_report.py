"""
Scan report module for ARBSCOPE.

Metrics and a JSON artifact for one completed scan.

SCHEMA CONTRACT:
Schema version 1.0.0 fields:
- schema_version, timestamp, mode, cycle
- source: is_live, error_kind, tokens
- metrics: markets_scanned, opportunities_found, potential_profit,
  gas_price_gwei, network_status, venues_scanned
- opportunities[]: Opportunity.to_dict()

BUMP RULES: Any field addition/removal/rename requires a schema bump.

Metric semantics:
- markets_scanned = number of VenuePrice entries in the snapshot
- venues_scanned  = distinct venue names in the snapshot
- potential_profit = sum of positive net profits
- network_status: Volatile if > 5 opportunities, Congested if DEX gas is
  at or above the congestion threshold, Optimal otherwise
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from core.constants import (
    ErrorKind,
    Mode,
    NetworkStatus,
    REQUIRED_METRICS_KEYS,
    SCHEMA_VERSION,
)
from core.format_money import format_pct, format_price, format_usd
from core.models import MarketSnapshot, Opportunity, ScanMetrics
from strategy.config import ScannerConfig

logger = logging.getLogger("monitoring.scan_report")

VOLATILE_OPPORTUNITY_COUNT = 5


def classify_network_status(
    opportunity_count: int,
    gas_price_gwei: int,
    mode: Mode,
    congested_gas_price_gwei: int,
) -> NetworkStatus:
    if opportunity_count > VOLATILE_OPPORTUNITY_COUNT:
        return NetworkStatus.VOLATILE
    if mode == Mode.DEX and gas_price_gwei >= congested_gas_price_gwei:
        return NetworkStatus.CONGESTED
    return NetworkStatus.OPTIMAL


def build_scan_metrics(
    snapshot: MarketSnapshot,
    opportunities: Sequence[Opportunity],
    gas_price_gwei: int,
    mode: Mode,
    config: Optional[ScannerConfig] = None,
) -> ScanMetrics:
    """Aggregate metrics for the current scan only."""
    config = config or ScannerConfig()
    potential = sum(
        (max(Decimal("0"), o.net_profit) for o in opportunities),
        Decimal("0"),
    )
    return ScanMetrics(
        markets_scanned=snapshot.price_count,
        opportunities_found=len(opportunities),
        potential_profit=potential,
        gas_price_gwei=gas_price_gwei,
        network_status=classify_network_status(
            len(opportunities),
            gas_price_gwei,
            Mode(mode),
            config.cost_model.dex.congested_gas_price_gwei,
        ),
        venues_scanned=len(snapshot.venue_names()),
    )


@dataclass
class ScanReport:
    """
    Report for one completed scan.

    All money values are strings.
    """
    mode: str
    cycle: int = 0
    timestamp: str = ""
    is_live: bool = False
    error_kind: Optional[str] = None
    tokens: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)
    opportunities: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()
        missing = REQUIRED_METRICS_KEYS - set(self.metrics)
        if self.metrics and missing:
            raise ValueError(f"ScanReport metrics missing keys: {sorted(missing)}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "schema_version": SCHEMA_VERSION,
            "timestamp": self.timestamp,
            "mode": self.mode,
            "cycle": self.cycle,
            "source": {
                "is_live": self.is_live,
                "error_kind": self.error_kind,
                "tokens": self.tokens,
            },
            "metrics": self.metrics,
            "opportunities": self.opportunities,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path) -> None:
        """Save report to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"Scan report saved: {path}")


def build_scan_report(
    mode: Mode,
    snapshot: MarketSnapshot,
    opportunities: Sequence[Opportunity],
    metrics: ScanMetrics,
    is_live: bool = False,
    error_kind: Optional[ErrorKind] = None,
    cycle: int = 0,
    timestamp: Optional[datetime] = None,
) -> ScanReport:
    return ScanReport(
        mode=Mode(mode).value,
        cycle=cycle,
        timestamp=timestamp.isoformat() if timestamp else "",
        is_live=is_live,
        error_kind=error_kind.value if error_kind else None,
        tokens=snapshot.tokens,
        metrics=metrics.to_dict(),
        opportunities=[o.to_dict() for o in opportunities],
    )


def save_scan_report(report: ScanReport, output_dir: Path) -> Path:
    """Save report as scan_{mode}_{YYYYMMDD_HHMMSS}.json under output_dir."""
    stamp = datetime.fromisoformat(report.timestamp).strftime("%Y%m%d_%H%M%S")
    path = Path(output_dir) / f"scan_{report.mode.lower()}_{stamp}.json"
    report.save(path)
    return path


def print_scan_report(report: ScanReport, limit: int = 10) -> None:
    """Print scan report to console in formatted style."""
    source = "LIVE" if report.is_live else "SIMULATED"
    metrics = report.metrics

    print("\n" + "=" * 60)
    print(f"SCAN REPORT ({report.mode})")
    print("=" * 60)
    print(f"Timestamp: {report.timestamp} | Cycle: {report.cycle}")
    print(f"Source: {source}")
    if report.error_kind:
        print(f"Advisory: {report.error_kind} (showing simulated data)")

    print("\n--- METRICS ---")
    print(f"Markets scanned: {metrics.get('markets_scanned', 0)} "
          f"across {metrics.get('venues_scanned', 0)} venues")
    print(f"Opportunities: {metrics.get('opportunities_found', 0)}")
    print(f"Potential profit: {format_usd(metrics.get('potential_profit', '0'))}")
    print(f"Gas: {metrics.get('gas_price_gwei', 0)} gwei | "
          f"Network: {metrics.get('network_status', NetworkStatus.OPTIMAL.value)}")

    print("\n--- OPPORTUNITIES ---")
    if not report.opportunities:
        print("  none")
    for i, opp in enumerate(report.opportunities[:limit], 1):
        verdict = opp.get("verdict", {})
        print(f"  {i}. {opp.get('token')}: buy {opp.get('buy_venue')} @ {format_price(opp.get('buy_price'))}"
              f" -> sell {opp.get('sell_venue')} @ {format_price(opp.get('sell_price'))}")
        print(f"     spread {format_pct(opp.get('spread_pct'))}, "
              f"net {format_usd(verdict.get('net_profit'))} ({format_pct(opp.get('net_spread_pct'))}), "
              f"confidence {verdict.get('confidence')}, "
              f"{verdict.get('risk_level')} risk -> {verdict.get('action')}")
    print("=" * 60 + "\n")
