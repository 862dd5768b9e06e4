"""
strategy/config.py - Scanner configuration.

Typed view over config/scanner.yaml. Every field has a default so a
missing file (or missing section) still yields a working scanner.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from config import CONFIG_DIR, SCANNER_CONFIG_FILE, load_yaml
from core.constants import (
    DEFAULT_MIN_NET_SPREAD_PCT,
    DEFAULT_NOTIONAL_USD,
    DEFAULT_STALE_SKEW_SECONDS,
    MAX_LIVE_TOKENS,
)
from core.exceptions import ConfigError
from core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Thresholds:
    """Filtering and verdict thresholds."""
    min_net_spread_pct: Decimal = DEFAULT_MIN_NET_SPREAD_PCT
    synced_skew_seconds: int = 60
    stale_skew_seconds: int = DEFAULT_STALE_SKEW_SECONDS
    snipe_min_confidence: int = 70
    snipe_min_net_profit_usd: Decimal = Decimal("25")
    ignore_below_confidence: int = 40
    max_plausible_spread_pct: Decimal = Decimal("10")
    high_risk_below_confidence: int = 50
    high_risk_below_net_spread_pct: Decimal = Decimal("0.3")
    low_risk_min_confidence: int = 80
    low_risk_min_net_spread_pct: Decimal = Decimal("0.5")
    min_depth_multiple: Decimal = Decimal("100")
    max_volatility_pct: Decimal = Decimal("10")


@dataclass
class CexCosts:
    withdrawal_fee_usd: Decimal = Decimal("10")
    taker_fee_pct: Decimal = Decimal("0.1")


@dataclass
class DexCosts:
    swap_fee_pct: Decimal = Decimal("0.3")
    gas_units: int = 300_000
    gas_token_price_usd: Decimal = Decimal("3450")
    min_gas_cost_usd: Decimal = Decimal("5")
    max_gas_cost_usd: Decimal = Decimal("20")
    default_gas_price_gwei: int = 14
    congested_gas_price_gwei: int = 16


@dataclass
class CostModelConfig:
    cex: CexCosts = field(default_factory=CexCosts)
    dex: DexCosts = field(default_factory=DexCosts)


@dataclass
class ProviderConfig:
    """Market-data provider (CoinMarketCap market pairs)."""
    base_url: str = "https://pro-api.coinmarketcap.com"
    market_pairs_path: str = "/v2/cryptocurrency/market-pairs/latest"
    pair_limit: int = 50
    timeout_seconds: float = 10.0
    fetch_timeout_seconds: float = 20.0
    default_liquidity_usd: Decimal = Decimal("1000000")
    live_tokens: list[str] = field(default_factory=lambda: ["BTC", "ETH", "SOL", "ARB", "PEPE"])
    token_ids: dict[str, str] = field(default_factory=lambda: {
        "BTC": "1", "ETH": "1027", "SOL": "5426", "ARB": "11841", "PEPE": "24478",
    })

    def __post_init__(self):
        if len(self.live_tokens) > MAX_LIVE_TOKENS:
            logger.warning(
                f"Live worklist truncated to {MAX_LIVE_TOKENS} tokens",
                extra={"context": {"dropped": self.live_tokens[MAX_LIVE_TOKENS:]}},
            )
            self.live_tokens = self.live_tokens[:MAX_LIVE_TOKENS]


@dataclass
class SimulationConfig:
    """Seeded price synthesis."""
    shock_probability: float = 0.08
    shock_pct: Decimal = Decimal("3")
    noise_pct: Decimal = Decimal("0.2")
    min_liquidity_usd: int = 10_000
    max_liquidity_usd: int = 5_010_000
    min_volatility_pct: float = 2.0
    max_volatility_pct: float = 7.0
    gas_price_gwei_range: tuple[int, int] = (12, 16)
    base_prices: dict[str, Decimal] = field(default_factory=lambda: {
        "BTC": Decimal("64200"),
        "ETH": Decimal("3450"),
        "SOL": Decimal("145"),
        "AVAX": Decimal("35"),
        "MATIC": Decimal("0.65"),
        "LINK": Decimal("14.20"),
        "UNI": Decimal("7.50"),
        "ARB": Decimal("1.12"),
        "PEPE": Decimal("0.0000075"),
    })


@dataclass
class AnalysisConfig:
    remote_url: str = ""
    timeout_seconds: float = 30.0


@dataclass
class ScannerConfig:
    """Full scanner configuration."""
    notional_usd: Decimal = DEFAULT_NOTIONAL_USD
    thresholds: Thresholds = field(default_factory=Thresholds)
    cost_model: CostModelConfig = field(default_factory=CostModelConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)


def _dec(data: dict, key: str, default: Decimal) -> Decimal:
    value = data.get(key)
    if value is None:
        return default
    try:
        return Decimal(str(value))
    except ArithmeticError:
        raise ConfigError(f"'{key}' must be numeric, got {value!r}")


def _section(data: dict, key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{key}' must be a mapping")
    return section


def parse_scanner_config(data: dict[str, Any]) -> ScannerConfig:
    """Build ScannerConfig from a parsed YAML mapping."""
    base = ScannerConfig()

    trade = _section(data, "trade")

    t = _section(data, "thresholds")
    dt = base.thresholds
    thresholds = Thresholds(
        min_net_spread_pct=_dec(t, "min_net_spread_pct", dt.min_net_spread_pct),
        synced_skew_seconds=int(t.get("synced_skew_seconds", dt.synced_skew_seconds)),
        stale_skew_seconds=int(t.get("stale_skew_seconds", dt.stale_skew_seconds)),
        snipe_min_confidence=int(t.get("snipe_min_confidence", dt.snipe_min_confidence)),
        snipe_min_net_profit_usd=_dec(t, "snipe_min_net_profit_usd", dt.snipe_min_net_profit_usd),
        ignore_below_confidence=int(t.get("ignore_below_confidence", dt.ignore_below_confidence)),
        max_plausible_spread_pct=_dec(t, "max_plausible_spread_pct", dt.max_plausible_spread_pct),
        high_risk_below_confidence=int(t.get("high_risk_below_confidence", dt.high_risk_below_confidence)),
        high_risk_below_net_spread_pct=_dec(t, "high_risk_below_net_spread_pct", dt.high_risk_below_net_spread_pct),
        low_risk_min_confidence=int(t.get("low_risk_min_confidence", dt.low_risk_min_confidence)),
        low_risk_min_net_spread_pct=_dec(t, "low_risk_min_net_spread_pct", dt.low_risk_min_net_spread_pct),
        min_depth_multiple=_dec(t, "min_depth_multiple", dt.min_depth_multiple),
        max_volatility_pct=_dec(t, "max_volatility_pct", dt.max_volatility_pct),
    )

    costs = _section(data, "cost_model")
    cex_data = _section(costs, "cex")
    dex_data = _section(costs, "dex")
    dc, dd = base.cost_model.cex, base.cost_model.dex
    cost_model = CostModelConfig(
        cex=CexCosts(
            withdrawal_fee_usd=_dec(cex_data, "withdrawal_fee_usd", dc.withdrawal_fee_usd),
            taker_fee_pct=_dec(cex_data, "taker_fee_pct", dc.taker_fee_pct),
        ),
        dex=DexCosts(
            swap_fee_pct=_dec(dex_data, "swap_fee_pct", dd.swap_fee_pct),
            gas_units=int(dex_data.get("gas_units", dd.gas_units)),
            gas_token_price_usd=_dec(dex_data, "gas_token_price_usd", dd.gas_token_price_usd),
            min_gas_cost_usd=_dec(dex_data, "min_gas_cost_usd", dd.min_gas_cost_usd),
            max_gas_cost_usd=_dec(dex_data, "max_gas_cost_usd", dd.max_gas_cost_usd),
            default_gas_price_gwei=int(dex_data.get("default_gas_price_gwei", dd.default_gas_price_gwei)),
            congested_gas_price_gwei=int(dex_data.get("congested_gas_price_gwei", dd.congested_gas_price_gwei)),
        ),
    )

    p = _section(data, "provider")
    dp = base.provider
    provider = ProviderConfig(
        base_url=str(p.get("base_url", dp.base_url)).rstrip("/"),
        market_pairs_path=str(p.get("market_pairs_path", dp.market_pairs_path)),
        pair_limit=int(p.get("pair_limit", dp.pair_limit)),
        timeout_seconds=float(p.get("timeout_seconds", dp.timeout_seconds)),
        fetch_timeout_seconds=float(p.get("fetch_timeout_seconds", dp.fetch_timeout_seconds)),
        default_liquidity_usd=_dec(p, "default_liquidity_usd", dp.default_liquidity_usd),
        live_tokens=[str(s) for s in p.get("live_tokens", dp.live_tokens)],
        token_ids={str(k): str(v) for k, v in (p.get("token_ids") or dp.token_ids).items()},
    )

    s = _section(data, "simulation")
    ds = base.simulation
    gas_range = s.get("gas_price_gwei_range", ds.gas_price_gwei_range)
    if len(gas_range) != 2:
        raise ConfigError("simulation.gas_price_gwei_range must have two values")
    base_prices = s.get("base_prices")
    simulation = SimulationConfig(
        shock_probability=float(s.get("shock_probability", ds.shock_probability)),
        shock_pct=_dec(s, "shock_pct", ds.shock_pct),
        noise_pct=_dec(s, "noise_pct", ds.noise_pct),
        min_liquidity_usd=int(s.get("min_liquidity_usd", ds.min_liquidity_usd)),
        max_liquidity_usd=int(s.get("max_liquidity_usd", ds.max_liquidity_usd)),
        min_volatility_pct=float(s.get("min_volatility_pct", ds.min_volatility_pct)),
        max_volatility_pct=float(s.get("max_volatility_pct", ds.max_volatility_pct)),
        gas_price_gwei_range=(int(gas_range[0]), int(gas_range[1])),
        base_prices=(
            {str(k): _dec(base_prices, k, Decimal("0")) for k in base_prices}
            if base_prices else ds.base_prices
        ),
    )
    for symbol, price in simulation.base_prices.items():
        if price <= 0:
            raise ConfigError(f"simulation.base_prices.{symbol} must be positive")

    a = _section(data, "analysis")
    analysis = AnalysisConfig(
        remote_url=str(a.get("remote_url") or ""),
        timeout_seconds=float(a.get("timeout_seconds", base.analysis.timeout_seconds)),
    )

    return ScannerConfig(
        notional_usd=_dec(trade, "notional_usd", base.notional_usd),
        thresholds=thresholds,
        cost_model=cost_model,
        provider=provider,
        simulation=simulation,
        analysis=analysis,
    )


def load_scanner_config(config_path: Path | None = None) -> ScannerConfig:
    """
    Load scanner configuration from YAML file.

    Args:
        config_path: Path to scanner.yaml (default: config/scanner.yaml)

    Returns:
        ScannerConfig with defaults for anything not set
    """
    if config_path is None:
        config_path = CONFIG_DIR / SCANNER_CONFIG_FILE

    if not config_path.exists():
        logger.info(f"No scanner config at {config_path}, using defaults")
        return ScannerConfig()

    return parse_scanner_config(load_yaml(str(config_path.resolve())))
