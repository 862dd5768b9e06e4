"""
strategy/orchestrator.py - Single-flight scan coordinator.

States:
- IDLE: Ready for a scan
- FETCHING: PriceSource.fetch in flight
- SCORING: OpportunityDetector.analyze in flight
- DONE: Results published (transient, returns to IDLE)

IDLE -> FETCHING -> SCORING -> DONE -> IDLE; any failure or cancellation -> IDLE.

A scan requested while not IDLE is rejected (returns False). A failed scan
keeps the previous results. A scan that completes after switch_mode() has
its results discarded.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from core.constants import ErrorKind, Mode
from core.logging import get_logger
from core.models import MarketSnapshot, Opportunity, ScanMetrics
from core.time import now_utc
from feeds.price_source import PriceSource
from monitoring.scan_report import build_scan_metrics
from strategy.config import ScannerConfig
from strategy.detector import OpportunityDetector

logger = get_logger(__name__)


class ScanState(Enum):
    """Orchestrator states."""
    IDLE = auto()
    FETCHING = auto()
    SCORING = auto()
    DONE = auto()


class ScanPhase(str, Enum):
    """Progress labels published to subscribers."""
    INITIALIZING_NODES = "INITIALIZING_NODES"
    CONNECTING_MARKET_DATA_API = "CONNECTING_MARKET_DATA_API"
    SIMULATING_FEED = "SIMULATING_FEED"
    ANALYZING_SPREADS = "ANALYZING_SPREADS"
    SCORING_OPPORTUNITIES = "SCORING_OPPORTUNITIES"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


VALID_TRANSITIONS = {
    ScanState.IDLE: [ScanState.FETCHING],
    ScanState.FETCHING: [ScanState.SCORING, ScanState.IDLE],
    ScanState.SCORING: [ScanState.DONE, ScanState.IDLE],
    ScanState.DONE: [ScanState.IDLE],
}

PhaseCallback = Callable[[ScanPhase], None]


@dataclass(frozen=True)
class ScanResult:
    """Everything one scan publishes, swapped in as a unit."""
    snapshot: MarketSnapshot = field(default_factory=MarketSnapshot)
    opportunities: Tuple[Opportunity, ...] = ()
    metrics: ScanMetrics = field(default_factory=ScanMetrics)
    is_live: bool = False
    error_kind: Optional[ErrorKind] = None
    last_updated: Optional[datetime] = None
    cycle: int = 0


@dataclass
class ScanContext:
    """Mutable state of the current session; written only by the orchestrator."""
    mode: Mode = Mode.CEX
    credentials: Optional[str] = None
    state: ScanState = ScanState.IDLE
    phase: Optional[ScanPhase] = None
    result: ScanResult = field(default_factory=ScanResult)
    cycle: int = 0
    generation: int = 0

    @property
    def snapshot(self) -> MarketSnapshot:
        return self.result.snapshot

    @property
    def opportunities(self) -> Tuple[Opportunity, ...]:
        return self.result.opportunities

    @property
    def metrics(self) -> ScanMetrics:
        return self.result.metrics

    @property
    def is_live(self) -> bool:
        return self.result.is_live

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.result.error_kind

    @property
    def last_updated(self) -> Optional[datetime]:
        return self.result.last_updated

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "state": self.state.name,
            "phase": self.phase.value if self.phase else None,
            "cycle": self.cycle,
            "is_live": self.is_live,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "opportunities": len(self.opportunities),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


class ScanOrchestrator:
    """
    Runs PriceSource -> OpportunityDetector -> metrics, one scan at a time.

    Usage:
        orchestrator = ScanOrchestrator(config, mode=Mode.CEX)
        orchestrator.on_phase(print)
        await orchestrator.scan()
        orchestrator.context.opportunities
    """

    def __init__(
        self,
        config: Optional[ScannerConfig] = None,
        price_source: Optional[PriceSource] = None,
        detector: Optional[OpportunityDetector] = None,
        mode: Mode = Mode.CEX,
        credentials: Optional[str] = None,
    ):
        self.config = config or ScannerConfig()
        self.price_source = price_source or PriceSource(self.config)
        self.detector = detector or OpportunityDetector(self.config)
        self.context = ScanContext(mode=Mode(mode), credentials=_clean(credentials))
        self._subscribers: List[PhaseCallback] = []

    @property
    def state(self) -> ScanState:
        return self.context.state

    def on_phase(self, callback: PhaseCallback) -> None:
        """Subscribe to phase labels."""
        self._subscribers.append(callback)

    def _publish(self, phase: ScanPhase) -> None:
        self.context.phase = phase
        for callback in self._subscribers:
            try:
                callback(phase)
            except Exception:
                logger.warning(
                    "Phase subscriber failed",
                    exc_info=True,
                    extra={"context": {"phase": phase.value}},
                )

    def _transition(self, target: ScanState) -> None:
        current = self.context.state
        if target not in VALID_TRANSITIONS.get(current, []):
            raise RuntimeError(f"Invalid transition: {current.name} -> {target.name}")
        self.context.state = target

    def _gas_price_gwei(self) -> int:
        return self.price_source.simulated.simulate_gas_price_gwei()

    def switch_mode(self, mode: Mode) -> None:
        """
        Change venue family.

        Opportunities, metrics and the advisory error are cleared at once;
        a scan still in flight for the old mode is discarded on completion.
        """
        mode = Mode(mode)
        ctx = self.context
        ctx.mode = mode
        ctx.generation += 1
        ctx.result = replace(ctx.result, opportunities=(), metrics=ScanMetrics(), error_kind=None)
        logger.info("Mode switched", extra={"context": {"mode": mode.value}})

    def set_credentials(self, credentials: Optional[str]) -> None:
        """Update the market-data credential for the next scan; clears the advisory."""
        ctx = self.context
        ctx.credentials = _clean(credentials)
        ctx.result = replace(ctx.result, error_kind=None)
        logger.info(
            "Credentials updated",
            extra={"context": {"has_credentials": ctx.credentials is not None}},
        )

    async def scan(self) -> bool:
        """
        Run one scan cycle.

        Returns:
            True if new results were published, False if the scan was
            rejected (already running), failed, or was discarded
        """
        ctx = self.context
        if ctx.state != ScanState.IDLE:
            logger.info("Scan already in flight, ignoring trigger", extra={"context": {"state": ctx.state.name}})
            return False

        mode = ctx.mode
        credentials = ctx.credentials
        generation = ctx.generation
        ctx.cycle += 1
        cycle = ctx.cycle
        log = get_logger(__name__, mode=mode.value, cycle=cycle)

        try:
            self._transition(ScanState.FETCHING)
            self._publish(ScanPhase.INITIALIZING_NODES)
            self._publish(
                ScanPhase.CONNECTING_MARKET_DATA_API if credentials else ScanPhase.SIMULATING_FEED
            )
            fetched = await self.price_source.fetch(mode, credentials)
            gas_price = self._gas_price_gwei()

            self._transition(ScanState.SCORING)
            self._publish(ScanPhase.ANALYZING_SPREADS)
            self._publish(ScanPhase.SCORING_OPPORTUNITIES)
            scan_time = now_utc()
            opportunities = await self.detector.analyze(
                fetched.snapshot,
                mode,
                cycle=cycle,
                gas_price_gwei=gas_price,
                scan_time=scan_time,
            )
            metrics = build_scan_metrics(fetched.snapshot, opportunities, gas_price, mode, self.config)
        except Exception as e:
            log.error(f"Scan cycle {cycle} failed: {e}", exc_info=True)
            ctx.state = ScanState.IDLE
            self._publish(ScanPhase.FAILED)
            return False
        except BaseException:
            # cancelled mid-flight: prior results stay, next trigger must run
            log.warning(f"Scan cycle {cycle} cancelled")
            ctx.state = ScanState.IDLE
            raise

        if generation != ctx.generation:
            log.info(
                f"Scan cycle {cycle} discarded after mode switch",
                extra={"context": {"current_mode": ctx.mode.value}},
            )
            ctx.state = ScanState.IDLE
            return False

        ctx.result = ScanResult(
            snapshot=fetched.snapshot,
            opportunities=tuple(opportunities),
            metrics=metrics,
            is_live=fetched.is_live,
            error_kind=fetched.error_kind,
            last_updated=scan_time,
            cycle=cycle,
        )
        self._transition(ScanState.DONE)
        self._publish(ScanPhase.COMPLETE)
        self._transition(ScanState.IDLE)

        log.info(
            f"Scan cycle {cycle} complete",
            extra={"context": {
                "is_live": fetched.is_live,
                "opportunities": len(opportunities),
                "potential_profit": str(metrics.potential_profit),
            }},
        )
        return True


def _clean(credentials: Optional[str]) -> Optional[str]:
    if credentials is None or not credentials.strip():
        return None
    return credentials.strip()
