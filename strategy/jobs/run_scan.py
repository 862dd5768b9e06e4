#!/usr/bin/env python3
"""
strategy/jobs/run_scan.py - CLI entrypoint for arbitrage scanning.

Features:
- Live market data when an API key is configured, simulation otherwise
- CROSS_ORIGIN_BLOCKED advisory when the provider is unreachable
- Rule-based scoring, or a remote analysis endpoint (--analyzer-url)
- Scan report per cycle: printed and saved as JSON
- Optional scripted execution playback for the top opportunity

Usage:
    python -m strategy.jobs.run_scan --mode cex --once
    python -m strategy.jobs.run_scan --mode dex --interval 30000 --cycles 10
"""

import asyncio
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from config.credentials import CredentialStore
from core.constants import Mode
from core.exceptions import ConfigError
from core.logging import get_logger, setup_logging
from monitoring.execution_log import build_playback, print_playback
from monitoring.scan_report import build_scan_report, print_scan_report, save_scan_report
from strategy.analyzers import RemoteAnalyzer
from strategy.config import ScannerConfig, load_scanner_config
from strategy.detector import OpportunityDetector
from strategy.orchestrator import ScanOrchestrator, ScanPhase

logger = get_logger("arbscope.scan")

# Graceful shutdown flag
_shutdown_requested = False


def handle_shutdown(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    global _shutdown_requested
    _shutdown_requested = True
    logger.info("Shutdown requested", extra={"context": {"signal": signum}})


def log_phase(phase: ScanPhase) -> None:
    if phase == ScanPhase.FAILED:
        logger.warning("Scan failed; keeping previous results")
    else:
        logger.debug(f"Phase: {phase.value}")


def build_orchestrator(
    config: ScannerConfig,
    mode: Mode,
    api_key: Optional[str],
) -> ScanOrchestrator:
    """Wire PriceSource, detector (rule-based or remote) and orchestrator."""
    analyzer = RemoteAnalyzer(config.analysis) if config.analysis.remote_url else None
    detector = OpportunityDetector(config, analyzer)
    return ScanOrchestrator(config, detector=detector, mode=mode, credentials=api_key)


def report_cycle(orchestrator: ScanOrchestrator, output_dir: Path, playback: bool) -> None:
    """Print and save the report for the orchestrator's current results."""
    ctx = orchestrator.context
    report = build_scan_report(
        mode=ctx.mode,
        snapshot=ctx.snapshot,
        opportunities=ctx.opportunities,
        metrics=ctx.metrics,
        is_live=ctx.is_live,
        error_kind=ctx.error_kind,
        cycle=ctx.result.cycle,
        timestamp=ctx.last_updated,
    )
    save_scan_report(report, output_dir)
    print_scan_report(report)

    if playback and ctx.opportunities:
        print_playback(build_playback(ctx.opportunities[0]))


async def scan_loop(
    orchestrator: ScanOrchestrator,
    interval_ms: int,
    output_dir: Path,
    playback: bool = False,
    max_cycles: int = 0,
) -> int:
    """
    Continuous scanning loop.

    Returns:
        Number of cycles that published results
    """
    cycle_count = 0
    published = 0

    while not _shutdown_requested:
        cycle_count += 1
        logger.info(f"=== Scan Cycle {cycle_count} ===")

        if await orchestrator.scan():
            published += 1
            report_cycle(orchestrator, output_dir, playback)

        if max_cycles and cycle_count >= max_cycles:
            break
        if not _shutdown_requested:
            await asyncio.sleep(interval_ms / 1000)

    logger.info("Scan loop terminated", extra={"context": {"cycles": cycle_count, "published": published}})
    return published


@click.command()
@click.option("--mode", "-m", default="cex", type=click.Choice(["cex", "dex"], case_sensitive=False),
              help="Venue family to scan")
@click.option("--interval", "-i", default=30000, help="Scan interval in milliseconds")
@click.option("--once", is_flag=True, help="Run single scan cycle and exit")
@click.option("--cycles", "-n", default=0, help="Stop after N cycles (0 = until interrupted)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Scanner config YAML (default: config/scanner.yaml)")
@click.option("--api-key", envvar="CMC_API_KEY", default=None,
              help="Market-data API key (default: CMC_API_KEY / .env)")
@click.option("--analyzer-url", default=None, help="Remote analysis endpoint (default: rule-based)")
@click.option("--output-dir", "-o", default="data/reports")
@click.option("--log-level", "-l", default="INFO", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]))
@click.option("--json-logs/--no-json-logs", default=False)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write JSON logs to this file")
@click.option("--playback/--no-playback", default=False, help="Show scripted execution of the top opportunity")
def main(
    mode: str,
    interval: int,
    once: bool,
    cycles: int,
    config_path: Optional[str],
    api_key: Optional[str],
    analyzer_url: Optional[str],
    output_dir: str,
    log_level: str,
    json_logs: bool,
    log_file: Optional[str],
    playback: bool,
) -> None:
    """ARBSCOPE Scanner - cross-venue arbitrage detection (no execution)."""
    setup_logging(level=log_level, log_file=log_file, json_format=json_logs)

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    try:
        config = load_scanner_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    if analyzer_url:
        config.analysis = replace(config.analysis, remote_url=analyzer_url)

    if not api_key:
        api_key = CredentialStore().load()

    scan_mode = Mode(mode.upper())
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    orchestrator = build_orchestrator(config, scan_mode, api_key)
    orchestrator.on_phase(log_phase)

    logger.info(
        "Starting ARBSCOPE Scanner",
        extra={"context": {
            "mode": scan_mode.value,
            "live": bool(api_key),
            "analyzer": "remote" if config.analysis.remote_url else "rule_based",
            "once": once,
        }},
    )

    try:
        asyncio.run(scan_loop(
            orchestrator,
            interval,
            output_path,
            playback=playback,
            max_cycles=1 if once else cycles,
        ))
    except KeyboardInterrupt:
        logger.info("Scanner interrupted")
    except Exception as e:
        logger.error(f"Scanner error: {e}", exc_info=True)
        sys.exit(1)

    logger.info("Scanner stopped", extra={"context": orchestrator.context.to_dict()})


if __name__ == "__main__":
    main()
