# PATH: tests/unit/test_cli.py
"""
CLI tests (click CliRunner, simulated data only).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from click.testing import CliRunner

from config.credentials import API_KEY_ENV
from strategy.analyzers import RemoteAnalyzer, RuleBasedAnalyzer
from strategy.config import ScannerConfig
from strategy.jobs import run_scan, set_api_key


@pytest.fixture
def quiet_cli(monkeypatch, tmp_path):
    """No global logging reconfiguration, no real .env, no pending shutdown."""
    monkeypatch.setattr(run_scan, "setup_logging", MagicMock())
    monkeypatch.setattr(set_api_key, "setup_logging", MagicMock())
    monkeypatch.setattr(run_scan, "_shutdown_requested", False)
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestRunScan:
    """run_scan entrypoint."""

    def test_once_writes_report(self, quiet_cli):
        output_dir = quiet_cli / "reports"
        result = CliRunner().invoke(
            run_scan.main, ["--mode", "dex", "--once", "--output-dir", str(output_dir)],
        )

        assert result.exit_code == 0, result.output
        assert "SCAN REPORT (DEX)" in result.output
        assert "Source: SIMULATED" in result.output
        assert len(list(output_dir.glob("scan_dex_*.json"))) == 1

    def test_invalid_config_exits_1(self, quiet_cli):
        bad = quiet_cli / "bad.yaml"
        bad.write_text("thresholds: [1, 2]\n", encoding="utf-8")

        result = CliRunner().invoke(run_scan.main, ["--once", "--config", str(bad)])

        assert result.exit_code == 1

    def test_unknown_mode_rejected(self, quiet_cli):
        result = CliRunner().invoke(run_scan.main, ["--mode", "otc", "--once"])
        assert result.exit_code == 2


class TestBuildOrchestrator:
    """Analyzer selection."""

    def test_rule_based_by_default(self):
        orchestrator = run_scan.build_orchestrator(ScannerConfig(), "CEX", None)
        assert isinstance(orchestrator.detector.analyzer, RuleBasedAnalyzer)
        assert orchestrator.context.credentials is None

    def test_remote_when_url_configured(self):
        config = ScannerConfig()
        config.analysis.remote_url = "https://analysis.test/score"
        orchestrator = run_scan.build_orchestrator(config, "DEX", "key")
        assert isinstance(orchestrator.detector.analyzer, RemoteAnalyzer)
        assert orchestrator.context.credentials == "key"


class TestScanLoop:
    """Cycle accounting."""

    @pytest.mark.asyncio
    async def test_counts_published_cycles(self, monkeypatch, tmp_path):
        monkeypatch.setattr(run_scan, "_shutdown_requested", False)
        report = MagicMock()
        monkeypatch.setattr(run_scan, "report_cycle", report)
        orchestrator = MagicMock()
        orchestrator.scan = AsyncMock(side_effect=[True, False, True])

        published = await run_scan.scan_loop(orchestrator, 0, tmp_path, max_cycles=3)

        assert published == 2
        assert report.call_count == 2
        assert orchestrator.scan.await_count == 3

    @pytest.mark.asyncio
    async def test_stops_on_shutdown(self, monkeypatch, tmp_path):
        monkeypatch.setattr(run_scan, "report_cycle", MagicMock())
        orchestrator = MagicMock()

        async def scan():
            run_scan.handle_shutdown(15, None)
            return True

        orchestrator.scan = scan
        monkeypatch.setattr(run_scan, "_shutdown_requested", False)

        assert await run_scan.scan_loop(orchestrator, 60000, tmp_path) == 1


class TestSetApiKey:
    """set_api_key entrypoint."""

    def test_save_and_clear(self, quiet_cli):
        env_file = quiet_cli / ".env"
        runner = CliRunner()

        result = runner.invoke(set_api_key.main, ["abc123", "--env-file", str(env_file)])
        assert result.exit_code == 0, result.output
        assert "saved" in result.output
        assert "abc123" in env_file.read_text(encoding="utf-8")

        result = runner.invoke(set_api_key.main, ["--clear", "--env-file", str(env_file)])
        assert result.exit_code == 0
        assert "cleared" in result.output
        assert "abc123" not in env_file.read_text(encoding="utf-8")
