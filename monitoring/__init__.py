# PATH: monitoring/__init__.py
"""
Monitoring package for ARBSCOPE.

Stable import contract:
- ScanReport, build_scan_metrics, build_scan_report, save_scan_report,
  print_scan_report
- build_playback, print_playback
"""

from monitoring.execution_log import build_playback, print_playback
from monitoring.scan_report import (
    ScanReport,
    build_scan_metrics,
    build_scan_report,
    classify_network_status,
    print_scan_report,
    save_scan_report,
)

__all__ = [
    "ScanReport",
    "build_playback",
    "build_scan_metrics",
    "build_scan_report",
    "classify_network_status",
    "print_playback",
    "print_scan_report",
    "save_scan_report",
]
