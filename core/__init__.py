"""
core - Core utilities and models for ARBSCOPE.

This package contains:
- models.py: Data models (VenuePrice, MarketSnapshot, Opportunity, ScanMetrics)
- constants.py: Enums, venue allow-lists and scoring defaults
- exceptions.py: Typed exceptions with error codes
- math.py: Safe Decimal utilities (no float money)
- time.py: Timestamp parsing and freshness scoring
- validators.py: Analyzer output validation
- logging.py: Structured JSON logging
"""

from core.constants import (
    Action,
    ErrorKind,
    Mode,
    NetworkStatus,
    RiskLevel,
    VENUE_ALLOW_LIST,
    venues_for,
)
from core.exceptions import (
    AnalysisSchemaViolation,
    AnalyzerUnavailable,
    ArbError,
    ConfigError,
    ErrorCode,
    InfraError,
    NetworkBlocked,
    ProviderUnavailable,
)
from core.logging import get_logger, setup_logging
from core.models import (
    ExecutionLog,
    FetchResult,
    MarketSnapshot,
    Opportunity,
    ScanMetrics,
    TokenMarket,
    VenuePrice,
    Verdict,
)

__all__ = [
    # Constants
    "Action",
    "ErrorKind",
    "Mode",
    "NetworkStatus",
    "RiskLevel",
    "VENUE_ALLOW_LIST",
    "venues_for",
    # Exceptions
    "AnalysisSchemaViolation",
    "AnalyzerUnavailable",
    "ArbError",
    "ConfigError",
    "ErrorCode",
    "InfraError",
    "NetworkBlocked",
    "ProviderUnavailable",
    # Models
    "ExecutionLog",
    "FetchResult",
    "MarketSnapshot",
    "Opportunity",
    "ScanMetrics",
    "TokenMarket",
    "VenuePrice",
    "Verdict",
    # Logging
    "get_logger",
    "setup_logging",
]
