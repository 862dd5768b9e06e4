# PATH: core/exceptions.py
"""
Typed exceptions for ARBSCOPE.

Infra errors (provider, network, analyzer transport) are kept apart from
data errors (schema violations) so callers can decide what to recover.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Machine-readable error codes."""
    # Market-data provider
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_BAD_STATUS = "PROVIDER_BAD_STATUS"
    PROVIDER_MALFORMED = "PROVIDER_MALFORMED"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    NETWORK_BLOCKED = "NETWORK_BLOCKED"

    # Analysis
    ANALYZER_UNAVAILABLE = "ANALYZER_UNAVAILABLE"
    ANALYSIS_SCHEMA_VIOLATION = "ANALYSIS_SCHEMA_VIOLATION"

    # Configuration
    CONFIG_INVALID = "CONFIG_INVALID"

    UNKNOWN = "UNKNOWN"


class ArbError(Exception):
    """Base exception for ARBSCOPE."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"


class InfraError(ArbError):
    """Infrastructure-related errors (HTTP, timeouts, transport)."""
    pass


class ProviderUnavailable(InfraError):
    """
    Non-network provider failure: bad status, malformed payload, timeout.

    Always recovered inside PriceSource.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_UNAVAILABLE,
        details: Optional[dict] = None,
    ):
        super().__init__(message, code, details)


class NetworkBlocked(InfraError):
    """Request failed below HTTP (no status at all), e.g. a blocked origin."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.NETWORK_BLOCKED, details)


class AnalyzerUnavailable(InfraError):
    """Remote analysis endpoint could not be reached."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.ANALYZER_UNAVAILABLE, details)


class AnalysisSchemaViolation(ArbError):
    """Scoring output failed validation; the whole scan result is discarded."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.ANALYSIS_SCHEMA_VIOLATION, details)


class ConfigError(ArbError):
    """Configuration file could not be interpreted."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, details)
