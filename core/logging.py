"""
Structured JSON logging for ARBSCOPE.

All contextual fields are passed only via extra={"context": {...}}.

Context values under credential-like keys are masked before any handler
sees them; the market-data API key must never reach a log line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional, Union

REDACTED = "***"
SECRET_CONTEXT_KEYS = frozenset({"api_key", "credentials", "token_secret", "x-cmc_pro_api_key"})


def redact_context(context: dict) -> dict:
    """Copy of context with secret values masked (nested dicts included)."""
    clean = {}
    for key, value in context.items():
        if str(key).lower() in SECRET_CONTEXT_KEYS and value:
            clean[key] = REDACTED
        elif isinstance(value, dict):
            clean[key] = redact_context(value)
        else:
            clean[key] = value
    return clean


class RedactingFilter(logging.Filter):
    """Masks secret context values on every record passing a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = redact_context(context)
        return True


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger with bound context (e.g. mode and cycle of one scan).

    Per-call context wins over bound context on key clashes.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **(extra.get("context") or {})}
        kwargs["extra"] = extra
        return msg, kwargs


class StructuredFormatter(logging.Formatter):
    """JSON lines: timestamp, level, logger, message, context, exception."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """One line per record; at most three context fields."""

    max_context_fields = 3

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{stamp} | {record.levelname:<9} | {record.name} | {record.getMessage()}"

        context = getattr(record, "context", None)
        if context:
            items = list(context.items())
            shown = ", ".join(f"{k}={v}" for k, v in items[:self.max_context_fields])
            hidden = len(items) - self.max_context_fields
            if hidden > 0:
                shown += f", ... (+{hidden} more)"
            line += f" | {shown}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger for a scanner process.

    Args:
        level: Logging level (int or name such as "DEBUG")
        log_file: Optional file path for log output (always JSON)
        json_format: JSON lines on stdout instead of console lines
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if json_format else ConsoleFormatter())
    handlers: list[logging.Handler] = [console]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.addFilter(RedactingFilter())

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs every request (URL included) at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> Union[logging.Logger, ContextAdapter]:
    """
    Get a logger; with keyword context, an adapter that adds it to every record.

    Example:
        log = get_logger(__name__, mode="CEX", cycle=3)
        log.info("Scan complete", extra={"context": {"opportunities": 2}})
    """
    logger = logging.getLogger(name)
    if context:
        return ContextAdapter(logger, context)
    return logger
