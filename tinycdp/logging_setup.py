"""Logging setup for the tinycdp CLI.

Text or JSON log lines on stderr, with --quiet and --verbose handling.
Named logging_setup.py to avoid shadowing the standard logging module.
"""

import sys
import json
import logging
from typing import Optional, Dict, Any, TextIO, Union
from datetime import datetime, timezone

PACKAGE_LOGGER = "tinycdp"


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line.

    Example output:
        {"timestamp": "2026-10-19T09:30:00.123000+00:00", "level": "INFO",
         "logger": "tinycdp.transport", "message": "CDP connection established"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_data["context"] = context

        if record.levelno == logging.DEBUG:
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log lines.

    Example output:
        2026-10-19 09:30:00 [INFO] tinycdp.transport: CDP connection established
    """

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def resolve_level(level: Optional[str] = None, quiet: bool = False, verbose: bool = False) -> int:
    """Pick the effective level: quiet > verbose > explicit level > INFO."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(
    format_type: str = "text",
    level: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure the root logger for CLI use.

    Args:
        format_type: "json" or "text"
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
        quiet: Only errors
        verbose: Debug output, including websockets frame logging
        stream: Destination (default: sys.stderr)
    """
    log_level = resolve_level(level, quiet, verbose)

    formatter: Union[JSONFormatter, TextFormatter]
    if format_type == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)
    # websockets logs every frame at DEBUG; keep it out unless asked for
    logging.getLogger("websockets").setLevel(
        logging.DEBUG if verbose else max(log_level, logging.WARNING)
    )


def log_with_context(
    logger: logging.Logger, level: int, message: str, **context
) -> None:
    """Log message with structured context fields.

    Example:
        log_with_context(logger, logging.INFO, "Browser launched",
                         pid=4242, ws_url="ws://127.0.0.1:9222/...")
    """
    if context:
        logger.log(level, message, extra={"context": context})
    else:
        logger.log(level, message)
