# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Structured logging configuration for PersonaPass.

Provides:
- JSON formatter for production (machine-parseable)
- Colour formatter for terminals (human-readable)
- Correlation IDs so one route resolution or proxy call can be traced
- Redaction of signatures, TOTP secrets and tokens before they hit a log
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Keys whose values never appear in logs.
SENSITIVE_KEYS = {
    "signature",
    "secret",
    "qr_code",
    "backup_codes",
    "code",
    "token",
    "access_token",
    "accesstoken",
    "api_key",
    "authorization",
    "password",
}


def get_correlation_id() -> str | None:
    """Return the correlation ID bound to the current context, if any."""
    return _correlation_id.get()


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
) -> Generator[str, None, None]:
    """Bind a correlation ID for the duration of a block.

    Args:
        correlation_id: ID to bind. A fresh UUID is generated when omitted.

    Yields:
        The correlation ID in effect.

    Example:
        with correlation_context() as cid:
            logger.info("Resolving route")  # carries cid
    """
    cid = correlation_id or str(uuid.uuid4())
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


def redact(data: Any) -> Any:
    """Return a copy of ``data`` with sensitive values masked.

    Dict keys are matched case-insensitively against :data:`SENSITIVE_KEYS`.
    Long strings are truncated.
    """
    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            if str(key).lower() in SENSITIVE_KEYS:
                result[key] = "[REDACTED]"
            else:
                result[key] = redact(value)
        return result
    elif isinstance(data, list):
        return [redact(item) for item in data]
    elif isinstance(data, str) and len(data) > 500:
        return data[:500] + "..."
    return data


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production environments.

    Produces one JSON object per line with timestamp, level, logger and
    message, plus the correlation ID when one is bound.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = redact(record.extra_data)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable formatter with optional colour for TTY output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so other handlers see the untouched record
        record = logging.makeLogRecord(record.__dict__)

        correlation_id = get_correlation_id()
        if correlation_id:
            record.msg = f"[{correlation_id[:8]}] {record.msg}"

        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


# Third-party loggers that are noisy at DEBUG/INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def _wants_json(log_format: str) -> bool:
    """``json``/``text`` force a format; anything else means JSON unless on a TTY."""
    choice = log_format.strip().lower()
    if choice in ("json", "text"):
        return choice == "json"
    return not sys.stderr.isatty()


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure root logging for PersonaPass processes.

    Args:
        level: Log level; defaults to ``PERSONAPASS_LOG_LEVEL``.
        json_format: Force JSON (True) or text (False). When None, the
            ``PERSONAPASS_LOG_FORMAT`` setting decides, falling back to JSON
            whenever stderr is not a terminal.
        log_file: Optional file that receives JSON log lines.
    """
    from .config import get_config

    config = get_config()

    resolved_level = config.log_level if level is None else level
    if isinstance(resolved_level, str):
        resolved_level = logging.getLevelName(resolved_level.upper())
        if not isinstance(resolved_level, int):
            resolved_level = logging.INFO

    use_json = _wants_json(config.log_format) if json_format is None else json_format
    target_file = log_file if log_file is not None else config.log_file

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(JSONFormatter() if use_json else StandardFormatter())
    handlers: list[logging.Handler] = [stderr_handler]
    if target_file:
        to_file = logging.FileHandler(target_file)
        to_file.setFormatter(JSONFormatter())
        handlers.append(to_file)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(resolved_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
