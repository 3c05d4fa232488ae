"""Structured logging for DocTalk.

Log records carry request context (namespace, folder, file) as ``ctx_*``
attributes, set through :func:`log_context`. The JSON formatter groups them
under a ``context`` object and scrubs bearer tokens and API keys from the
message, since Drive and model errors often echo request headers or URLs.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Any

import orjson

CONTEXT_PREFIX = "ctx_"
_REDACTED = "[redacted]"
_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    re.compile(r"((?:access_token|api_key|key|token)=)[^&\s\"']+", re.IGNORECASE),
)


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra=`` mapping; ``None`` values are left out."""
    return {f"{CONTEXT_PREFIX}{key}": value for key, value in fields.items() if value is not None}


def redact(message: str) -> str:
    for pattern in _SECRET_PATTERNS:
        message = pattern.sub(rf"\g<1>{_REDACTED}", message)
    return message


class JsonFormatter(logging.Formatter):
    """One JSON object per record, context fields nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        context = {
            key[len(CONTEXT_PREFIX) :]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        return orjson.dumps(payload, default=str).decode("utf-8")


class TextFormatter(logging.Formatter):
    """Human-readable lines with context appended as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = redact(super().format(record))
        pairs = " ".join(
            f"{key[len(CONTEXT_PREFIX) :]}={value}"
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        )
        return f"{line} [{pairs}]" if pairs else line


def configure_logging(level: str | int | None = None, use_json: bool | None = None) -> None:
    """Install a single stdout handler on the root logger.

    ``DOCTALK_LOG_LEVEL`` and ``DOCTALK_LOG_JSON`` are read when the
    arguments are omitted.
    """
    if level is None:
        level = os.environ.get("DOCTALK_LOG_LEVEL", "INFO").upper()
    if use_json is None:
        use_json = os.environ.get("DOCTALK_LOG_JSON", "1").lower() not in {"0", "false", "no"}
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if use_json else TextFormatter())
    root.handlers = [handler]
    # urllib3 logs full request URLs at debug level.
    logging.getLogger("urllib3").setLevel(max(logging.INFO, root.level))


def get_logger(name: str = "doctalk") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = [
    "JsonFormatter",
    "TextFormatter",
    "configure_logging",
    "get_logger",
    "log_context",
    "redact",
]
