from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from bucketman.config.env import parse_bool


DEFAULT_SERVICE = "bucketman"
NOISY_LOGGERS = ("botocore", "boto3", "urllib3")
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class _ServiceFormatter(logging.Formatter):
    """Shared record flattening for the JSON and text output."""

    def __init__(self, service: str = DEFAULT_SERVICE) -> None:
        super().__init__()
        self.service = service

    def fields(self, record: logging.LogRecord) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return the fixed fields and the caller-supplied extras of a record."""
        fixed = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }
        extras = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and not k.startswith("_")}
        return fixed, extras


class JsonFormatter(_ServiceFormatter):
    """One JSON object per line; extras land under "context"."""

    def format(self, record: logging.LogRecord) -> str:
        payload, extras = self.fields(record)
        if extras:
            payload["context"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(_ServiceFormatter):
    def format(self, record: logging.LogRecord) -> str:
        fixed, extras = self.fields(record)
        line = "{timestamp} {level} {logger} service={service} {message}".format(**fixed)
        if extras:
            line += " " + " ".join(f"{key}={value!r}" for key, value in sorted(extras.items()))
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str | None = None, service: str = DEFAULT_SERVICE, stream: TextIO | None = None) -> None:
    """Install a single handler on the root logger.

    Meant for the hosting application; bucketman modules only call get_logger.
    LOG_LEVEL picks the level when none is given, LOG_JSON switches to JSON lines.
    """
    resolved_level = logging.getLevelName((level or os.getenv("LOG_LEVEL") or "INFO").upper())
    if not isinstance(resolved_level, int):
        resolved_level = logging.INFO
    formatter_type = JsonFormatter if parse_bool(os.getenv("LOG_JSON")) else TextFormatter

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(formatter_type(service))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(resolved_level)
    # boto's debug output drowns everything else
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(resolved_level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def with_context(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    """Logger that stamps every record with the given context fields."""
    return logging.LoggerAdapter(logger, extra=context)
