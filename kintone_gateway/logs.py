"""Logging setup with an allow-list of structured fields.

Only the keys in :data:`ALLOWED_FIELDS` ever reach a log line.  Payloads,
tool parameters and configuration values are not on the list.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

ALLOWED_FIELDS: frozenset[str] = frozenset(
    {
        "envelope",
        "variant",
        "tool",
        "raw_tool",
        "success",
        "error_kind",
        "error_code",
        "duration_ms",
        "request_id",
        "signals",
        "status",
    }
)

_HANDLER_NAME = "kintone_gateway"


def log_fields(**fields: Any) -> dict[str, Any]:
    """Filter ``fields`` down to the allow-list, for use as ``extra=``."""
    return {key: value for key, value in fields.items() if key in ALLOWED_FIELDS}


class StructuredFormatter(logging.Formatter):
    """Appends allow-listed ``extra`` fields to the message as compact JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {key: getattr(record, key) for key in ALLOWED_FIELDS if hasattr(record, key)}
        if not fields:
            return base
        return f"{base} {json.dumps(fields, sort_keys=True, default=str, separators=(',', ':'))}"


def configure_logging(level: str | int = "INFO") -> None:
    """Install the structured stderr handler on the package logger once."""
    logger = logging.getLogger("kintone_gateway")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(StructuredFormatter("%(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
