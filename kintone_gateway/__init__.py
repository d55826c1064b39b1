"""kintone-gateway: kintone record tools behind a multi-envelope Lambda entry point."""

from __future__ import annotations

from kintone_gateway.detect import ClassifiedRequest, EnvelopeKind, classify_envelope
from kintone_gateway.handler import handle, lambda_handler
from kintone_gateway.outcome import OutcomeError, ToolOutcome
from kintone_gateway.resolve import resolve_tool_id

__version__ = "0.3.0"
__all__ = [
    "ClassifiedRequest",
    "EnvelopeKind",
    "OutcomeError",
    "ToolOutcome",
    "classify_envelope",
    "handle",
    "lambda_handler",
    "resolve_tool_id",
]
