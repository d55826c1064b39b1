"""Uniform tool outcome types.

``ToolOutcome`` is what every tool handler produces before envelope-specific
rendering::

    {"success": true, "data": ...}
    {"success": false, "error": "...", "errorKind": "Upstream"}

``OutcomeError`` keeps the structured side of a failure (category, code,
response codes) so the renderer never has to look at exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dc_field
from datetime import datetime, timezone
from typing import Any

from kintone_gateway.errors import ErrorCategory, ToolError


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class OutcomeError:
    """Structured failure carried by a ``ToolOutcome``."""

    message: str
    category: ErrorCategory
    code: str
    rpc_code: int
    http_status: int
    details: dict[str, Any] = dc_field(default_factory=dict)
    timestamp: str | None = None

    @property
    def kind(self) -> str:
        return self.category.wire_name

    @property
    def is_protocol_failure(self) -> bool:
        """True when the tool never ran (bad request, unknown tool, crash)."""
        return self.category is not ErrorCategory.UPSTREAM

    @classmethod
    def from_tool_error(cls, err: ToolError) -> OutcomeError:
        return cls(
            message=err.message,
            category=err.category,
            code=err.code,
            rpc_code=err.rpc_code,
            http_status=err.http_status,
            details=dict(err.details),
            timestamp=_utc_timestamp() if err.is_internal else None,
        )


@dataclass(frozen=True)
class ToolOutcome:
    """Result of one tool invocation."""

    success: bool
    data: Any = None
    error: OutcomeError | None = None

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape of the outcome, as embedded in every envelope."""
        if self.success:
            return {"success": True, "data": self.data}
        if self.error is None:
            return {"success": False, "error": "unknown error", "errorKind": "Internal"}
        payload: dict[str, Any] = {
            "success": False,
            "error": self.error.message,
            "errorKind": self.error.kind,
        }
        if self.error.details:
            payload["details"] = self.error.details
        if self.error.timestamp is not None:
            payload["timestamp"] = self.error.timestamp
        return payload

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def ok(cls, data: Any) -> ToolOutcome:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: OutcomeError) -> ToolOutcome:
        return cls(success=False, error=error)

    @classmethod
    def from_tool_error(cls, err: ToolError) -> ToolOutcome:
        return cls.failure(OutcomeError.from_tool_error(err))
