"""kintone-gateway error hierarchy."""

from __future__ import annotations

from enum import Enum
from typing import Any

from kintone_gateway.status_codes import HttpStatus, JsonRpcCode


class ErrorCategory(str, Enum):
    CONFIG = "config"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    INTERNAL = "internal"

    @property
    def wire_name(self) -> str:
        """Name used for ``errorKind`` in rendered outcomes."""
        return _WIRE_NAMES[self]


_WIRE_NAMES = {
    ErrorCategory.CONFIG: "Config",
    ErrorCategory.VALIDATION: "Validation",
    ErrorCategory.NOT_FOUND: "NotFound",
    ErrorCategory.UPSTREAM: "Upstream",
    ErrorCategory.INTERNAL: "Internal",
}


def _default_rpc_code(category: ErrorCategory) -> JsonRpcCode:
    mapping = {
        ErrorCategory.CONFIG: JsonRpcCode.INTERNAL_ERROR,
        ErrorCategory.VALIDATION: JsonRpcCode.INVALID_PARAMS,
        ErrorCategory.NOT_FOUND: JsonRpcCode.METHOD_NOT_FOUND,
        ErrorCategory.UPSTREAM: JsonRpcCode.INTERNAL_ERROR,
        ErrorCategory.INTERNAL: JsonRpcCode.INTERNAL_ERROR,
    }
    return mapping[category]


def _default_http_status(category: ErrorCategory) -> HttpStatus:
    mapping = {
        ErrorCategory.CONFIG: HttpStatus.INTERNAL_ERROR,
        ErrorCategory.VALIDATION: HttpStatus.BAD_REQUEST,
        ErrorCategory.NOT_FOUND: HttpStatus.BAD_REQUEST,
        # Upstream failures are business failures of a tool that did run.
        ErrorCategory.UPSTREAM: HttpStatus.OK,
        ErrorCategory.INTERNAL: HttpStatus.INTERNAL_ERROR,
    }
    return mapping[category]


class ToolError(Exception):
    """Base error for every failure the gateway knows how to render."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        details: dict[str, Any] | None = None,
        rpc_code: JsonRpcCode | int | None = None,
        http_status: HttpStatus | int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}
        resolved_rpc = rpc_code if rpc_code is not None else _default_rpc_code(category)
        self.rpc_code = int(resolved_rpc)
        resolved_status = http_status if http_status is not None else _default_http_status(category)
        self.http_status = int(resolved_status)

    @property
    def is_internal(self) -> bool:
        return self.category in (ErrorCategory.CONFIG, ErrorCategory.INTERNAL)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "category": self.category.value,
            "details": self.details,
        }


class ConfigError(ToolError):
    """E1xxx: Required configuration is missing or malformed."""

    def __init__(
        self,
        message: str,
        code: str = "E1000",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, category=ErrorCategory.CONFIG, details=details)


class ValidationError(ToolError):
    """E2xxx: Tool parameters or request body failed validation."""

    def __init__(
        self,
        message: str,
        code: str = "E2000",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, category=ErrorCategory.VALIDATION, details=details)


class NotFoundError(ToolError):
    """E3xxx: Unknown, unimplemented, or missing tool id."""

    def __init__(
        self,
        message: str,
        code: str = "E3000",
        details: dict[str, Any] | None = None,
        rpc_code: JsonRpcCode | int | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            category=ErrorCategory.NOT_FOUND,
            details=details,
            rpc_code=rpc_code,
        )


class UpstreamError(ToolError):
    """E4xxx: The record store rejected or failed a call."""

    def __init__(
        self,
        message: str,
        code: str = "E4000",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, category=ErrorCategory.UPSTREAM, details=details)


class InternalError(ToolError):
    """E5xxx: Uncaught exceptions."""

    def __init__(
        self,
        message: str,
        code: str = "E5000",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, category=ErrorCategory.INTERNAL, details=details)


def tool_not_specified() -> NotFoundError:
    """Failure for a request that carries no extractable tool id."""
    return NotFoundError(
        "tool not specified",
        code="E3001",
        rpc_code=JsonRpcCode.INVALID_PARAMS,
    )
