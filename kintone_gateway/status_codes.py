"""Central response-code taxonomy for kintone-gateway."""

from __future__ import annotations

from enum import IntEnum


class HttpStatus(IntEnum):
    """HTTP status codes used by the HTTP-shaped envelopes."""

    OK = 200
    BAD_REQUEST = 400
    INTERNAL_ERROR = 500


class JsonRpcCode(IntEnum):
    """JSON-RPC 2.0 error codes emitted for protocol failures."""

    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
