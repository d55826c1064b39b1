"""Envelope-specific response rendering."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from kintone_gateway.detect import ClassifiedRequest, EnvelopeKind
from kintone_gateway.outcome import ToolOutcome
from kintone_gateway.status_codes import HttpStatus

JSON_HEADERS = {"Content-Type": "application/json"}

Renderer = Callable[[ClassifiedRequest, ToolOutcome], Any]


def to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def render_jsonrpc(request: ClassifiedRequest, outcome: ToolOutcome) -> dict[str, Any]:
    """JSON-RPC 2.0 reply.

    Tool-level failures stay inside ``result`` with ``isError`` set; requests
    that never reached a tool become a JSON-RPC ``error``.
    """
    error = outcome.error
    if error is not None and error.is_protocol_failure:
        body: dict[str, Any] = {"code": error.rpc_code, "message": error.message}
        if error.details:
            body["data"] = error.details
        return {"jsonrpc": "2.0", "id": request.request_id, "error": body}
    return {
        "jsonrpc": "2.0",
        "id": request.request_id,
        "result": {
            "isError": not outcome.success,
            "content": [{"type": "text", "text": to_json(outcome.to_dict())}],
        },
    }


def render_http(request: ClassifiedRequest, outcome: ToolOutcome) -> dict[str, Any]:
    status = HttpStatus.OK if outcome.error is None else outcome.error.http_status
    return {
        "statusCode": int(status),
        "headers": dict(JSON_HEADERS),
        "body": to_json(outcome.to_dict()),
    }


def render_plain(request: ClassifiedRequest, outcome: ToolOutcome) -> dict[str, Any]:
    return outcome.to_dict()


RENDERERS: dict[EnvelopeKind, Renderer] = {
    EnvelopeKind.JSONRPC_CALL: render_jsonrpc,
    EnvelopeKind.GATEWAY_MANAGED: render_http,
    EnvelopeKind.LEGACY_OPERATION_ID: render_http,
    EnvelopeKind.LEGACY_PREFIXED_NAME: render_http,
    EnvelopeKind.HTTP_PROXY: render_http,
    EnvelopeKind.QUEUE_MESSAGE: render_plain,
    EnvelopeKind.EVENT_BUS: render_plain,
    EnvelopeKind.DIRECT_INVOKE: render_plain,
    EnvelopeKind.EMPTY_PAYLOAD: render_plain,
}


def render(request: ClassifiedRequest, outcome: ToolOutcome) -> Any:
    """Wrap ``outcome`` in the response shape expected by ``request.kind``."""
    return RENDERERS[request.kind](request, outcome)
