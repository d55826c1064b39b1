"""Envelope detection for incoming invocations.

Determines which calling convention produced a Lambda payload and pulls out
the raw tool id and raw parameters for it.  Shapes overlap (an HTTP-proxy
event may also carry ``name``, a gateway-managed call may carry anything at
the top level), so detection is an ordered list of pure predicates and the
first one that fires wins:

    1. gateway_managed       : client context ``custom.bedrockAgentCoreToolName``.
    2. empty_payload         : no keys at all; defaults to ``get-apps``.
    3. jsonrpc_call          : ``method == "tools/call"`` with ``params``.
    4. legacy_operation_id   : ``operationId`` or ``context.input``.
    5. legacy_prefixed_name  : ``name`` / ``toolName`` / ``tool_name`` carrying
                               the gateway-target prefix.
    6. queue_message         : ``Records[0].body`` holding JSON.
    7. http_proxy            : ``httpMethod`` or ``requestContext``.
    8. event_bus             : ``source == "aws.events"``.
    9. direct_invoke         : fallback, ``tool`` / ``params`` at top level.

Classification never fails.  A body that cannot be parsed is recorded on the
result as ``parse_error`` so the caller can still answer in the detected
envelope's format.

Public API
----------
classify_envelope(event, context)  -> ClassifiedRequest
CLASSIFIERS                        -> ordered (kind, predicate) pairs
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kintone_gateway.config import DEFAULT_TARGET_PREFIX
from kintone_gateway.errors import ValidationError
from kintone_gateway.resolve import DELIMITER

GATEWAY_TOOL_NAME_KEY = "bedrockAgentCoreToolName"
EVENT_BUS_SOURCE = "aws.events"
JSONRPC_TOOLS_CALL = "tools/call"
EMPTY_PAYLOAD_TOOL = "get-apps"
LEGACY_NAME_FIELDS = ("name", "toolName", "tool_name")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class EnvelopeKind(str, Enum):
    """Calling convention of a single invocation."""

    GATEWAY_MANAGED = "gateway_managed"
    EMPTY_PAYLOAD = "empty_payload"
    JSONRPC_CALL = "jsonrpc_call"
    LEGACY_OPERATION_ID = "legacy_operation_id"
    LEGACY_PREFIXED_NAME = "legacy_prefixed_name"
    QUEUE_MESSAGE = "queue_message"
    HTTP_PROXY = "http_proxy"
    EVENT_BUS = "event_bus"
    DIRECT_INVOKE = "direct_invoke"


@dataclass(frozen=True)
class ClassifiedRequest:
    """Structured result returned by :func:`classify_envelope`."""

    kind: EnvelopeKind

    raw_tool_id: str | None = None
    """Tool identifier exactly as found in the envelope."""

    raw_params: Any = field(default_factory=dict)
    """Argument object exactly as found in the envelope."""

    request_id: Any = 1
    """JSON-RPC request id (``1`` when the request carries none)."""

    variant: str | None = None
    """Field that matched for ``legacy_prefixed_name`` (``name``, ``toolName``, ``tool_name``)."""

    parse_error: ValidationError | None = None
    """Set when an embedded body could not be decoded."""

    signals: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _custom_context(context: Any) -> Mapping[str, Any]:
    """Vendor ``custom`` sub-object of the invocation context, if any."""
    if context is None:
        return {}
    if isinstance(context, Mapping):
        client_context = context.get("client_context") or context.get("clientContext")
    else:
        client_context = getattr(context, "client_context", None)
    if client_context is None:
        return {}
    if isinstance(client_context, Mapping):
        custom = client_context.get("custom")
    else:
        custom = getattr(client_context, "custom", None)
    return custom if isinstance(custom, Mapping) else {}


def _gateway_tool_name(context: Any) -> str | None:
    value = _custom_context(context).get(GATEWAY_TOOL_NAME_KEY)
    return value if value else None


def _decode_json_body(body: Any, *, base64_encoded: bool = False, what: str = "body") -> Mapping[str, Any]:
    """Turn an embedded request body into a mapping."""
    if body is None or body == "":
        return {}
    if isinstance(body, Mapping):
        return body
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(f"{what} is not valid UTF-8", code="E2002") from exc
    if not isinstance(body, str):
        raise ValidationError(f"{what} must be a JSON object", code="E2002")
    if base64_encoded:
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ValidationError(f"{what} is not valid base64", code="E2002") from exc
    try:
        decoded = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{what} is not valid JSON: {exc.msg}", code="E2002") from exc
    if not isinstance(decoded, Mapping):
        raise ValidationError(f"{what} must be a JSON object", code="E2002")
    return decoded


def _first_present(source: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def _fold_parameter_list(parameters: Any) -> Any:
    """Fold ``[{"name": k, "value": v}, ...]`` into ``{k: v}``; pass other shapes through."""
    if not isinstance(parameters, list):
        return parameters
    if not all(isinstance(item, Mapping) and "name" in item for item in parameters):
        return parameters
    return {item["name"]: item.get("value") for item in parameters}


def _params_or_empty(value: Any) -> Any:
    return {} if value is None else value


# ---------------------------------------------------------------------------
# Predicates, in priority order
# ---------------------------------------------------------------------------
# Each check returns a ClassifiedRequest when its envelope matches, else None.

Check = Callable[[Mapping[str, Any], Any, str], "ClassifiedRequest | None"]


def _check_gateway_managed(event: Any, context: Any, target_prefix: str) -> ClassifiedRequest | None:
    tool_name = _gateway_tool_name(context)
    if tool_name is None:
        return None
    return ClassifiedRequest(
        kind=EnvelopeKind.GATEWAY_MANAGED,
        raw_tool_id=tool_name,
        raw_params=dict(event) if isinstance(event, Mapping) else event,
        signals=["client_context.custom." + GATEWAY_TOOL_NAME_KEY],
    )


def _check_empty_payload(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    if len(event) != 0:
        return None
    return ClassifiedRequest(
        kind=EnvelopeKind.EMPTY_PAYLOAD,
        raw_tool_id=EMPTY_PAYLOAD_TOOL,
        raw_params={},
        signals=["no keys"],
    )


def _check_jsonrpc_call(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    if event.get("method") != JSONRPC_TOOLS_CALL or "params" not in event:
        return None
    request_id = event.get("id")
    params = event.get("params")
    if not isinstance(params, Mapping):
        return ClassifiedRequest(
            kind=EnvelopeKind.JSONRPC_CALL,
            request_id=1 if request_id is None else request_id,
            parse_error=ValidationError("params must be an object", code="E2003"),
            signals=["method=tools/call"],
        )
    return ClassifiedRequest(
        kind=EnvelopeKind.JSONRPC_CALL,
        raw_tool_id=params.get("name"),
        raw_params=_params_or_empty(params.get("arguments")),
        request_id=1 if request_id is None else request_id,
        signals=["method=tools/call"],
    )


def _check_legacy_operation_id(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    inner = event.get("context")
    has_context_input = isinstance(inner, Mapping) and "input" in inner
    if "operationId" not in event and not has_context_input:
        return None

    inner = inner if isinstance(inner, Mapping) else {}
    tool_id = event.get("operationId") or inner.get("operationId")
    if has_context_input:
        params = inner.get("input")
    else:
        params = _fold_parameter_list(event.get("parameters"))
    signals = ["operationId"] if "operationId" in event else []
    if has_context_input:
        signals.append("context.input")
    return ClassifiedRequest(
        kind=EnvelopeKind.LEGACY_OPERATION_ID,
        raw_tool_id=tool_id,
        raw_params=_params_or_empty(params),
        signals=signals,
    )


def _check_legacy_prefixed_name(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    for field_name in LEGACY_NAME_FIELDS:
        value = event.get(field_name)
        if isinstance(value, str) and value.startswith(target_prefix):
            return ClassifiedRequest(
                kind=EnvelopeKind.LEGACY_PREFIXED_NAME,
                raw_tool_id=value,
                raw_params=_params_or_empty(_first_present(event, "arguments", "params", "input")),
                variant=field_name,
                signals=[f"{field_name} startswith {target_prefix}"],
            )
    return None


def _check_queue_message(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    records = event.get("Records")
    if not isinstance(records, list) or not records:
        return None
    first = records[0] if isinstance(records[0], Mapping) else {}
    try:
        body = _decode_json_body(first.get("body"), what="message body")
    except ValidationError as exc:
        return ClassifiedRequest(kind=EnvelopeKind.QUEUE_MESSAGE, parse_error=exc, signals=["Records"])
    return ClassifiedRequest(
        kind=EnvelopeKind.QUEUE_MESSAGE,
        raw_tool_id=_first_present(body, "tool", "name"),
        raw_params=_params_or_empty(_first_present(body, "params", "arguments")),
        signals=["Records"],
    )


def _check_http_proxy(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    signals = [key for key in ("httpMethod", "requestContext") if key in event]
    if not signals:
        return None
    try:
        body = _decode_json_body(
            event.get("body"),
            base64_encoded=bool(event.get("isBase64Encoded")),
            what="request body",
        )
    except ValidationError as exc:
        return ClassifiedRequest(kind=EnvelopeKind.HTTP_PROXY, parse_error=exc, signals=signals)

    path_params = event.get("pathParameters") or {}
    query_params = event.get("queryStringParameters") or {}
    tool_id = _first_present(body, "tool", "name")
    if tool_id is None and isinstance(path_params, Mapping):
        tool_id = path_params.get("tool")
    if tool_id is None and isinstance(query_params, Mapping):
        tool_id = query_params.get("tool")
    return ClassifiedRequest(
        kind=EnvelopeKind.HTTP_PROXY,
        raw_tool_id=tool_id,
        raw_params=_params_or_empty(_first_present(body, "params", "arguments")),
        signals=signals,
    )


def _check_event_bus(event: Mapping[str, Any], context: Any, target_prefix: str) -> ClassifiedRequest | None:
    if event.get("source") != EVENT_BUS_SOURCE:
        return None
    detail = event.get("detail")
    detail = detail if isinstance(detail, Mapping) else {}
    return ClassifiedRequest(
        kind=EnvelopeKind.EVENT_BUS,
        raw_tool_id=detail.get("tool"),
        raw_params=_params_or_empty(detail.get("params")),
        signals=["source=aws.events"],
    )


def _direct_invoke(event: Mapping[str, Any]) -> ClassifiedRequest:
    return ClassifiedRequest(
        kind=EnvelopeKind.DIRECT_INVOKE,
        raw_tool_id=event.get("tool"),
        raw_params=_params_or_empty(event.get("params")),
        signals=["fallback"],
    )


CLASSIFIERS: tuple[tuple[EnvelopeKind, Check], ...] = (
    (EnvelopeKind.GATEWAY_MANAGED, _check_gateway_managed),
    (EnvelopeKind.EMPTY_PAYLOAD, _check_empty_payload),
    (EnvelopeKind.JSONRPC_CALL, _check_jsonrpc_call),
    (EnvelopeKind.LEGACY_OPERATION_ID, _check_legacy_operation_id),
    (EnvelopeKind.LEGACY_PREFIXED_NAME, _check_legacy_prefixed_name),
    (EnvelopeKind.QUEUE_MESSAGE, _check_queue_message),
    (EnvelopeKind.HTTP_PROXY, _check_http_proxy),
    (EnvelopeKind.EVENT_BUS, _check_event_bus),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify_envelope(
    event: Any,
    context: Any = None,
    *,
    target_prefix: str = DEFAULT_TARGET_PREFIX,
) -> ClassifiedRequest:
    """Assign exactly one :class:`EnvelopeKind` to an invocation.

    ``target_prefix`` is the gateway-target name that legacy prefixed tool
    names start with; it is matched together with the ``___`` delimiter.
    """
    if event is None:
        event = {}
    prefix = target_prefix + DELIMITER if not target_prefix.endswith(DELIMITER) else target_prefix

    # The gateway tool name lives on the context, so any payload shape qualifies.
    gateway = _check_gateway_managed(event, context, prefix)
    if gateway is not None:
        return gateway
    if not isinstance(event, Mapping):
        # Scalars and lists carry no envelope fields at all.
        return ClassifiedRequest(kind=EnvelopeKind.DIRECT_INVOKE, signals=["non-object payload"])

    for _kind, check in CLASSIFIERS[1:]:
        result = check(event, context, prefix)
        if result is not None:
            return result
    return _direct_invoke(event)
