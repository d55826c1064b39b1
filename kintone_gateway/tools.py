"""Tool registry and dispatcher."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from kintone_gateway.errors import NotFoundError, UpstreamError
from kintone_gateway.logs import log_fields
from kintone_gateway.outcome import ToolOutcome
from kintone_gateway.providers.base import RecordStore
from kintone_gateway.resolve import TOOL_IDS
from kintone_gateway.schema import (
    AddRecordsParams,
    AppIdParams,
    GetRecordsParams,
    NoParams,
    ToolParams,
    validate_params,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[RecordStore, Any], Awaitable[ToolOutcome]]

TOOL_HANDLERS: dict[str, Handler] = {}


async def _store_call(call: Awaitable[T], fallback_message: str) -> T:
    """Await one record-store operation, reporting its failure as ``UpstreamError``."""
    try:
        return await call
    except Exception as exc:
        raise UpstreamError(str(exc) or fallback_message) from exc


def _tool(tool_id: str) -> Callable[[Callable[..., Awaitable[Any]]], Handler]:
    """Register a handler; only store failures become ``Upstream`` outcomes."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Handler:
        @functools.wraps(func)
        async def wrapper(store: RecordStore, params: Any) -> ToolOutcome:
            try:
                data = await func(store, params)
            except UpstreamError as exc:
                logger.info(
                    "record store call failed",
                    extra=log_fields(tool=tool_id, error_kind=exc.category.wire_name, error_code=exc.code),
                )
                return ToolOutcome.from_tool_error(exc)
            return ToolOutcome.ok(data)

        TOOL_HANDLERS[tool_id] = wrapper
        return wrapper

    return decorator


@_tool("get-apps")
async def get_apps(store: RecordStore, params: NoParams) -> dict[str, Any]:
    return {"apps": await _store_call(store.list_apps(), "failed to list apps")}


@_tool("get-app")
async def get_app(store: RecordStore, params: AppIdParams) -> dict[str, Any]:
    return await _store_call(store.get_app(params.id), "failed to get app")


@_tool("get-records")
async def get_records(store: RecordStore, params: GetRecordsParams) -> dict[str, Any]:
    response = await _store_call(
        store.list_records(
            params.app,
            query=params.query,
            fields=params.field_codes,
            total_count=params.totalCount,
        ),
        "failed to get records",
    )
    return {
        "records": response.get("records", []),
        "totalCount": response.get("totalCount"),
    }


@_tool("add-records")
async def add_records(store: RecordStore, params: AddRecordsParams) -> dict[str, Any]:
    response = await _store_call(store.add_records(params.app, params.records), "failed to add records")
    return {
        "ids": response.get("ids", []),
        "revisions": response.get("revisions", []),
    }


@_tool("get-form-fields")
async def get_form_fields(store: RecordStore, params: AppIdParams) -> dict[str, Any]:
    return {"properties": await _store_call(store.get_form_fields(params.id), "failed to get form fields")}


def implemented_tools() -> list[str]:
    """Registered tool ids that have a handler, in registry order."""
    return [tool_id for tool_id in TOOL_IDS if tool_id in TOOL_HANDLERS]


def unsupported_tool(tool_id: str) -> NotFoundError:
    return NotFoundError(
        f"unsupported tool: {tool_id}",
        code="E3002",
        details={"availableTools": implemented_tools()},
    )


async def dispatch(tool_id: str, raw_params: Any, store: RecordStore) -> ToolOutcome:
    """Run one tool against ``store``.

    Unknown and unimplemented tool ids come back as a ``NotFound`` outcome;
    parameter problems raise ``ValidationError`` for the caller to render.
    Only record-store failures become ``Upstream`` outcomes; a fault while
    shaping the store response propagates.
    """
    handler = TOOL_HANDLERS.get(tool_id)
    if handler is None:
        return ToolOutcome.from_tool_error(unsupported_tool(tool_id))
    params: ToolParams = validate_params(tool_id, raw_params)
    return await handler(store, params)
