"""Lambda entry point: classify, resolve, dispatch, render."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable, Mapping
from typing import Any

from kintone_gateway.config import KintoneConfig, log_level_from_env, target_prefix_from_env
from kintone_gateway.detect import ClassifiedRequest, classify_envelope
from kintone_gateway.errors import InternalError, ToolError, tool_not_specified
from kintone_gateway.logs import configure_logging, log_fields
from kintone_gateway.outcome import ToolOutcome
from kintone_gateway.providers.base import RecordStore
from kintone_gateway.providers.kintone import KintoneRecordStore
from kintone_gateway.render import render
from kintone_gateway.resolve import resolve_tool_id
from kintone_gateway.telemetry import InvocationSpan, duration_ms, invocation_span
from kintone_gateway.tools import dispatch

logger = logging.getLogger(__name__)

StoreFactory = Callable[[KintoneConfig], RecordStore]


async def _execute(
    request: ClassifiedRequest,
    environ: Mapping[str, str],
    store_factory: StoreFactory,
    span: InvocationSpan,
) -> ToolOutcome:
    config = KintoneConfig.from_env(environ)
    if request.parse_error is not None:
        raise request.parse_error

    tool_id = resolve_tool_id(request.raw_tool_id)
    span.record_tool(tool_id)
    if tool_id is None:
        raise tool_not_specified()

    async with store_factory(config) as store:
        outcome = await dispatch(tool_id, request.raw_params, store)
    logger.info(
        "tool finished",
        extra=log_fields(tool=tool_id, success=outcome.success, error_kind=outcome.error_kind),
    )
    return outcome


async def handle(
    event: Any,
    context: Any = None,
    *,
    environ: Mapping[str, str] | None = None,
    store_factory: StoreFactory | None = None,
) -> Any:
    """Process one invocation and return the envelope-specific response.

    ``environ`` defaults to a snapshot of ``os.environ``; ``store_factory``
    defaults to :class:`KintoneRecordStore`.  Every failure is rendered, none
    is raised.
    """
    env = dict(os.environ) if environ is None else environ
    factory = store_factory or KintoneRecordStore
    start = time.perf_counter()

    request = classify_envelope(event, context, target_prefix=target_prefix_from_env(env))
    logger.info(
        "request received",
        extra=log_fields(
            envelope=request.kind.value,
            variant=request.variant,
            signals=request.signals,
            request_id=request.request_id,
        ),
    )

    with invocation_span(request.kind.value, environ=env) as span:
        try:
            outcome = await _execute(request, env, factory, span)
        except ToolError as exc:
            level = logging.ERROR if exc.is_internal else logging.INFO
            logger.log(
                level,
                "request rejected",
                extra=log_fields(error_kind=exc.category.wire_name, error_code=exc.code),
            )
            outcome = ToolOutcome.from_tool_error(exc)
        except Exception as exc:
            logger.exception("unhandled error", extra=log_fields(envelope=request.kind.value))
            outcome = ToolOutcome.from_tool_error(InternalError(str(exc) or "internal server error"))
        elapsed = duration_ms(start)
        span.record_outcome(outcome.error_kind, elapsed)

    logger.info(
        "request completed",
        extra=log_fields(envelope=request.kind.value, success=outcome.success, duration_ms=elapsed),
    )
    return render(request, outcome)


def lambda_handler(event: Any, context: Any = None) -> Any:
    """Synchronous platform entry point."""
    configure_logging(log_level_from_env())
    return asyncio.run(handle(event, context))


handler = lambda_handler
