"""Developer command line for kintone-gateway."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer

from kintone_gateway.config import target_prefix_from_env
from kintone_gateway.detect import GATEWAY_TOOL_NAME_KEY, classify_envelope
from kintone_gateway.handler import handle
from kintone_gateway.logs import configure_logging
from kintone_gateway.resolve import TOOL_IDS, resolve_tool_id
from kintone_gateway.schema import tool_input_schema
from kintone_gateway.tools import TOOL_HANDLERS

cli = typer.Typer(no_args_is_help=True, help="kintone-gateway developer tools")


@cli.callback()
def _launcher_callback() -> None:
    """Top-level kintone-gateway entrypoint."""


def _load_event(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Could not read {path}: {exc.strerror}") from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"{path} is not valid JSON: {exc.msg}") from exc


def _context_for(tool_name: str | None) -> dict[str, Any] | None:
    if not tool_name:
        return None
    return {"client_context": {"custom": {GATEWAY_TOOL_NAME_KEY: tool_name}}}


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _event_or_exit(event_file: Path) -> Any:
    try:
        return _load_event(event_file)
    except RuntimeError as exc:
        typer.echo(f"Failed to load event: {exc}", err=True)
        raise typer.Exit(1) from exc


@cli.command()
def classify(
    event_file: Path = typer.Argument(..., help="JSON file holding the invocation payload."),
    tool_name: str | None = typer.Option(None, help="Simulate a gateway-managed call with this tool name."),
) -> None:
    """Show how a payload would be classified, without calling kintone."""
    event = _event_or_exit(event_file)
    request = classify_envelope(event, _context_for(tool_name), target_prefix=target_prefix_from_env())
    _emit(
        {
            "envelope": request.kind.value,
            "variant": request.variant,
            "raw_tool": request.raw_tool_id,
            "tool": resolve_tool_id(request.raw_tool_id),
            "request_id": request.request_id,
            "signals": request.signals,
            "parse_error": request.parse_error.message if request.parse_error else None,
        }
    )


@cli.command()
def invoke(
    event_file: Path = typer.Argument(..., help="JSON file holding the invocation payload."),
    tool_name: str | None = typer.Option(None, help="Simulate a gateway-managed call with this tool name."),
    log_level: str = typer.Option("WARNING", help="Log level for gateway logs on stderr."),
) -> None:
    """Run the full handler against the configured kintone environment."""
    event = _event_or_exit(event_file)
    configure_logging(log_level)
    _emit(asyncio.run(handle(event, _context_for(tool_name))))


@cli.command()
def tools(
    schema: bool = typer.Option(False, "--schema", help="Include each tool's parameter schema."),
) -> None:
    """List registered tool ids."""
    entries = []
    for tool_id in TOOL_IDS:
        entry: dict[str, Any] = {"tool": tool_id, "implemented": tool_id in TOOL_HANDLERS}
        if schema:
            entry["inputSchema"] = tool_input_schema(tool_id)
        entries.append(entry)
    _emit(entries)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
