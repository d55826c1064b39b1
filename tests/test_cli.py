"""Tests for the kintone-gateway developer CLI."""

from __future__ import annotations

import json

from typer.testing import CliRunner

import kintone_gateway.cli as cli_mod
from kintone_gateway.cli import cli


def _write(tmp_path, payload) -> str:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_classify_jsonrpc(tmp_path) -> None:
    event = _write(
        tmp_path,
        {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "T___kintone-get-app"}},
    )
    result = CliRunner().invoke(cli, ["classify", event])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["envelope"] == "jsonrpc_call"
    assert payload["raw_tool"] == "T___kintone-get-app"
    assert payload["tool"] == "get-app"
    assert payload["request_id"] == 2


def test_classify_with_gateway_tool_name(tmp_path) -> None:
    event = _write(tmp_path, {"app": "1"})
    result = CliRunner().invoke(cli, ["classify", event, "--tool-name", "T___kintone-get-records"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["envelope"] == "gateway_managed"
    assert payload["tool"] == "get-records"


def test_classify_rejects_bad_file(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")
    result = CliRunner().invoke(cli, ["classify", str(path)])
    assert result.exit_code == 1


def test_invoke_renders_response(monkeypatch, tmp_path) -> None:
    captured: dict[str, object] = {}

    async def fake_handle(event, context=None, **kwargs):
        captured["event"] = event
        captured["context"] = context
        return {"success": True, "data": {"apps": []}}

    monkeypatch.setattr(cli_mod, "handle", fake_handle)
    monkeypatch.setattr(cli_mod, "configure_logging", lambda level: None)
    event = _write(tmp_path, {"tool": "get-apps"})
    result = CliRunner().invoke(cli, ["invoke", event, "--tool-name", "T___kintone-get-apps"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"success": True, "data": {"apps": []}}
    assert captured["event"] == {"tool": "get-apps"}
    assert captured["context"] == {
        "client_context": {"custom": {"bedrockAgentCoreToolName": "T___kintone-get-apps"}}
    }


def test_tools_lists_registry() -> None:
    result = CliRunner().invoke(cli, ["tools", "--schema"])
    assert result.exit_code == 0
    entries = {entry["tool"]: entry for entry in json.loads(result.output)}
    assert entries["get-records"]["implemented"] is True
    assert "app" in entries["get-records"]["inputSchema"]["properties"]
    assert entries["update-records"]["implemented"] is False
    assert entries["update-records"]["inputSchema"] is None
