"""Tests for the tool registry and dispatcher."""

from __future__ import annotations

import pytest

from kintone_gateway.errors import ValidationError
from kintone_gateway.tools import TOOL_HANDLERS, dispatch, implemented_tools

from conftest import APP_DETAIL, APPS, PROPERTIES, RECORDS, FakeRecordStore, MalformedRecordStore


def test_registry_covers_implemented_tools():
    assert implemented_tools() == ["get-apps", "get-app", "get-records", "add-records", "get-form-fields"]
    assert "update-records" not in TOOL_HANDLERS
    assert "delete-records" not in TOOL_HANDLERS


class TestDispatchSuccess:

    @pytest.mark.asyncio
    async def test_get_apps(self, store):
        outcome = await dispatch("get-apps", {}, store)
        assert outcome.success is True
        assert outcome.data == {"apps": APPS}
        assert store.calls == [("list_apps", {})]

    @pytest.mark.asyncio
    async def test_get_app_returns_detail_as_is(self, store):
        outcome = await dispatch("get-app", {"id": "1"}, store)
        assert outcome.data == APP_DETAIL
        assert store.calls == [("get_app", {"app_id": "1"})]

    @pytest.mark.asyncio
    async def test_get_records_defaults_total_count(self, store):
        outcome = await dispatch("get-records", {"app": "1"}, store)
        assert outcome.data == {"records": RECORDS, "totalCount": "1"}
        assert store.calls == [
            ("list_records", {"app": "1", "query": None, "fields": None, "total_count": True}),
        ]

    @pytest.mark.asyncio
    async def test_add_records(self, store):
        records = [{"name": {"value": "a"}}, {"name": {"value": "b"}}]
        outcome = await dispatch("add-records", {"app": "1", "records": records}, store)
        assert outcome.data == {"ids": ["100", "101"], "revisions": ["1", "1"]}

    @pytest.mark.asyncio
    async def test_get_form_fields(self, store):
        outcome = await dispatch("get-form-fields", {"id": "7"}, store)
        assert outcome.data == {"properties": PROPERTIES}
        assert store.calls == [("get_form_fields", {"app": "7"})]


class TestDispatchFailure:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_id", ["update-records", "delete-records", "nonexistent-tool"])
    async def test_unsupported_tools_are_not_found(self, store, tool_id):
        outcome = await dispatch(tool_id, {}, store)
        assert outcome.success is False
        assert outcome.error_kind == "NotFound"
        assert outcome.to_dict()["error"] == f"unsupported tool: {tool_id}"
        assert outcome.error.details["availableTools"] == implemented_tools()
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_capability_failure_is_upstream(self, failing_store):
        outcome = await dispatch("get-app", {"id": "1"}, failing_store)
        assert outcome.success is False
        assert outcome.error_kind == "Upstream"
        assert outcome.error.message == "connect ETIMEDOUT 203.0.113.5:443"

    @pytest.mark.asyncio
    async def test_empty_error_message_uses_fallback(self):
        outcome = await dispatch("get-apps", {}, FakeRecordStore(fail_with=RuntimeError()))
        assert outcome.error.message == "failed to list apps"

    @pytest.mark.asyncio
    async def test_validation_error_propagates(self, store):
        with pytest.raises(ValidationError):
            await dispatch("get-records", {}, store)
        assert store.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tool_id", "params"),
        [
            ("get-records", {"app": "1"}),
            ("add-records", {"app": "1", "records": [{"name": {"value": "a"}}]}),
        ],
    )
    async def test_malformed_store_response_is_not_upstream(self, tool_id, params):
        store = MalformedRecordStore()
        with pytest.raises(AttributeError):
            await dispatch(tool_id, params, store)
        assert len(store.calls) == 1
