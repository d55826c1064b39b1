"""Shared test fixtures for kintone-gateway tests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from kintone_gateway.providers.base import RecordStore

APPS = [{"appId": "1", "name": "Customers"}, {"appId": "2", "name": "Orders"}]
APP_DETAIL = {"appId": "1", "code": "", "name": "Customers", "spaceId": None}
RECORDS = [{"$id": {"type": "__ID__", "value": "1"}, "name": {"type": "SINGLE_LINE_TEXT", "value": "Acme"}}]
PROPERTIES = {"name": {"type": "SINGLE_LINE_TEXT", "code": "name", "label": "Name"}}


class FakeRecordStore(RecordStore):
    """In-memory ``RecordStore`` that records every call."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> FakeRecordStore:
        self.entered = True
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.exited = True

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    async def list_apps(self) -> list[dict[str, Any]]:
        self._record("list_apps")
        return list(APPS)

    async def get_app(self, app_id: str) -> dict[str, Any]:
        self._record("get_app", app_id=app_id)
        return dict(APP_DETAIL)

    async def list_records(
        self,
        app: str,
        query: str | None = None,
        fields: Sequence[str] | None = None,
        total_count: bool | None = None,
    ) -> dict[str, Any]:
        self._record("list_records", app=app, query=query, fields=fields, total_count=total_count)
        return {"records": list(RECORDS), "totalCount": "1"}

    async def add_records(self, app: str, records: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        self._record("add_records", app=app, records=records)
        ids = [str(100 + index) for index in range(len(records))]
        return {"ids": ids, "revisions": ["1"] * len(records)}

    async def get_form_fields(self, app: str) -> dict[str, Any]:
        self._record("get_form_fields", app=app)
        return dict(PROPERTIES)


VALID_PARAMS: dict[str, dict[str, Any]] = {
    "get-apps": {},
    "get-app": {"id": "1"},
    "get-records": {"app": "1", "query": "name = \"Acme\"", "fields": ["name"]},
    "add-records": {"app": "1", "records": [{"name": {"value": "Acme"}}]},
    "get-form-fields": {"id": "1"},
}


@pytest.fixture
def env() -> dict[str, str]:
    """Minimal valid configuration environment."""
    return {
        "KINTONE_BASE_URL": "https://example.cybozu.com",
        "KINTONE_USERNAME": "alice",
        "KINTONE_PASSWORD": "s3cret",
    }


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def store_factory(store: FakeRecordStore):
    """Factory handing out the shared fake store regardless of config."""

    def _factory(config: Any) -> FakeRecordStore:
        return store

    return _factory


@pytest.fixture
def valid_params() -> dict[str, dict[str, Any]]:
    return {tool_id: dict(params) for tool_id, params in VALID_PARAMS.items()}


@pytest.fixture
def failing_store() -> FakeRecordStore:
    return FakeRecordStore(fail_with=ConnectionError("connect ETIMEDOUT 203.0.113.5:443"))


class MalformedRecordStore(FakeRecordStore):
    """Store whose record operations answer with a list instead of a mapping."""

    async def list_records(self, app, query=None, fields=None, total_count=None):  # type: ignore[override]
        self._record("list_records", app=app)
        return list(RECORDS)

    async def add_records(self, app, records):  # type: ignore[override]
        self._record("add_records", app=app)
        return ["100"]
