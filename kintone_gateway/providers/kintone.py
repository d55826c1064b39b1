"""kintone REST API record store built on httpx."""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from kintone_gateway.config import KintoneConfig
from kintone_gateway.providers.base import RecordStore

logger = logging.getLogger(__name__)

APPS_PATH = "/k/v1/apps.json"
APP_PATH = "/k/v1/app.json"
RECORDS_PATH = "/k/v1/records.json"
FORM_FIELDS_PATH = "/k/v1/app/form/fields.json"


class KintoneAPIError(Exception):
    """A kintone REST call failed."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        error_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.error_id = error_id

    @classmethod
    def from_response(cls, response: httpx.Response) -> KintoneAPIError:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, Mapping):
            reason = response.reason_phrase or "request failed"
            return cls(f"[{response.status_code}] {reason}", status=response.status_code)

        code = payload.get("code")
        error_id = payload.get("id")
        message = payload.get("message") or response.reason_phrase or "request failed"
        text = f"[{response.status_code}]"
        if code:
            text += f" [{code}]"
        text += f" {message}"
        if error_id:
            text += f" ({error_id})"
        return cls(text, status=response.status_code, code=code, error_id=error_id)


def _encode_pair(username: str, password: str) -> str:
    return base64.b64encode(f"{username}:{password}".encode()).decode("ascii")


def build_headers(config: KintoneConfig) -> dict[str, str]:
    headers = {
        "X-Cybozu-Authorization": _encode_pair(config.username, config.password.get_secret_value()),
    }
    if config.basic_auth is not None:
        token = _encode_pair(config.basic_auth.username, config.basic_auth.password.get_secret_value())
        headers["Authorization"] = f"Basic {token}"
    return headers


class KintoneRecordStore(RecordStore):
    """``RecordStore`` backed by the kintone REST API.

    Use as an async context manager so the underlying client is closed at the
    end of the invocation::

        async with KintoneRecordStore(config) as store:
            apps = await store.list_apps()
    """

    def __init__(self, config: KintoneConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=build_headers(config),
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> KintoneRecordStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("kintone request failed", extra={"status": None})
            raise KintoneAPIError(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            logger.warning("kintone returned an error", extra={"status": response.status_code})
            raise KintoneAPIError.from_response(response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise KintoneAPIError(f"[{response.status_code}] response is not JSON", status=response.status_code) from exc
        if not isinstance(payload, dict):
            raise KintoneAPIError(f"[{response.status_code}] unexpected response shape", status=response.status_code)
        return payload

    async def list_apps(self) -> list[dict[str, Any]]:
        payload = await self._request("GET", APPS_PATH)
        return payload.get("apps", [])

    async def get_app(self, app_id: str) -> dict[str, Any]:
        return await self._request("GET", APP_PATH, params={"id": app_id})

    async def list_records(
        self,
        app: str,
        query: str | None = None,
        fields: Sequence[str] | None = None,
        total_count: bool | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"app": app}
        if query is not None:
            params["query"] = query
        for index, field_code in enumerate(fields or ()):
            params[f"fields[{index}]"] = field_code
        if total_count is not None:
            params["totalCount"] = "true" if total_count else "false"
        payload = await self._request("GET", RECORDS_PATH, params=params)
        return {
            "records": payload.get("records", []),
            "totalCount": payload.get("totalCount"),
        }

    async def add_records(self, app: str, records: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        payload = await self._request(
            "POST",
            RECORDS_PATH,
            json={"app": app, "records": [dict(record) for record in records]},
        )
        return {
            "ids": payload.get("ids", []),
            "revisions": payload.get("revisions", []),
        }

    async def get_form_fields(self, app: str) -> dict[str, Any]:
        payload = await self._request("GET", FORM_FIELDS_PATH, params={"app": app})
        return payload.get("properties", {})
