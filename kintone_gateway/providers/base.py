"""Record-store capability consumed by the tool handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any


class RecordStore(ABC):
    """Asynchronous interface to a remote record store.

    Implementations raise any exception with a human-readable message on
    failure; handlers only ever look at ``str(exc)``.  Stores are used as
    async context managers scoped to one invocation.
    """

    async def __aenter__(self) -> RecordStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    @abstractmethod
    async def list_apps(self) -> list[dict[str, Any]]:
        """Return summaries of every app visible to the caller."""

    @abstractmethod
    async def get_app(self, app_id: str) -> dict[str, Any]:
        """Return the detail object of one app."""

    @abstractmethod
    async def list_records(
        self,
        app: str,
        query: str | None = None,
        fields: Sequence[str] | None = None,
        total_count: bool | None = None,
    ) -> dict[str, Any]:
        """Return ``{"records": [...], "totalCount": ...}``."""

    @abstractmethod
    async def add_records(self, app: str, records: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        """Return ``{"ids": [...], "revisions": [...]}``."""

    @abstractmethod
    async def get_form_fields(self, app: str) -> dict[str, Any]:
        """Return the field-code to field-definition mapping of an app."""
