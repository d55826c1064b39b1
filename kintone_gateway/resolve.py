"""Tool-name normalization.

Gateway tool names look like ``<target>___kintone-<operation>``.  Resolution
drops everything up to and including the first ``___``, then a single leading
``kintone-``, then maps through :data:`TOOL_ALIASES`.
"""

from __future__ import annotations

from typing import Any

DELIMITER = "___"
TOOL_FAMILY_PREFIX = "kintone-"

TOOL_IDS: tuple[str, ...] = (
    "get-apps",
    "get-app",
    "get-records",
    "add-records",
    "get-form-fields",
    "update-records",
    "delete-records",
)

TOOL_ALIASES: dict[str, str] = {tool_id: tool_id for tool_id in TOOL_IDS}


def strip_delimiter(name: str) -> str:
    index = name.find(DELIMITER)
    if index == -1:
        return name
    return name[index + len(DELIMITER):]


def strip_family_prefix(name: str) -> str:
    if name.startswith(TOOL_FAMILY_PREFIX):
        return name[len(TOOL_FAMILY_PREFIX):]
    return name


def resolve_tool_id(raw: Any) -> str | None:
    """Return the canonical tool id for ``raw``, or ``None`` when there is none."""
    if not isinstance(raw, str):
        return None
    name = strip_family_prefix(strip_delimiter(raw.strip()))
    if not name:
        return None
    return TOOL_ALIASES.get(name, name)
