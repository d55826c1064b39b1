"""Parameter models and validation for kintone tools."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from kintone_gateway.errors import ValidationError


class ToolParams(BaseModel):
    """Base for tool parameters: strict primitive types, unknown keys dropped."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True, populate_by_name=True)


class NoParams(ToolParams):
    pass


class AppIdParams(ToolParams):
    id: str = Field(description="App ID")


class GetRecordsParams(ToolParams):
    app: str = Field(description="App ID")
    query: str | None = Field(default=None, description="Record query")
    field_codes: list[str] | None = Field(default=None, alias="fields", description="Field codes to return")
    totalCount: bool = Field(default=True, description="Whether to return the total record count")


class AddRecordsParams(ToolParams):
    app: str = Field(description="App ID")
    records: list[dict[str, Any]] = Field(
        min_length=1,
        description="Records to add, each keyed by field code",
    )


PARAM_MODELS: dict[str, type[ToolParams]] = {
    "get-apps": NoParams,
    "get-app": AppIdParams,
    "get-records": GetRecordsParams,
    "add-records": AddRecordsParams,
    "get-form-fields": AppIdParams,
}


def _dereference_refs(schema: Any, root_schema: dict[str, Any] | None = None) -> Any:
    """Recursively inline `$ref` entries."""
    if root_schema is None:
        root_schema = schema

    if isinstance(schema, dict):
        if "$ref" in schema:
            ref_path = schema["$ref"]
            if ref_path.startswith("#/$defs/"):
                def_name = ref_path.split("/")[-1]
                ref_content = root_schema.get("$defs", {}).get(def_name, {})
                return _dereference_refs(ref_content, root_schema)

        return {k: _dereference_refs(v, root_schema) for k, v in schema.items() if k != "$defs"}

    if isinstance(schema, list):
        return [_dereference_refs(item, root_schema) for item in schema]

    return schema


def tool_input_schema(tool_id: str) -> dict[str, Any] | None:
    """JSON schema of a tool's parameters, or ``None`` for unimplemented tools."""
    model = PARAM_MODELS.get(tool_id)
    if model is None:
        return None
    return _dereference_refs(model.model_json_schema())


def _summarize(exc: PydanticValidationError) -> list[dict[str, str]]:
    # Submitted values are left out on purpose: they may carry record data.
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "(root)",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def validate_params(tool_id: str, raw: Any) -> ToolParams:
    """Validate ``raw`` against the parameter model registered for ``tool_id``."""
    model = PARAM_MODELS[tool_id]
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValidationError(
            f"invalid parameters for {tool_id}: expected an object",
            code="E2001",
        )
    try:
        return model.model_validate(dict(raw))
    except PydanticValidationError as exc:
        problems = _summarize(exc)
        summary = "; ".join(f"{p['field']}: {p['message']}" for p in problems)
        raise ValidationError(
            f"invalid parameters for {tool_id}: {summary}",
            code="E2001",
            details={"errors": problems},
        ) from exc
