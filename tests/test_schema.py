"""Tests for parameter validation."""

from __future__ import annotations

import pytest

from kintone_gateway.errors import ErrorCategory, ValidationError
from kintone_gateway.schema import (
    AddRecordsParams,
    GetRecordsParams,
    NoParams,
    tool_input_schema,
    validate_params,
)


class TestValidParams:

    def test_get_apps_ignores_extra_keys(self):
        assert isinstance(validate_params("get-apps", {"anything": 1}), NoParams)

    def test_get_apps_accepts_none(self):
        assert isinstance(validate_params("get-apps", None), NoParams)

    def test_get_records_defaults(self):
        params = validate_params("get-records", {"app": "1"})
        assert isinstance(params, GetRecordsParams)
        assert params.query is None
        assert params.field_codes is None
        assert params.totalCount is True

    def test_get_records_full(self):
        params = validate_params(
            "get-records",
            {"app": "1", "query": "limit 10", "fields": ["a", "b"], "totalCount": False},
        )
        assert params.field_codes == ["a", "b"]
        assert params.totalCount is False

    def test_add_records(self):
        params = validate_params("add-records", {"app": "1", "records": [{"name": {"value": "x"}}]})
        assert isinstance(params, AddRecordsParams)
        assert params.records == [{"name": {"value": "x"}}]

    def test_form_fields_uses_id(self):
        assert validate_params("get-form-fields", {"id": "4"}).id == "4"


class TestInvalidParams:

    def test_missing_required_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_params("get-records", {})
        err = exc_info.value
        assert err.category is ErrorCategory.VALIDATION
        assert "app" in err.message
        assert err.details["errors"][0]["field"] == "app"

    @pytest.mark.parametrize(
        ("tool_id", "raw"),
        [
            ("get-app", {"id": 1}),
            ("get-records", {"app": "1", "totalCount": "yes"}),
            ("get-records", {"app": "1", "fields": "name"}),
            ("add-records", {"app": "1", "records": []}),
            ("add-records", {"app": "1", "records": ["not a mapping"]}),
            ("add-records", {"app": "1"}),
        ],
    )
    def test_wrong_types_are_rejected(self, tool_id, raw):
        with pytest.raises(ValidationError):
            validate_params(tool_id, raw)

    def test_non_object_params(self):
        with pytest.raises(ValidationError, match="expected an object"):
            validate_params("get-app", ["1"])

    def test_details_do_not_echo_values(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_params("get-app", {"id": 123456789})
        assert "123456789" not in str(exc_info.value.details)
        assert "123456789" not in exc_info.value.message


def test_input_schema_uses_wire_names():
    schema = tool_input_schema("get-records")
    assert schema is not None
    assert set(schema["properties"]) == {"app", "query", "fields", "totalCount"}
    assert schema["required"] == ["app"]


def test_input_schema_missing_for_unimplemented_tools():
    assert tool_input_schema("delete-records") is None
