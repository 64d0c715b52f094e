"""Tests for shallow argument validation."""

from __future__ import annotations

import pytest

from toolwire.protocol.errors import ArgumentValidationError
from toolwire.server.schema import validate_arguments

SCHEMA = {
    "type": "object",
    "properties": {
        "text": {"type": "string"},
        "count": {"type": "integer"},
        "ratio": {"type": "number"},
        "flag": {"type": "boolean"},
        "maybe": {"type": ["string", "null"]},
        "custom": {"type": "uuid"},
    },
    "required": ["text"],
}


class TestValidateArguments:
    def test_valid(self) -> None:
        args = {"text": "hi", "count": 2, "ratio": 0.5, "flag": True, "maybe": None}
        assert validate_arguments(SCHEMA, args) is args

    def test_none_is_empty_object(self) -> None:
        assert validate_arguments({"properties": {}}, None) == {}

    def test_non_object_rejected(self) -> None:
        with pytest.raises(ArgumentValidationError, match="object"):
            validate_arguments(SCHEMA, ["hi"])

    def test_missing_required(self) -> None:
        with pytest.raises(ArgumentValidationError) as exc_info:
            validate_arguments(SCHEMA, {})
        assert exc_info.value.field == "text"

    def test_wrong_type(self) -> None:
        with pytest.raises(ArgumentValidationError, match="'count' must be integer"):
            validate_arguments(SCHEMA, {"text": "a", "count": "2"})

    def test_bool_is_not_integer(self) -> None:
        with pytest.raises(ArgumentValidationError):
            validate_arguments(SCHEMA, {"text": "a", "count": True})

    def test_int_is_a_number(self) -> None:
        validate_arguments(SCHEMA, {"text": "a", "ratio": 3})

    def test_extra_arguments_pass_through(self) -> None:
        args = validate_arguments(
            {**SCHEMA, "additionalProperties": False},
            {"text": "a", "unexpected": [1, 2]},
        )
        assert args["unexpected"] == [1, 2]

    def test_unknown_type_name_ignored(self) -> None:
        validate_arguments(SCHEMA, {"text": "a", "custom": 42})
