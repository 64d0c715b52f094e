"""Shallow argument validation against a JSON-Schema subset.

Only what the dispatcher promises is checked: the arguments are an object,
required keys are present, and declared primitive types are satisfied.
Unknown extra keys always pass through, whatever ``additionalProperties``
says, so newer clients can talk to older servers.
"""

from __future__ import annotations

from typing import Any

from toolwire.protocol.errors import ArgumentValidationError

_TYPE_CHECKS: dict[str, Any] = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
    "null": lambda v: v is None,
}


def validate_arguments(schema: dict[str, Any], arguments: Any) -> dict[str, Any]:
    """Check *arguments* against *schema* and return them unchanged.

    Raises:
        ArgumentValidationError: Arguments are not an object, a required key
            is missing, or a declared property has the wrong primitive type.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ArgumentValidationError("arguments must be an object")

    for key in schema.get("required") or []:
        if isinstance(key, str) and key not in arguments:
            raise ArgumentValidationError(f"missing required field '{key}'", field=key)

    properties = schema.get("properties") or {}
    if isinstance(properties, dict):
        for key, prop_schema in properties.items():
            if key in arguments:
                _check_type(key, arguments[key], prop_schema)

    return arguments


def _check_type(key: str, value: Any, prop_schema: Any) -> None:
    if not isinstance(prop_schema, dict):
        return
    declared = prop_schema.get("type")
    if not declared:
        return

    kinds = declared if isinstance(declared, list) else [declared]
    known = [k for k in kinds if k in _TYPE_CHECKS]
    # Unknown type names are not rejected.
    if not known or len(known) != len(kinds):
        return
    if not any(_TYPE_CHECKS[k](value) for k in known):
        expected = " or ".join(known)
        raise ArgumentValidationError(f"field '{key}' must be {expected}", field=key)
