"""Closed JSON value model.

Everything the merge engine and the projector touch is classified into one
of the seven JSON kinds below before any branching happens. Values outside
that set (NaN, sets, arbitrary objects, non-string keys) are rejected with
ProjectionError instead of leaking into output documents.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from installwizard.core.errors import ProjectionError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class JsonKind(StrEnum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"


def json_kind(value: Any) -> JsonKind:
    """Classify a decoded JSON value.

    Raises:
        ProjectionError: value is not representable as JSON
    """
    # bool is a subclass of int, so it has to be checked first.
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if value is None:
        return JsonKind.NULL
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return JsonKind.INTEGER
        return JsonKind.FLOAT
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ProjectionError(f"non-finite number is not valid JSON: {value!r}")
        if value.is_integer() and INT64_MIN <= value <= INT64_MAX:
            return JsonKind.INTEGER
        return JsonKind.FLOAT
    if isinstance(value, dict):
        return JsonKind.OBJECT
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    raise ProjectionError(f"unsupported JSON value type: {type(value).__name__}")


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def convert_value(value: Any) -> Any:
    """Return a fresh, normalized copy of a JSON value.

    string -> str, integral number -> int (64-bit range), other number ->
    float, boolean -> bool, null -> None, object/array -> converted
    recursively.

    Raises:
        ProjectionError: value (or anything nested in it) is not JSON
    """
    kind = json_kind(value)
    if kind is JsonKind.STRING:
        return str(value)
    if kind is JsonKind.INTEGER:
        return int(value)
    if kind is JsonKind.FLOAT:
        return float(value)
    if kind is JsonKind.BOOLEAN:
        return bool(value)
    if kind is JsonKind.NULL:
        return None
    if kind is JsonKind.OBJECT:
        out: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ProjectionError(f"object key must be a string, got {type(key).__name__}")
            out[key] = convert_value(item)
        return out
    if kind is JsonKind.ARRAY:
        return [convert_value(item) for item in value]
    raise AssertionError(f"unhandled JSON kind: {kind}")
