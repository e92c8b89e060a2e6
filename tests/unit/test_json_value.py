from __future__ import annotations

import math

import pytest

from installwizard.core.errors import ProjectionError
from installwizard.core.json_value import INT64_MAX, JsonKind, convert_value, json_kind


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        ("s", JsonKind.STRING),
        (1, JsonKind.INTEGER),
        (-(2**63), JsonKind.INTEGER),
        (INT64_MAX + 1, JsonKind.FLOAT),
        (2.0, JsonKind.INTEGER),
        (2.5, JsonKind.FLOAT),
        (True, JsonKind.BOOLEAN),
        (None, JsonKind.NULL),
        ({}, JsonKind.OBJECT),
        ([], JsonKind.ARRAY),
        ((1, 2), JsonKind.ARRAY),
    ],
)
def test_json_kind(value: object, kind: JsonKind) -> None:
    assert json_kind(value) is kind


@pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan, {1, 2}, object(), b"bytes"])
def test_json_kind_rejects_non_json(value: object) -> None:
    with pytest.raises(ProjectionError):
        json_kind(value)


def test_convert_value_copies_deeply() -> None:
    src = {"a": [{"b": 1}], "t": (1, 2)}
    out = convert_value(src)
    assert out == {"a": [{"b": 1}], "t": [1, 2]}
    out["a"][0]["b"] = 99
    assert src["a"][0]["b"] == 1


def test_convert_value_keeps_booleans() -> None:
    assert convert_value(True) is True
    assert convert_value([False, 0]) == [False, 0]
    assert type(convert_value([False, 0])[1]) is int


def test_convert_value_rejects_non_string_keys() -> None:
    with pytest.raises(ProjectionError):
        convert_value({1: "a"})


def test_convert_value_rejects_nested_nan() -> None:
    with pytest.raises(ProjectionError):
        convert_value({"a": [1, math.nan]})
