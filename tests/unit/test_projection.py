"""Tests for the template projector."""

from __future__ import annotations

import math

import pytest

from installwizard.core.errors import ProjectionError
from installwizard.core.models import Page
from installwizard.core.projection import build_field_path_index, parse_path, project


def test_projects_into_empty_template() -> None:
    result = project({}, {"f1": "$.network.hostname"}, {"f1": "host1"})
    assert result.document == {"network": {"hostname": "host1"}}
    assert result.written == ["f1"]
    assert result.warnings == []


def test_template_not_mutated() -> None:
    template = {"network": {"dhcp": False}}
    result = project(template, {"h": "$.network.hostname"}, {"h": "box"})
    assert result.document == {"network": {"dhcp": False, "hostname": "box"}}
    assert template == {"network": {"dhcp": False}}


def test_unknown_field_does_not_abort(captured_warnings: list[str]) -> None:
    paths = {"a": "$.a", "b": "$.nested.b"}
    result = project({}, paths, {"a": 1, "ghost": "x", "b": True})
    assert result.document == {"a": 1, "nested": {"b": True}}
    assert len(result.warnings) == 1
    assert "ghost" in result.warnings[0]
    assert any("ghost" in line for line in captured_warnings)


def test_field_without_path_is_skipped() -> None:
    result = project({}, {"a": ""}, {"a": 1})
    assert result.document == {}
    assert result.warnings


@pytest.mark.parametrize(
    "path",
    ["network.hostname", "$", "$.", "$..a", "$.a[0]", "$.a.*", "$.a b", "$network", "$.1abc"],
)
def test_invalid_path_rejected_for_that_field_only(path: str) -> None:
    result = project({}, {"bad": path, "good": "$.ok"}, {"bad": 1, "good": 2})
    assert result.document == {"ok": 2}
    assert result.written == ["good"]
    assert len(result.warnings) == 1


def test_intermediate_scalar_replaced_by_object() -> None:
    result = project({"network": "static"}, {"h": "$.network.hostname"}, {"h": "x"})
    assert result.document == {"network": {"hostname": "x"}}


def test_final_segment_overwrites_object() -> None:
    result = project({"a": {"b": {"c": 1}}}, {"f": "$.a.b"}, {"f": 5})
    assert result.document == {"a": {"b": 5}}


def test_value_conversion() -> None:
    paths = {k: f"$.v.{k}" for k in ("s", "i", "fl", "whole", "b", "n", "o", "arr", "big")}
    values = {
        "s": "text",
        "i": 42,
        "fl": 1.5,
        "whole": 3.0,
        "b": False,
        "n": None,
        "o": {"k": [1, {"deep": 2.0}]},
        "arr": [1, "two", None],
        "big": 2**70,
    }
    doc = project({}, paths, values).document["v"]
    assert doc["s"] == "text"
    assert doc["i"] == 42 and type(doc["i"]) is int
    assert doc["fl"] == 1.5
    assert doc["whole"] == 3 and type(doc["whole"]) is int
    assert doc["b"] is False
    assert doc["n"] is None
    assert doc["o"] == {"k": [1, {"deep": 2}]}
    assert doc["arr"] == [1, "two", None]
    assert type(doc["big"]) is float


def test_conversion_failure_leaves_target_untouched() -> None:
    template = {"v": {"bad": "keep"}}
    paths = {"bad": "$.v.bad", "nan": "$.v.nan", "good": "$.v.good"}
    result = project(template, paths, {"bad": {1, 2}, "nan": math.nan, "good": "ok"})
    assert result.document == {"v": {"bad": "keep", "good": "ok"}}
    assert len(result.warnings) == 2


def test_non_object_template_starts_empty() -> None:
    result = project([1, 2], {"a": "$.a"}, {"a": 1})
    assert result.document == {"a": 1}
    assert result.warnings


def test_none_template_starts_empty_without_warning() -> None:
    result = project(None, {"a": "$.a"}, {"a": 1})
    assert result.document == {"a": 1}
    assert result.warnings == []


def test_parse_path() -> None:
    assert parse_path("$.network.ipv4.address") == ["network", "ipv4", "address"]
    assert parse_path("$.with-dash_and_underscore") == ["with-dash_and_underscore"]
    with pytest.raises(ProjectionError):
        parse_path("network")


def test_field_path_index_first_declaration_wins() -> None:
    pages = [
        Page.from_dict({"id": "p1", "fields": [{"id": "a", "jsonPath": "$.first"}]}),
        Page.from_dict({"id": "p2", "fields": [{"id": "a", "jsonPath": "$.second"},
                                               {"id": "b", "jsonPath": "$.b"}]}),
    ]
    assert build_field_path_index(pages) == {"a": "$.first", "b": "$.b"}
