"""Template projector.

Writes wizard values into a copy of the output template, one field at a time,
at the dotted path each field declares (``$.network.hostname``). A bad path,
an unknown field or an unconvertible value only skips that field.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from installwizard.core.errors import ProjectionError
from installwizard.core.events import emit_diagnostic
from installwizard.core.json_value import convert_value, is_object
from installwizard.core.logging import get_logger
from installwizard.core.models import Page

_logger = get_logger(__name__)

ROOT_MARKER = "$"
_SEGMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


@dataclass
class ProjectionResult:
    document: dict[str, Any]
    warnings: list[str] = field(default_factory=list)
    written: list[str] = field(default_factory=list)


def parse_path(path: str) -> list[str]:
    """Split ``$.a.b`` into ``["a", "b"]``.

    Raises:
        ProjectionError: path does not match the dotted-property grammar
    """
    if not isinstance(path, str) or not path.startswith(ROOT_MARKER + "."):
        raise ProjectionError(f"path must start with '{ROOT_MARKER}.': {path!r}")
    segments = path[len(ROOT_MARKER) + 1 :].split(".")
    for seg in segments:
        if not _SEGMENT_RE.match(seg):
            raise ProjectionError(f"invalid path segment {seg!r} in {path!r}")
    return segments


def build_field_path_index(pages: Iterable[Page]) -> dict[str, str]:
    """Map field id -> declared path. First declaration wins."""
    index: dict[str, str] = {}
    for page in pages:
        for f in page.fields:
            index.setdefault(f.id, f.json_path)
    return index


def set_path(document: dict[str, Any], segments: list[str], value: Any) -> None:
    node = document
    for seg in segments[:-1]:
        child = node.get(seg)
        if not is_object(child):
            child = {}
            node[seg] = child
        node = child
    node[segments[-1]] = value


def project(
    template: Any,
    field_paths: Mapping[str, str],
    values: Mapping[str, Any],
) -> ProjectionResult:
    """Project values onto a copy of ``template``.

    Args:
        template: Output template skeleton (a JSON object)
        field_paths: field id -> dotted path
        values: field id -> JSON value

    Returns:
        ProjectionResult with the new document and per-field warnings
    """
    result = ProjectionResult(document={})

    def _skip(message: str) -> None:
        result.warnings.append(message)
        _logger.warning(message)

    if is_object(template):
        try:
            result.document = convert_value(template)
        except ProjectionError as e:
            _skip(f"Output template is not valid JSON, starting from an empty document: {e}")
    elif template is not None:
        _skip("Output template is not an object, starting from an empty document")

    for field_id, raw in values.items():
        path = field_paths.get(field_id)
        if not path:
            _skip(f"Field {field_id} not found or has no JSONPath")
            continue
        try:
            segments = parse_path(path)
            value = convert_value(raw)
        except ProjectionError as e:
            _skip(f"Failed to apply JSONPath {path} for field {field_id}: {e.message}")
            continue
        set_path(result.document, segments, value)
        result.written.append(field_id)
        _logger.debug(f"Projected {field_id} -> {path}")

    emit_diagnostic(
        "output.project",
        component="projection",
        operation="project",
        data={"written": len(result.written), "skipped": len(result.warnings)},
    )
    return result


def project_pages(
    template: Any,
    pages: Iterable[Page],
    values: Mapping[str, Any],
) -> ProjectionResult:
    return project(template, build_field_path_index(pages), values)
