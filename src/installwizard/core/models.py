"""Wizard definition data model.

Contribution documents are matched case-insensitively (``contribId``,
``contribid`` and ``CONTRIBID`` are the same key). ``to_dict`` always emits
the canonical camelCase spelling.

Contribution records are immutable once parsed; the merge engine builds new
Page objects instead of patching the ones it was given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from installwizard.core.errors import LoadError, ProjectionError
from installwizard.core.json_value import convert_value

DEFAULT_PRIORITY = 100


class FieldKind(StrEnum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    IP = "ip"
    REGEX = "regex"


_KIND_ALIASES = {"bool": FieldKind.BOOLEAN}


def _fold(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise LoadError(f"{what} must be a mapping, got {type(data).__name__}")
    out: dict[str, Any] = {}
    for key, value in data.items():
        out[str(key).lower()] = value
    return out


def _req_str(d: dict[str, Any], key: str, what: str) -> str:
    value = d.get(key.lower())
    if not isinstance(value, str) or not value.strip():
        raise LoadError(f"{what}: missing '{key}'")
    return value


def _opt_str(d: dict[str, Any], key: str, what: str) -> str | None:
    value = d.get(key.lower())
    if value is None:
        return None
    if not isinstance(value, str):
        raise LoadError(f"{what}: '{key}' must be a string")
    return value


def _opt_int(d: dict[str, Any], key: str, what: str, default: int | None = None) -> int | None:
    value = d.get(key.lower())
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise LoadError(f"{what}: '{key}' must be an integer")
    return value


def _opt_number(d: dict[str, Any], key: str, what: str) -> int | float | None:
    value = d.get(key.lower())
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LoadError(f"{what}: '{key}' must be a number")
    return value


def _list(d: dict[str, Any], key: str, what: str) -> list[Any]:
    value = d.get(key.lower())
    if value is None:
        return []
    if not isinstance(value, list):
        raise LoadError(f"{what}: '{key}' must be a list")
    return value


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True, slots=True)
class Field:
    id: str
    label: str = ""
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    json_path: str = ""
    error_message: str | None = None
    placeholder: str | None = None
    default_value: Any = None
    min: int | float | None = None
    max: int | float | None = None
    pattern: str | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Field:
        d = _fold(data, "field")
        fid = _req_str(d, "id", "field")
        what = f"field '{fid}'"

        raw_kind = d.get("type", FieldKind.TEXT.value)
        if not isinstance(raw_kind, str):
            raise LoadError(f"{what}: 'type' must be a string")
        norm = raw_kind.strip().lower()
        kind = _KIND_ALIASES.get(norm)
        if kind is None:
            try:
                kind = FieldKind(norm)
            except ValueError as e:
                allowed = ", ".join(k.value for k in FieldKind)
                raise LoadError(f"{what}: unknown type {raw_kind!r} (allowed: {allowed})") from e

        required = d.get("required", False)
        if not isinstance(required, bool):
            raise LoadError(f"{what}: 'required' must be a boolean")

        default_value = d.get("defaultvalue")
        if default_value is not None:
            try:
                default_value = convert_value(default_value)
            except ProjectionError as e:
                raise LoadError(f"{what}: invalid 'defaultValue': {e}") from e

        return cls(
            id=fid,
            label=_opt_str(d, "label", what) or "",
            kind=kind,
            required=required,
            json_path=_opt_str(d, "jsonPath", what) or "",
            error_message=_opt_str(d, "errorMessage", what),
            placeholder=_opt_str(d, "placeholder", what),
            default_value=default_value,
            min=_opt_number(d, "min", what),
            max=_opt_number(d, "max", what),
            pattern=_opt_str(d, "pattern", what),
            description=_opt_str(d, "description", what),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "type": self.kind.value,
            "required": self.required,
            "jsonPath": self.json_path,
        }
        out.update(
            _drop_none(
                {
                    "errorMessage": self.error_message,
                    "placeholder": self.placeholder,
                    "defaultValue": self.default_value,
                    "min": self.min,
                    "max": self.max,
                    "pattern": self.pattern,
                    "description": self.description,
                }
            )
        )
        return out


@dataclass(frozen=True, slots=True)
class Page:
    id: str
    title: str = ""
    order: int = 0
    fields: tuple[Field, ...] = ()
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Page:
        d = _fold(data, "page")
        pid = _req_str(d, "id", "page")
        what = f"page '{pid}'"
        return cls(
            id=pid,
            title=_opt_str(d, "title", what) or "",
            order=_opt_int(d, "order", what, default=0) or 0,
            fields=tuple(Field.from_dict(f) for f in _list(d, "fields", what)),
            description=_opt_str(d, "description", what),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "title": self.title, "order": self.order}
        if self.description is not None:
            out["description"] = self.description
        out["fields"] = [f.to_dict() for f in self.fields]
        return out


@dataclass(frozen=True, slots=True)
class PagePatch:
    page_id: str
    fields: tuple[Field, ...] = ()
    insert_after: str | None = None
    insert_before: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PagePatch:
        d = _fold(data, "page patch")
        pid = _req_str(d, "pageId", "page patch")
        what = f"patch for page '{pid}'"
        return cls(
            page_id=pid,
            fields=tuple(Field.from_dict(f) for f in _list(d, "fields", what)),
            insert_after=_opt_str(d, "insertFieldsAfter", what) or None,
            insert_before=_opt_str(d, "insertFieldsBefore", what) or None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"pageId": self.page_id}
        out.update(
            _drop_none(
                {
                    "insertFieldsAfter": self.insert_after,
                    "insertFieldsBefore": self.insert_before,
                }
            )
        )
        out["fields"] = [f.to_dict() for f in self.fields]
        return out


@dataclass(frozen=True, slots=True)
class ContributionSpec:
    contrib_id: str
    priority: int = DEFAULT_PRIORITY
    pages: tuple[Page, ...] = ()
    page_patches: tuple[PagePatch, ...] = ()
    output_template_patch: Any = None
    source: str = ""

    @classmethod
    def from_dict(cls, data: Any, *, source: str = "") -> ContributionSpec:
        d = _fold(data, "contribution")
        cid = _req_str(d, "contribId", "contribution")
        what = f"contrib '{cid}'"

        patch = d.get("outputtemplatepatch")
        if patch is not None:
            try:
                patch = convert_value(patch)
            except ProjectionError as e:
                raise LoadError(f"{what}: invalid 'outputTemplatePatch': {e}") from e

        return cls(
            contrib_id=cid,
            priority=_opt_int(d, "priority", what, default=DEFAULT_PRIORITY) or 0,
            pages=tuple(Page.from_dict(p) for p in _list(d, "pages", what)),
            page_patches=tuple(PagePatch.from_dict(p) for p in _list(d, "pagePatches", what)),
            output_template_patch=patch,
            source=source,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "contribId": self.contrib_id,
            "priority": self.priority,
            "pages": [p.to_dict() for p in self.pages],
            "pagePatches": [p.to_dict() for p in self.page_patches],
        }
        if self.output_template_patch is not None:
            out["outputTemplatePatch"] = convert_value(self.output_template_patch)
        return out


@dataclass(frozen=True, slots=True)
class UnifiedSpec:
    pages: tuple[Page, ...] = ()
    output_template: dict[str, Any] = field(default_factory=dict)
    diagnostics: tuple[str, ...] = ()

    def field_count(self) -> int:
        return sum(len(p.fields) for p in self.pages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pages": [p.to_dict() for p in self.pages],
            "outputTemplate": convert_value(self.output_template),
            "diagnostics": list(self.diagnostics),
        }


def _utc_now() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass(slots=True)
class WizardState:
    """Progress of one wizard session."""

    values: dict[str, Any] = field(default_factory=dict)
    page_feature_enabled: dict[str, bool] = field(default_factory=dict)
    current_page: int = 0
    last_updated: str | None = None

    def touch(self) -> None:
        self.last_updated = _utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "values": convert_value(self.values),
            "pageFeatureEnabled": dict(self.page_feature_enabled),
            "currentPage": self.current_page,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Any) -> WizardState:
        d = _fold(data, "wizard state")
        values = d.get("values") or {}
        toggles = d.get("pagefeatureenabled") or {}
        if not isinstance(values, dict):
            raise LoadError("wizard state: 'values' must be a mapping")
        if not isinstance(toggles, dict):
            raise LoadError("wizard state: 'pageFeatureEnabled' must be a mapping")
        return cls(
            values=dict(values),
            page_feature_enabled={str(k): bool(v) for k, v in toggles.items()},
            current_page=_opt_int(d, "currentPage", "wizard state", default=0) or 0,
            last_updated=_opt_str(d, "lastUpdated", "wizard state"),
        )
