"""Spec merge engine.

Folds an unordered batch of contributions into one UnifiedSpec:

1. contributions are processed by ascending priority (stable for ties),
2. new pages are registered; a redefined page or a duplicate field id is a
   ConflictError that aborts the whole merge,
3. page patches insert fields after/before an anchor or append them; a
   missing target page or anchor only produces a warning diagnostic,
4. output template patches are deep-merged into one skeleton,
5. pages are finally ordered by their declared ``order``.

The function is pure: every map it uses is local to one call and the input
contributions are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any, cast

from installwizard.core.errors import (
    ConflictError,
    DuplicateFieldError,
    PageRedefinedError,
    ProjectionError,
)
from installwizard.core.events import emit_diagnostic
from installwizard.core.json_value import convert_value, is_object
from installwizard.core.logging import get_logger
from installwizard.core.models import ContributionSpec, Field, Page, PagePatch, UnifiedSpec

_logger = get_logger(__name__)


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a merge.

    Exactly one of ``unified`` and ``error`` is set. ``diagnostics`` holds the
    full log on success and everything collected up to the conflict on failure.
    """

    unified: UnifiedSpec | None
    error: ConflictError | None
    diagnostics: tuple[str, ...]

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> UnifiedSpec:
        if self.error is not None:
            raise self.error
        return cast(UnifiedSpec, self.unified)


def merge_template(target: dict[str, Any], patch: dict[str, Any]) -> None:
    """Deep-merge ``patch`` into ``target`` in place.

    Object over object merges recursively; anything else replaces the
    existing value wholesale, including an object landing on a scalar.
    ``patch`` must already be a private copy (see convert_value).
    """
    for key, incoming in patch.items():
        existing = target.get(key)
        if is_object(existing) and is_object(incoming):
            merge_template(existing, incoming)
        else:
            target[key] = incoming


class _MergeRun:
    """Accumulation state for a single merge call."""

    def __init__(self) -> None:
        self.diagnostics: list[str] = []
        self.pages: dict[str, Page] = {}
        self.page_fields: dict[str, list[Field]] = {}
        self.field_ids: set[str] = set()
        self.template: dict[str, Any] = {}

    def note(self, message: str) -> None:
        self.diagnostics.append(message)
        _logger.debug(message)

    def warn(self, message: str) -> None:
        self.diagnostics.append(f"Warning: {message}")
        _logger.warning(message)

    def check_field_ids(self, fields: Iterable[Field], contrib_id: str) -> list[str]:
        seen: set[str] = set()
        for f in fields:
            if f.id in self.field_ids or f.id in seen:
                raise DuplicateFieldError(f.id, contrib_id)
            seen.add(f.id)
        return list(seen)

    def add_page(self, page: Page, contrib_id: str) -> None:
        if page.id in self.pages:
            raise PageRedefinedError(page.id, contrib_id)
        self.field_ids.update(self.check_field_ids(page.fields, contrib_id))
        self.pages[page.id] = page
        self.page_fields[page.id] = list(page.fields)
        self.note(f"Added page '{page.id}' from contrib '{contrib_id}'")

    def apply_patch(self, patch: PagePatch, contrib_id: str) -> None:
        fields = self.page_fields.get(patch.page_id)
        if fields is None:
            self.warn(
                f"PagePatch targets non-existent page '{patch.page_id}' in contrib '{contrib_id}'"
            )
            return

        new_ids = self.check_field_ids(patch.fields, contrib_id)
        count = len(patch.fields)

        if patch.insert_after:
            index = _find_field(fields, patch.insert_after)
            if index < 0:
                self.warn(f"Field '{patch.insert_after}' not found in page '{patch.page_id}'")
                return
            fields[index + 1 : index + 1] = patch.fields
            where = f"after '{patch.insert_after}' in page '{patch.page_id}'"
            self.note(f"Inserted {count} field(s) {where}")
        elif patch.insert_before:
            index = _find_field(fields, patch.insert_before)
            if index < 0:
                self.warn(f"Field '{patch.insert_before}' not found in page '{patch.page_id}'")
                return
            fields[index:index] = patch.fields
            where = f"before '{patch.insert_before}' in page '{patch.page_id}'"
            self.note(f"Inserted {count} field(s) {where}")
        else:
            fields.extend(patch.fields)
            self.note(f"Appended {count} field(s) to page '{patch.page_id}'")

        self.field_ids.update(new_ids)

    def merge_output_patch(self, patch: Any, contrib_id: str) -> None:
        if not is_object(patch):
            self.warn(f"Ignored non-object output template patch from contrib '{contrib_id}'")
            return
        try:
            incoming = convert_value(patch)
        except ProjectionError as e:
            self.warn(f"Ignored invalid output template patch from contrib '{contrib_id}': {e}")
            return
        merge_template(self.template, incoming)
        self.note(f"Merged output template from contrib '{contrib_id}'")

    def finish(self) -> UnifiedSpec:
        # sorted() is stable: ties keep registration order.
        ordered = sorted(self.pages.values(), key=lambda p: p.order)
        pages = tuple(replace(p, fields=tuple(self.page_fields[p.id])) for p in ordered)
        return UnifiedSpec(
            pages=pages,
            output_template=self.template,
            diagnostics=tuple(self.diagnostics),
        )


def _find_field(fields: list[Field], field_id: str) -> int:
    for i, f in enumerate(fields):
        if f.id == field_id:
            return i
    return -1


def order_contributions(contributions: Iterable[ContributionSpec]) -> list[ContributionSpec]:
    """Ascending priority; equal priorities keep load order."""
    return sorted(contributions, key=lambda c: c.priority)


def merge_contributions(contributions: Iterable[ContributionSpec]) -> MergeResult:
    """Merge contributions into a UnifiedSpec.

    Args:
        contributions: Contribution records in load order (need not be sorted)

    Returns:
        MergeResult carrying either the unified spec or the ConflictError,
        together with the diagnostics log.
    """
    ordered = order_contributions(contributions)
    run = _MergeRun()

    try:
        for contrib in ordered:
            for page in contrib.pages:
                run.add_page(page, contrib.contrib_id)
            for patch in contrib.page_patches:
                run.apply_patch(patch, contrib.contrib_id)
            if contrib.output_template_patch is not None:
                run.merge_output_patch(contrib.output_template_patch, contrib.contrib_id)
    except ConflictError as e:
        run.diagnostics.append(f"Error: {e.message}")
        _logger.error(f"Spec merge failed: {e}")
        emit_diagnostic(
            "spec.merge",
            component="merge",
            operation="merge_contributions",
            data={"status": "failed", "error": e.message, "spec_count": len(ordered)},
        )
        return MergeResult(unified=None, error=e, diagnostics=tuple(run.diagnostics))

    unified = run.finish()
    _logger.info(
        f"Merged {len(ordered)} specs into {len(unified.pages)} pages "
        f"with {unified.field_count()} total fields"
    )
    emit_diagnostic(
        "spec.merge",
        component="merge",
        operation="merge_contributions",
        data={
            "status": "succeeded",
            "spec_count": len(ordered),
            "page_count": len(unified.pages),
            "field_count": unified.field_count(),
            "warning_count": sum(1 for d in unified.diagnostics if d.startswith("Warning:")),
        },
    )
    return MergeResult(unified=unified, error=None, diagnostics=unified.diagnostics)
