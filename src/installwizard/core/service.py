"""WizardService: transport-agnostic request handlers.

Ties the loader, merge engine, cache, projector and state store together.
Every method returns plain JSON-ready data; only PersistenceError escapes,
and the HTTP layer maps it to an error envelope.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from installwizard.core.cache import UnifiedSpecCache
from installwizard.core.config import ConfigResolver
from installwizard.core.errors import LoadError
from installwizard.core.loader import SpecLoader
from installwizard.core.logging import get_logger
from installwizard.core.merge import MergeResult, merge_contributions
from installwizard.core.models import Field, Page, WizardState
from installwizard.core.projection import project_pages
from installwizard.core.state import WizardStateStore, write_json_document

_logger = get_logger(__name__)


def _folded_get(data: dict[Any, Any], key: str) -> Any:
    for k, v in data.items():
        if str(k).lower() == key:
            return v
    return None


def _salvage_page(raw: Any) -> Page | None:
    """Keep the well-formed fields of a page document that failed to parse."""
    if not isinstance(raw, dict):
        return None
    raw_fields = _folded_get(raw, "fields")
    if not isinstance(raw_fields, list):
        return None

    fields: list[Field] = []
    for raw_field in raw_fields:
        try:
            fields.append(Field.from_dict(raw_field))
        except LoadError as e:
            _logger.warning(f"Ignoring malformed field in generate request: {e.message}")
    pid = _folded_get(raw, "id")
    return Page(id=pid if isinstance(pid, str) else "", fields=tuple(fields))


class WizardService:
    def __init__(
        self,
        loader: SpecLoader,
        state_store: WizardStateStore,
        output_path: Path,
    ) -> None:
        self.loader = loader
        self.state_store = state_store
        self.output_path = Path(output_path)
        self.cache = UnifiedSpecCache(self._build)

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> WizardService:
        return cls(
            loader=SpecLoader(resolver.resolve_spec_dirs()),
            state_store=WizardStateStore(resolver.resolve_state_path()),
            output_path=resolver.resolve_output_path(),
        )

    def _build(self) -> MergeResult:
        return merge_contributions(self.loader.load_all().specs)

    def unified(self) -> dict[str, Any]:
        result = self.cache.get()
        if result.error is not None:
            return {"error": result.error.message}
        return result.unwrap().to_dict()

    def diagnostics(self) -> dict[str, Any]:
        """Fresh load + merge summary; bypasses the cache."""
        loaded = self.loader.load_all()
        specs = loaded.specs
        result = merge_contributions(specs)
        if result.error is not None:
            return {"error": result.error.message, "diagnostics": list(result.diagnostics)}

        unified = result.unwrap()
        return {
            "specCount": len(specs),
            "pageCount": len(unified.pages),
            "diagnostics": list(unified.diagnostics),
            "contributions": [
                {
                    "contribId": s.contrib_id,
                    "priority": s.priority,
                    "pageCount": len(s.pages),
                    "patchCount": len(s.page_patches),
                }
                for s in specs
            ],
            "loadErrors": list(loaded.errors),
        }

    def reload(self) -> dict[str, str]:
        self.cache.invalidate()
        return {"message": "Spec cache cleared"}

    def generate(
        self,
        values: Mapping[str, Any],
        pages: list[Any],
        output_template: Any,
    ) -> dict[str, Any]:
        """Project values and persist the document to the output path.

        ``pages`` are page documents as served by ``unified()``; malformed
        fields are skipped with a warning and the rest of their page is kept.

        Raises:
            PersistenceError: the output document could not be written
        """
        parsed: list[Page] = []
        for raw in pages:
            try:
                parsed.append(Page.from_dict(raw))
            except LoadError as e:
                salvaged = _salvage_page(raw)
                if salvaged is None:
                    _logger.warning(f"Ignoring malformed page in generate request: {e.message}")
                    continue
                _logger.warning(
                    f"Page '{salvaged.id}' in generate request is malformed ({e.message}); "
                    f"keeping fields: {[f.id for f in salvaged.fields]}"
                )
                parsed.append(salvaged)

        result = project_pages(output_template, parsed, values)
        write_json_document(self.output_path, result.document)
        _logger.info(f"Generated output JSON at {self.output_path}")
        return result.document

    def load_state(self) -> dict[str, Any]:
        return self.state_store.load().to_dict()

    def save_state(self, state: WizardState) -> dict[str, str]:
        self.state_store.save(state)
        return {"message": "State saved successfully"}

    def clear_state(self) -> dict[str, str]:
        self.state_store.clear()
        return {"message": "State cleared successfully"}
