"""Contribution loader.

Discovers contribution documents in the configured spec directories. A file
that cannot be read or parsed is logged and skipped; the rest of the batch
still loads.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from installwizard.core.errors import LoadError
from installwizard.core.logging import get_logger
from installwizard.core.merge import order_contributions
from installwizard.core.models import ContributionSpec

_logger = get_logger(__name__)

SPEC_SUFFIXES = (".json", ".yaml", ".yml")


@dataclass(frozen=True)
class LoadResult:
    """Contributions from one load pass and the errors that pass hit."""

    specs: list[ContributionSpec] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_contribution(data: Any, source: str = "") -> ContributionSpec:
    """Build a ContributionSpec from a decoded document.

    Raises:
        LoadError: document shape is invalid
    """
    return ContributionSpec.from_dict(data, source=source)


def read_contribution(path: Path) -> ContributionSpec:
    """Read and parse one contribution file.

    Raises:
        LoadError: file unreadable, not JSON/YAML, or invalid shape
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"Cannot read {path}: {e}") from e

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoadError(f"Invalid document {path}: {e}") from e

    try:
        return parse_contribution(data, source=str(path))
    except LoadError as e:
        raise LoadError(f"{path}: {e.message}") from e


class SpecLoader:
    """Load contribution documents from an ordered list of directories."""

    def __init__(self, spec_dirs: Iterable[Path | str]) -> None:
        self.spec_dirs = [Path(d) for d in spec_dirs]

    def discover(self) -> list[Path]:
        files: list[Path] = []
        for directory in self.spec_dirs:
            if not directory.is_dir():
                _logger.info(f"Spec directory does not exist: {directory}")
                continue
            found = sorted(
                p for p in directory.iterdir() if p.is_file() and p.suffix in SPEC_SUFFIXES
            )
            _logger.debug(f"Found {len(found)} spec file(s) in {directory}")
            files.extend(found)
        return files

    def load_all(self) -> LoadResult:
        """Load every discoverable contribution, sorted by priority."""
        errors: list[str] = []
        specs: list[ContributionSpec] = []
        for path in self.discover():
            try:
                spec = read_contribution(path)
            except LoadError as e:
                errors.append(e.message)
                _logger.error(f"Failed to load spec from {path}: {e.message}")
                continue
            specs.append(spec)
            _logger.verbose(f"Loaded spec from {path}: {spec.contrib_id}")
        return LoadResult(specs=order_contributions(specs), errors=errors)
