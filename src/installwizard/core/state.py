"""Wizard state persistence (JSON file, atomic writes)."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from installwizard.core.errors import LoadError, PersistenceError, ProjectionError
from installwizard.core.logging import get_logger
from installwizard.core.models import WizardState

_logger = get_logger(__name__)


def atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


def write_json_document(path: Path, document: Any) -> None:
    """Write an indented JSON document atomically.

    Raises:
        PersistenceError: the file could not be written
    """
    try:
        atomic_write_text(path, json.dumps(document, indent=2) + "\n")
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceError(f"Failed to write {path}: {e}") from e


class WizardStateStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cached: WizardState | None = None

    def load(self) -> WizardState:
        with self._lock:
            if self._cached is not None:
                return self._cached

            state = self._read()
            self._cached = state if state is not None else WizardState()
            return self._cached

    def _read(self) -> WizardState | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            state = WizardState.from_dict(data)
        except (OSError, json.JSONDecodeError, LoadError) as e:
            _logger.error(f"Failed to load wizard state from {self.path}: {e}")
            return None
        _logger.verbose(f"Loaded wizard state from {self.path}")
        return state

    def save(self, state: WizardState) -> None:
        """Persist state.

        Raises:
            PersistenceError: the state file could not be written
        """
        with self._lock:
            state.touch()
            try:
                payload = state.to_dict()
            except ProjectionError as e:
                raise PersistenceError(f"Wizard state is not serializable: {e}") from e
            write_json_document(self.path, payload)
            self._cached = state
            _logger.verbose(f"Saved wizard state to {self.path}")

    def clear(self) -> None:
        """Delete persisted state.

        Raises:
            PersistenceError: the state file could not be removed
        """
        with self._lock:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                raise PersistenceError(f"Failed to clear wizard state: {e}") from e
            self._cached = None
            _logger.verbose("Cleared wizard state")
