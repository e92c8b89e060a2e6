"""Cache for the unified spec.

Only one caller builds on an empty cache; everybody else waiting on the lock
gets the same result. ``invalidate`` swaps the reference under a short state
lock, so a reader sees either the old result or none, never a half-built one.

Every invalidation bumps an epoch. A build that was running when the epoch
moved is handed back to its caller but never stored, so a reload issued
mid-build is not lost. Failed merges are never stored either; the next
caller merges again.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from installwizard.core.logging import get_logger
from installwizard.core.merge import MergeResult

_logger = get_logger(__name__)


class UnifiedSpecCache:
    def __init__(self, builder: Callable[[], MergeResult]) -> None:
        self._builder = builder
        self._build_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._result: MergeResult | None = None
        self._epoch = 0
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of completed builds."""
        return self._generation

    @property
    def epoch(self) -> int:
        """Number of invalidations so far."""
        return self._epoch

    def peek(self) -> MergeResult | None:
        return self._result

    def get(self) -> MergeResult:
        result = self._result
        if result is not None:
            return result

        with self._build_lock:
            # Another caller may have finished the build while we waited.
            result = self._result
            if result is not None:
                return result

            epoch = self._epoch
            result = self._builder()

            with self._state_lock:
                self._generation += 1
                if epoch != self._epoch:
                    _logger.verbose("Cache invalidated during build; result not stored")
                elif not result.ok:
                    _logger.verbose("Unified spec merge failed; result not stored")
                else:
                    self._result = result
                    _logger.verbose(
                        f"Unified spec cache populated (generation {self._generation})"
                    )
            return result

    def invalidate(self) -> None:
        with self._state_lock:
            self._epoch += 1
            self._result = None
        _logger.verbose("Unified spec cache invalidated")
