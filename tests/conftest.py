"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path (for 'installwizard.*' imports without an install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture(autouse=True)
def _isolate_event_bus():
    """Subscribers registered by one test must not see another test's events."""
    from installwizard.core.events import get_event_bus

    get_event_bus().clear()
    yield
    get_event_bus().clear()


@pytest.fixture(autouse=True)
def _reset_verbosity():
    from installwizard.core.logging import VerbosityLevel, set_verbosity

    yield
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def captured_warnings():
    """Collect WARNING/ERROR log lines emitted during the test."""
    from installwizard.core.logging import add_log_sink, remove_log_sink

    lines: list[str] = []

    def _sink(rec):
        if rec.level_name in ("WARNING", "ERROR"):
            lines.append(rec.plain)

    add_log_sink(_sink)
    yield lines
    remove_log_sink(_sink)


@pytest.fixture
def example_specs_dir() -> Path:
    return repo_root / "example-specs"


@pytest.fixture
def spec_dir(tmp_path: Path) -> Path:
    d = tmp_path / "spec.d"
    d.mkdir()
    return d
