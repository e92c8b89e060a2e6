"""Tests for WizardService (transport-agnostic contract)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import installwizard.core.service as service_module
from installwizard.core.errors import PersistenceError
from installwizard.core.loader import SpecLoader
from installwizard.core.service import WizardService
from installwizard.core.state import WizardStateStore


def _service(spec_dirs: list[Path], tmp_path: Path) -> WizardService:
    return WizardService(
        loader=SpecLoader(spec_dirs),
        state_store=WizardStateStore(tmp_path / "state.json"),
        output_path=tmp_path / "out" / "output.json",
    )


def test_unified_is_cached_until_reload(spec_dir: Path, tmp_path: Path) -> None:
    (spec_dir / "a.json").write_text(
        json.dumps({"contribId": "a", "pages": [{"id": "p1", "order": 1}]}), encoding="utf-8"
    )
    svc = _service([spec_dir], tmp_path)
    assert [p["id"] for p in svc.unified()["pages"]] == ["p1"]

    (spec_dir / "b.json").write_text(
        json.dumps({"contribId": "b", "pages": [{"id": "p0", "order": 0}]}), encoding="utf-8"
    )
    assert [p["id"] for p in svc.unified()["pages"]] == ["p1"]

    assert svc.reload() == {"message": "Spec cache cleared"}
    assert [p["id"] for p in svc.unified()["pages"]] == ["p0", "p1"]


def test_unified_error_envelope_on_conflict(spec_dir: Path, tmp_path: Path) -> None:
    for name in ("a", "b"):
        (spec_dir / f"{name}.json").write_text(
            json.dumps({"contribId": name, "pages": [{"id": "same"}]}), encoding="utf-8"
        )
    out = _service([spec_dir], tmp_path).unified()
    assert set(out) == {"error"}
    assert "same" in out["error"]


def test_diagnostics_summary(example_specs_dir: Path, tmp_path: Path) -> None:
    out = _service([example_specs_dir], tmp_path).diagnostics()
    assert out["specCount"] == 3
    assert out["pageCount"] == 3
    assert out["contributions"] == [
        {"contribId": "base", "priority": 10, "pageCount": 2, "patchCount": 0},
        {"contribId": "storage", "priority": 50, "pageCount": 1, "patchCount": 1},
        {"contribId": "ssh", "priority": 100, "pageCount": 0, "patchCount": 1},
    ]
    assert "Added page 'welcome' from contrib 'base'" in out["diagnostics"]
    assert out["loadErrors"] == []


def test_diagnostics_on_conflict(spec_dir: Path, tmp_path: Path) -> None:
    for name in ("a", "b"):
        (spec_dir / f"{name}.json").write_text(
            json.dumps({"contribId": name, "pages": [{"id": "same"}]}), encoding="utf-8"
        )
    out = _service([spec_dir], tmp_path).diagnostics()
    assert "error" in out
    assert out["diagnostics"][0] == "Added page 'same' from contrib 'a'"
    assert out["diagnostics"][-1].startswith("Error:")


def test_generate_projects_and_persists(example_specs_dir: Path, tmp_path: Path) -> None:
    svc = _service([example_specs_dir], tmp_path)
    unified = svc.unified()
    doc = svc.generate(
        {"hostname": "host1", "swap_mb": 2048, "enable_ssh": False, "unknown": 1},
        unified["pages"],
        unified["outputTemplate"],
    )
    assert doc["network"] == {"dhcp": False, "hostname": "host1"}
    assert doc["storage"] == {"filesystem": "ext4", "swapMb": 2048}
    assert doc["services"] == {"ssh": {"port": 22, "enabled": False}}
    assert json.loads(svc.output_path.read_text(encoding="utf-8")) == doc


def test_generate_skips_malformed_pages(tmp_path: Path) -> None:
    svc = _service([], tmp_path)
    pages = [{"title": "no id"}, {"id": "p", "fields": [{"id": "f", "jsonPath": "$.f"}]}]
    assert svc.generate({"f": 1}, pages, {}) == {"f": 1}


def test_generate_write_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    svc = WizardService(
        loader=SpecLoader([]),
        state_store=WizardStateStore(tmp_path / "state.json"),
        output_path=blocker / "output.json",
    )
    with pytest.raises(PersistenceError):
        svc.generate({}, [], {})


def test_diagnostics_reports_its_own_load_errors(
    spec_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (spec_dir / "good.json").write_text(json.dumps({"contribId": "good"}), encoding="utf-8")
    bad = spec_dir / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    svc = _service([spec_dir], tmp_path)

    real_merge = service_module.merge_contributions
    calls: list[int] = []

    def merge_with_rebuild_in_between(specs):
        # A cache rebuild lands after diagnostics() loaded but before it reports.
        calls.append(1)
        if len(calls) == 1:
            bad.unlink()
            assert "pages" in svc.unified()
        return real_merge(specs)

    monkeypatch.setattr(service_module, "merge_contributions", merge_with_rebuild_in_between)
    out = svc.diagnostics()

    assert len(calls) == 2
    assert len(out["loadErrors"]) == 1
    assert "bad.json" in out["loadErrors"][0]
    assert out["specCount"] == 1


def test_unified_recovers_once_conflict_is_fixed(spec_dir: Path, tmp_path: Path) -> None:
    for name in ("a", "b"):
        (spec_dir / f"{name}.json").write_text(
            json.dumps({"contribId": name, "pages": [{"id": "same"}]}), encoding="utf-8"
        )
    svc = _service([spec_dir], tmp_path)
    assert "error" in svc.unified()

    (spec_dir / "b.json").unlink()
    assert [p["id"] for p in svc.unified()["pages"]] == ["same"]


def test_generate_keeps_valid_fields_of_malformed_page(
    tmp_path: Path, captured_warnings: list[str]
) -> None:
    svc = _service([], tmp_path)
    pages = [
        {
            "id": "net",
            "fields": [
                {"id": "hostname", "jsonPath": "$.network.hostname"},
                {"id": "broken", "type": "nonsense", "jsonPath": "$.x"},
            ],
        }
    ]
    doc = svc.generate({"hostname": "h1", "broken": 1}, pages, {})

    assert doc == {"network": {"hostname": "h1"}}
    assert any("broken" in line for line in captured_warnings)
    assert any("'net'" in line and "hostname" in line for line in captured_warnings)
