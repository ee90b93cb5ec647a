import json
import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tjls.analysis import AnalysisPipeline, analyze_document
from tjls.validators.core.classes import Severity

BROKEN_PROJECT = """project demo "Demo" 2024-01-01 +3m {
}
resource dev "Developer"
task docs "Documentation" {
  start 2024-06-01
  end 2024-05-01
  allocate dev
}
task impl "Implementation" {
  depends docs, missing
  allocate nobody
task impl "Again" {
}
"""


@pytest.fixture
def clean_project():
    return """project demo "Demo" 2024-01-01 +3m {
}
resource dev "Developer"
task docs "Documentation" {
  effort 5d
  allocate dev
}
task impl "Implementation" {
  depends docs
  allocate dev
}
"""


def test_clean_project_has_no_diagnostics(clean_project):
    assert analyze_document(clean_project) == []


def test_diagnostics_are_concatenated_in_stage_order():
    codes = [d.code for d in analyze_document(BROKEN_PROJECT)]
    assert codes == [
        "invalid-date-range",
        "unclosed-brace",
        "duplicate-task-id",
        "duplicate-task-id",
        "undefined-reference",
        "undefined-reference",
    ]


def test_cycle_stage_runs_last():
    text = 'task a "A" {\n  depends b\n}\ntask b "B" {\n  depends a\n  allocate ghost\n}'
    diagnostics = analyze_document(text)

    assert [d.code for d in diagnostics] == ["undefined-reference", "circular-dependency"]
    assert all(d.severity == Severity.ERROR for d in diagnostics)


def test_failing_stage_does_not_suppress_others(monkeypatch, caplog):
    def explode(text):
        raise RuntimeError("boom")

    monkeypatch.setattr("tjls.analysis.validate_braces", explode)

    with caplog.at_level(logging.ERROR, logger="tjls.analysis"):
        pipeline = AnalysisPipeline(BROKEN_PROJECT)
        diagnostics = pipeline.run()

    codes = [d.code for d in diagnostics]
    assert "unclosed-brace" not in codes
    assert "invalid-date-range" in codes
    assert "undefined-reference" in codes
    assert pipeline.stage_diagnostics["braces"] == []
    assert "Validation stage 'braces' failed" in caplog.text


def test_failing_symbol_model_skips_dependent_stages(monkeypatch):
    def explode(text):
        raise RuntimeError("boom")

    monkeypatch.setattr("tjls.analysis.extract_symbols", explode)
    pipeline = AnalysisPipeline(BROKEN_PROJECT)
    pipeline.run()

    assert "symbols" not in pipeline.artifacts
    assert "references" not in pipeline.stage_diagnostics
    assert [d.code for d in pipeline.stage_diagnostics["braces"]] == ["unclosed-brace"]


def test_artifacts_are_recorded(clean_project):
    pipeline = AnalysisPipeline(clean_project, file_path="plan.tjp")
    pipeline.run()

    assert [t.id for t in pipeline.artifacts["symbols"].tasks] == ["docs", "impl"]
    assert len(pipeline.artifacts["references"]) == 3
    assert pipeline.artifacts["diagnostics"] == []
    assert list(pipeline.stage_diagnostics) == ["dates", "braces", "duplicates", "references", "cycles"]


def test_save_artifact(tmp_path, clean_project):
    pipeline = AnalysisPipeline(clean_project, file_path=str(tmp_path / "plan.tjp"))
    pipeline.run()

    output_path = pipeline.save_artifact("symbols")

    assert output_path == str(tmp_path / "plan.symbols.json")
    with open(output_path, encoding="utf-8") as f:
        data = json.load(f)
    assert [t["id"] for t in data["tasks"]] == ["docs", "impl"]
    assert data["resources"][0]["id_span"] == {"s_line": 2, "s_col": 9, "e_line": 2, "e_col": 12, "file_path": None}
