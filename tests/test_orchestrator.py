"""Tests for testgen.orchestrator."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

from testgen.config import TestGenSettings
from testgen.errors import EmptyInputError, ModelError, SourceError
from testgen.models import GENERATED_BY_FUNCTION, GENERATED_BY_MODEL, FileRecord, GenerationConfig
from testgen.orchestrator import (
    STAGE_AWAITING_MODEL,
    STAGE_DONE,
    STAGE_FALLING_BACK,
    STAGE_PARSING,
    STAGE_PROMPTING,
    STAGE_SELECTING,
    TestGenerationPipeline,
    pipeline_for_path,
)
from tests._fixtures.repo_builder import RepoBuilder, records_from

_MATH_JS = """\
export function add(a, b) {
  return a + b;
}

export function multiply(a, b) {
  return a * b;
}
"""


class RecordingModel:
    """Model runner double that captures prompts and replays a response."""

    def __init__(self, response: str = "", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[dict[str, object]] = []

    def run(self, prompt: str, *, system: str | None = None) -> str:
        self.calls.append({"prompt": prompt, "system": system})
        if self.error is not None:
            raise self.error
        return self.response


class FailingSource:
    def __init__(self, files: dict[str, str], failing: set[str]) -> None:
        self.files = files
        self.failing = failing

    def list_files(self) -> list[FileRecord]:
        return [FileRecord.from_listing(path, size=len(text)) for path, text in self.files.items()]

    def read(self, path: str) -> str:
        if path in self.failing:
            raise SourceError(f"Unable to read {path}", path=path)
        return self.files[path]


def _model_response(*titles: str) -> str:
    return json.dumps(
        {
            "testCases": [
                {"title": title, "type": "unit", "file": "src/math.js", "code": f"test('{title}', () => {{}});"}
                for title in titles
            ]
        }
    )


def test_empty_input_is_rejected() -> None:
    pipeline = TestGenerationPipeline()

    with pytest.raises(EmptyInputError):
        pipeline.run([])
    with pytest.raises(ValueError):
        pipeline.analyze([])


def test_model_output_becomes_test_cases() -> None:
    model = RecordingModel(_model_response("adds numbers", "multiplies numbers"))
    pipeline = TestGenerationPipeline(model=model)

    result = pipeline.run(records_from({"src/math.js": _MATH_JS}), GenerationConfig())

    assert [case.title for case in result.test_cases] == ["adds numbers", "multiplies numbers"]
    assert all(case.generated_by == GENERATED_BY_MODEL for case in result.test_cases)
    assert result.test_cases[0].function == "adds numbers"
    assert result.stages == [STAGE_SELECTING, STAGE_PROMPTING, STAGE_AWAITING_MODEL, STAGE_PARSING, STAGE_DONE]
    assert result.fallback_reason is None
    assert "File: src/math.js" in model.calls[0]["prompt"]
    assert model.calls[0]["system"]


def test_model_failure_falls_back_to_function_cases() -> None:
    model = RecordingModel(error=ModelError("LLM HTTP runner failed: connection refused"))
    pipeline = TestGenerationPipeline(model=model)

    result = pipeline.run(records_from({"src/math.js": _MATH_JS}), GenerationConfig())

    assert [case.function for case in result.test_cases] == ["add", "multiply"]
    assert all(case.generated_by == GENERATED_BY_FUNCTION for case in result.test_cases)
    assert all(case.type == "unit" and case.priority == "high" for case in result.test_cases)
    assert result.fallback_reason == "AI generation failed: LLM HTTP runner failed: connection refused"
    assert result.stages == [
        STAGE_SELECTING,
        STAGE_PROMPTING,
        STAGE_AWAITING_MODEL,
        STAGE_FALLING_BACK,
        STAGE_DONE,
    ]


def test_unexpected_model_exception_also_falls_back() -> None:
    pipeline = TestGenerationPipeline(model=RecordingModel(error=RuntimeError("boom")))

    result = pipeline.run(records_from({"src/math.js": _MATH_JS}))

    assert result.fallback_reason == "AI generation failed: boom"
    assert result.test_cases


def test_unparseable_model_output_falls_back() -> None:
    pipeline = TestGenerationPipeline(model=RecordingModel("I'm sorry, I cannot help with that."))

    result = pipeline.run(records_from({"src/math.js": _MATH_JS}))

    assert result.fallback_reason == "Parsing failed: Response did not contain a usable testCases array"
    assert STAGE_PARSING in result.stages
    assert result.stages[-2:] == [STAGE_FALLING_BACK, STAGE_DONE]
    assert len(result.test_cases) == 2


def test_out_of_range_config_values_still_generate() -> None:
    pipeline = TestGenerationPipeline(model=None)

    result = pipeline.run(records_from({"src/math.js": _MATH_JS}), GenerationConfig(types=(), complexity="extreme"))

    assert [case.function for case in result.test_cases] == ["add", "multiply"]
    assert all(case.type == "unit" for case in result.test_cases)
    assert result.stages[-1] == STAGE_DONE


def test_fallback_follows_the_detected_test_framework() -> None:
    files = records_from({"package.json": "{}", ".mocharc.json": "{}", "src/math.js": _MATH_JS})

    result = TestGenerationPipeline(model=None).run(files)

    assert result.test_strategy.test_framework == "mocha"
    assert all("require('chai')" in case.code for case in result.test_cases if case.function)
    assert [case.function for case in result.test_cases if case.function] == ["add", "multiply"]


def test_missing_model_uses_templates_directly() -> None:
    pipeline = TestGenerationPipeline(model=None)

    result = pipeline.run(records_from({"src/math.js": _MATH_JS}))

    assert result.fallback_reason == "No model runner configured"
    assert result.stages == [STAGE_SELECTING, STAGE_PROMPTING, STAGE_FALLING_BACK, STAGE_DONE]
    assert result.used_fallback is True


def test_summary_reflects_selection_bounds() -> None:
    files = records_from(
        {
            "package.json": "{}",
            **{f"src/m{index}.js": f"export function f{index}() {{}}" for index in range(5)},
        }
    )
    pipeline = TestGenerationPipeline(model=RecordingModel(_model_response("only")))

    result = pipeline.run(files, max_files=3)

    assert result.summary == {"totalFiles": 6, "selectedFiles": 3, "analyzedFiles": 3}
    assert result.project_structure.type == "javascript"
    assert result.test_strategy.test_framework == "jest"


def test_fetch_errors_are_reported_and_skipped() -> None:
    source = FailingSource({"src/a.py": "def a():\n    pass\n", "src/b.py": "def b():\n    pass\n"}, {"src/b.py"})
    pipeline = TestGenerationPipeline(model=None)

    result = pipeline.run(source.list_files(), source=source)

    assert [error.path for error in result.file_errors] == ["src/b.py"]
    assert result.summary["analyzedFiles"] == 1
    assert {case.file for case in result.test_cases} == {"src/a.py"}


def test_nothing_analysable_yields_empty_result() -> None:
    pipeline = TestGenerationPipeline(model=RecordingModel(_model_response("unused")), max_file_size=10)

    result = pipeline.run(records_from({"src/big.py": "x = 1\n" * 10}))

    assert result.test_cases == []
    assert result.summary["analyzedFiles"] == 0
    assert result.file_errors[0].message.startswith("File too large")
    assert result.fallback_reason == "No analysable files remain after fetching content"
    assert result.stages == [STAGE_SELECTING, STAGE_FALLING_BACK, STAGE_DONE]


def test_generate_for_path_reads_local_repository(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": '{"name": "demo"}',
            "src/math.js": _MATH_JS,
            "README.md": "# demo\n",
            "node_modules/dep/index.js": "module.exports = {};\n",
        }
    )
    model = RecordingModel(_model_response("adds"))

    result = TestGenerationPipeline(model=model).generate_for_path(repo_builder.path(), GenerationConfig())

    assert result.project_structure.type == "javascript"
    assert result.summary == {"totalFiles": 3, "selectedFiles": 2, "analyzedFiles": 2}
    assert "export function add(a, b)" in model.calls[0]["prompt"]
    assert [case.title for case in result.test_cases] == ["adds"]


def test_from_settings_respects_exclusions_and_offline_mode(tmp_path: Path) -> None:
    settings = TestGenSettings(root=tmp_path, exclude_paths=["generated"])

    pipeline = TestGenerationPipeline.from_settings(settings, model=RecordingModel(), offline=True)
    result = pipeline.run(records_from({"generated/api.py": "def api(): pass", "core.py": "def core(): pass"}))

    assert pipeline.model is None
    assert [case.file for case in result.test_cases] == ["core.py"]


def test_from_settings_without_llm_config_has_no_model(tmp_path: Path) -> None:
    pipeline = TestGenerationPipeline.from_settings(TestGenSettings(root=tmp_path))

    assert pipeline.model is None


def test_from_settings_with_environment_builds_runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TESTGEN_LLM_BASE_URL", "http://localhost:11434/v1")

    pipeline = TestGenerationPipeline.from_settings(TestGenSettings(root=tmp_path))

    assert pipeline.model is not None
    assert pipeline.model.base_url == "http://localhost:11434/v1"


def test_pipeline_for_path_loads_settings(repo_builder: RepoBuilder) -> None:
    repo_builder.write({".testgen.yml": "selection:\n  max_file_size: 5\n", "app.py": "def run():\n    pass\n"})

    pipeline, settings = pipeline_for_path(repo_builder.path(), offline=True)

    assert settings.selection.max_file_size == 5
    assert pipeline.max_file_size == 5
