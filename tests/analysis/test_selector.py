"""Tests for bounded file selection and repository summaries."""

from __future__ import annotations

from testgen.analysis.selector import FileSelector, analyze_repository
from tests._fixtures.repo_builder import records_from


def _paths(records) -> list[str]:
    return [record.path for record in records]


def test_sources_win_over_manifest_when_slots_run_out() -> None:
    files = records_from(
        {
            "package.json": "{}",
            "src/a.js": "export const a = 1;",
            "src/b.js": "export const b = 2;",
            "src/c.js": "export const c = 3;",
            "src/d.js": "export const d = 4;",
            "src/e.js": "export const e = 5;",
        }
    )

    result = FileSelector().select(files, max_files=3)

    assert _paths(result.selected_files) == ["src/a.js", "src/b.js", "src/c.js"]
    assert {record.category for record in result.selected_files} == {"source"}
    assert result.project_structure.type == "javascript"
    assert result.test_strategy.test_framework == "jest"


def test_important_config_follows_sources_when_slots_remain() -> None:
    files = records_from({"package.json": "{}", "src/a.js": "", "src/b.js": ""})

    result = FileSelector().select(files, max_files=5)

    assert _paths(result.selected_files) == ["src/a.js", "src/b.js", "package.json"]


def test_remaining_slots_are_backfilled_with_tests() -> None:
    files = records_from(
        {
            "tests/test_app.py": "def test_app(): pass",
            "app.py": "def run(): pass",
            "README.md": "# demo",
        }
    )

    result = FileSelector().select(files, max_files=5)

    assert _paths(result.selected_files) == ["app.py", "tests/test_app.py"]


def test_selection_never_exceeds_limit_and_clamps_negative() -> None:
    files = records_from({f"src/m{index}.py": "" for index in range(12)})

    assert len(FileSelector().select(files, max_files=4).selected_files) == 4
    assert FileSelector().select(files, max_files=-3).selected_files == []


def test_equal_priority_files_keep_input_order() -> None:
    files = records_from({"src/zeta.py": "", "src/alpha.py": "", "src/mid.py": ""})

    result = FileSelector().select(files, max_files=10)

    assert _paths(result.selected_files) == ["src/zeta.py", "src/alpha.py", "src/mid.py"]


def test_ignored_lockfiles_still_inform_the_build_tool() -> None:
    files = records_from({"package.json": "{}", "pnpm-lock.yaml": "", "src/index.js": ""})

    result = FileSelector().select(files)

    assert result.project_structure.build_tool == "pnpm"
    assert "pnpm-lock.yaml" not in _paths(result.selected_files)


def test_empty_listing_selects_nothing() -> None:
    result = FileSelector().select([])

    assert result.selected_files == []
    assert result.project_structure.type == "unknown"


def test_analyze_counts_languages_and_categories() -> None:
    files = records_from(
        {
            "requirements.txt": "fastapi",
            "app/main.py": "",
            "app/util.py": "",
            "tests/test_main.py": "",
            "docs/index.md": "",
            "node_modules/x/index.js": "",
        }
    )

    analysis = FileSelector().analyze(files)
    payload = analysis.to_dict()

    assert analysis.total_files == 6
    assert analysis.files_by_language["python"] == 3
    assert analysis.files_by_category == {"config": 1, "source": 2, "test": 1, "docs": 1}
    assert analysis.has_tests is True
    assert payload["testFiles"] == ["tests/test_main.py"]
    assert payload["recommendedFiles"][:2] == ["app/main.py", "app/util.py"]
    assert payload["projectStructure"]["framework"] == "fastapi"


def test_analyze_repository_honours_extra_ignores() -> None:
    files = records_from({"src/app.py": "", "generated/client.py": ""})

    analysis = analyze_repository(files, extra_ignores=["generated"])

    assert [record.path for record in analysis.source_files] == ["src/app.py"]
    assert analysis.has_tests is False
