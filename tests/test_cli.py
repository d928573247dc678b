"""CLI behaviour tests."""

from __future__ import annotations

import json

import pytest

from testgen.cli import _build_parser, main
from tests._fixtures.repo_builder import RepoBuilder

_CALC_PY = """\
def add(a, b):
    return a + b
"""


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "analyze"])

    assert args.verbose is True
    assert args.command == "analyze"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["generate", "--verbose"])

    assert args.verbose is True
    assert args.command == "generate"


def test_cli_generate_options() -> None:
    args = _build_parser().parse_args(
        [
            "generate",
            "repo",
            "--max-files",
            "3",
            "--types",
            "unit,api",
            "--complexity",
            "simple",
            "--framework",
            "pytest",
            "--no-edge-cases",
            "--offline",
            "--format",
            "files",
            "--output-dir",
            "out",
        ]
    )

    assert args.path == "repo"
    assert args.max_files == 3
    assert args.types == "unit,api"
    assert args.complexity == "simple"
    assert args.include_edge_cases is False
    assert args.include_negative_tests is None
    assert args.offline is True
    assert args.format == "files"


def test_cli_rejects_unknown_complexity() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["generate", "--complexity", "extreme"])


def test_analyze_prints_summary(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.write({"requirements.txt": "fastapi\n", "calc.py": _CALC_PY, "tests/test_calc.py": "def test_x(): pass\n"})

    main(["analyze", str(repo_builder.path())])

    payload = json.loads(capsys.readouterr().out)
    assert payload["projectStructure"]["type"] == "python"
    assert payload["hasTests"] is True
    assert payload["testStrategy"]["testFramework"] == "pytest"
    assert payload["recommendations"][0] == "Set up pytest testing framework"


def test_generate_offline_prints_json(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.write({"calc.py": _CALC_PY})

    main(["generate", str(repo_builder.path()), "--offline", "--types", "unit,integration"])

    document = json.loads(capsys.readouterr().out)
    assert [case["type"] for case in document["testCases"]] == ["unit", "integration"]
    assert {case["generatedBy"] for case in document["testCases"]} == {"fallback-function-based"}
    assert document["framework"] == "pytest"


def test_generate_files_writes_test_modules(repo_builder: RepoBuilder, tmp_path, capsys) -> None:
    repo_builder.write({"calc.py": _CALC_PY})
    output_dir = tmp_path / "out"

    main(["generate", str(repo_builder.path()), "--offline", "--format", "files", "--output-dir", str(output_dir)])

    captured = capsys.readouterr()
    written = output_dir / "tests" / "test_calc.py"
    assert written.exists()
    assert "from calc import add" in written.read_text(encoding="utf-8")
    assert "Wrote" in captured.out
    assert "No model runner configured" in captured.err


def test_generate_missing_path_exits_with_error(tmp_path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path / "absent"), "--offline"])

    assert excinfo.value.code == 1
    assert "Repository path not found" in capsys.readouterr().err


def test_generate_empty_repository_exits_with_error(repo_builder: RepoBuilder, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(repo_builder.path()), "--offline"])

    assert excinfo.value.code == 1
    assert "No files provided" in capsys.readouterr().err


def test_malformed_config_is_reported(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.write({".testgen.yml": "- not\n- a mapping\n", "calc.py": _CALC_PY})

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(repo_builder.path())])

    assert excinfo.value.code == 1
    assert "testgen analyze failed" in capsys.readouterr().err
