"""Export generated test cases as JSON or as test-file skeletons."""

from __future__ import annotations

import json
import re
from collections import OrderedDict
from pathlib import Path, PurePosixPath
from typing import Dict, List, Sequence

from .models import ProjectStructure, TestCase, TestStrategy, utc_timestamp


def export_json(
    test_cases: Sequence[TestCase],
    *,
    framework: str | None = None,
    structure: ProjectStructure | None = None,
    strategy: TestStrategy | None = None,
) -> str:
    """Serialise cases into a standalone JSON document."""
    document: Dict[str, object] = {
        "testCases": [case.to_dict() for case in test_cases],
        "framework": framework or (strategy.test_framework if strategy else None),
        "exportedAt": utc_timestamp(),
    }
    if structure is not None:
        document["projectStructure"] = structure.to_dict()
    if strategy is not None:
        document["testStrategy"] = strategy.to_dict()
    return json.dumps(document, indent=2)


def target_path_for(source_path: str, strategy: TestStrategy) -> str:
    """Map a source path onto the strategy's test directory and naming pattern."""
    stem = PurePosixPath(source_path).name.split(".")[0] or "module"
    file_name = strategy.test_file_pattern.format(filename=stem, Filename=_capitalise(stem))
    directory = strategy.test_directory.strip("/")
    if directory in {"", "."}:
        parent = PurePosixPath(source_path).parent.as_posix()
        return file_name if parent in {"", "."} else f"{parent}/{file_name}"
    return f"{directory}/{file_name}"


def render_test_files(test_cases: Sequence[TestCase], strategy: TestStrategy) -> Dict[str, str]:
    """Group cases by source file and return `{test path: file text}`."""
    grouped: "OrderedDict[str, List[TestCase]]" = OrderedDict()
    for case in test_cases:
        grouped.setdefault(target_path_for(case.file, strategy), []).append(case)

    rendered: Dict[str, str] = {}
    for path, cases in grouped.items():
        blocks = []
        for case in cases:
            parts = [part for part in (case.setup, case.code, case.teardown) if part]
            blocks.append("\n\n".join(parts))
        rendered[path] = "\n\n".join(blocks).rstrip() + "\n"
    return rendered


def write_test_files(files: Dict[str, str], output_dir: Path) -> List[Path]:
    """Write rendered files below `output_dir`, refusing paths that escape it."""
    root = output_dir.expanduser().resolve()
    written: List[Path] = []
    for relative, text in files.items():
        target = (root / relative).resolve()
        if not target.is_relative_to(root):
            raise ValueError(f"Refusing to write outside {root}: {relative}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        written.append(target)
    return written


def _capitalise(value: str) -> str:
    return re.sub(r"^[a-z]", lambda match: match.group(0).upper(), value)


__all__ = ["export_json", "render_test_files", "target_path_for", "write_test_files"]
