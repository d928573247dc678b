"""Tests for test strategy resolution."""

from __future__ import annotations

import pytest

from testgen.analysis.strategy import (
    DEFAULT_STRATEGY,
    STRATEGIES,
    TestStrategyResolver,
    framework_dependencies,
    recommendations,
)
from testgen.models import ProjectStructure, TestStrategy


def test_python_projects_use_pytest_conventions() -> None:
    strategy = TestStrategyResolver().resolve(ProjectStructure(type="python"))

    assert strategy == TestStrategy("pytest", "test_{filename}.py", "tests", "unittest.mock")


def test_unknown_type_falls_back_to_default() -> None:
    assert TestStrategyResolver().resolve(ProjectStructure()) == DEFAULT_STRATEGY


def test_detected_test_framework_overrides_only_the_framework() -> None:
    strategy = TestStrategyResolver().resolve(ProjectStructure(type="typescript", test_framework="vitest"))

    assert strategy.test_framework == "vitest"
    assert strategy.test_file_pattern == STRATEGIES["typescript"].test_file_pattern
    assert strategy.test_directory == STRATEGIES["typescript"].test_directory


def test_react_projects_mock_with_testing_library() -> None:
    strategy = TestStrategyResolver().resolve(ProjectStructure(type="javascript", framework="react"))

    assert strategy.mocking_library == "@testing-library/react"


@pytest.mark.parametrize("project_type", [*STRATEGIES, "unknown", "", "COBOL", "Python"])
def test_resolution_is_total(project_type: str) -> None:
    strategy = TestStrategyResolver().resolve(ProjectStructure(type=project_type))

    assert isinstance(strategy, TestStrategy)
    assert all((strategy.test_framework, strategy.test_file_pattern, strategy.test_directory, strategy.mocking_library))


def test_recommendations_mention_each_convention() -> None:
    actions = recommendations(STRATEGIES["ruby"])

    assert actions == [
        "Set up rspec testing framework",
        "Create spec directory",
        "Follow {filename}_spec.rb naming convention",
        "Use rspec-mocks for mocking",
    ]


def test_framework_dependencies_lookup() -> None:
    assert framework_dependencies("Jest") == ["jest", "@types/jest"]
    assert framework_dependencies("go test") == []
    assert framework_dependencies("unknown-framework") == []
    assert framework_dependencies(None) == []
