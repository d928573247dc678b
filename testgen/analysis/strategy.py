"""Resolve idiomatic test conventions for a detected project type."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Mapping

from ..models import ProjectStructure, TestStrategy

STRATEGIES: Dict[str, TestStrategy] = {
    "javascript": TestStrategy("jest", "{filename}.test.js", "__tests__", "jest"),
    "typescript": TestStrategy("jest", "{filename}.test.ts", "__tests__", "jest"),
    "python": TestStrategy("pytest", "test_{filename}.py", "tests", "unittest.mock"),
    "java": TestStrategy("junit", "{Filename}Test.java", "src/test/java", "mockito"),
    "go": TestStrategy("go test", "{filename}_test.go", ".", "testify"),
    "rust": TestStrategy("cargo test", "{filename}_test.rs", "tests", "mockall"),
    "csharp": TestStrategy("nunit", "{Filename}Tests.cs", "tests", "Moq"),
    "php": TestStrategy("phpunit", "{Filename}Test.php", "tests", "Mockery"),
    "ruby": TestStrategy("rspec", "{filename}_spec.rb", "spec", "rspec-mocks"),
}

DEFAULT_STRATEGY = TestStrategy("jest", "{filename}.test.js", "__tests__", "jest")

_REACT_MOCKING_LIBRARY = "@testing-library/react"

FRAMEWORK_DEPENDENCIES: Dict[str, List[str]] = {
    "jest": ["jest", "@types/jest"],
    "vitest": ["vitest"],
    "mocha": ["mocha", "chai"],
    "pytest": ["pytest"],
    "unittest": [],
    "junit": ["junit"],
    "nunit": ["NUnit"],
    "phpunit": ["phpunit/phpunit"],
    "rspec": ["rspec"],
    "go test": [],
    "testing": [],
    "cargo test": [],
}


def framework_dependencies(framework: str | None) -> List[str]:
    """Packages a generated test in the given framework depends on."""
    if not framework:
        return []
    return list(FRAMEWORK_DEPENDENCIES.get(framework.lower(), []))


class TestStrategyResolver:
    """Pure lookup of test conventions keyed by project type."""

    __test__ = False

    def __init__(
        self,
        strategies: Mapping[str, TestStrategy] | None = None,
        default: TestStrategy = DEFAULT_STRATEGY,
    ) -> None:
        self._strategies = dict(strategies) if strategies is not None else dict(STRATEGIES)
        self._default = default

    def resolve(self, structure: ProjectStructure) -> TestStrategy:
        """Return the strategy for a structure; unrecognised types use the default."""
        project_type = (structure.type or "").lower()
        strategy = self._strategies.get(project_type, self._default)

        if structure.test_framework:
            strategy = replace(strategy, test_framework=structure.test_framework)
        if structure.framework == "react" and project_type in {"javascript", "typescript"}:
            strategy = replace(strategy, mocking_library=_REACT_MOCKING_LIBRARY)
        return strategy


def recommendations(strategy: TestStrategy) -> List[str]:
    """Setup actions that bring a repository in line with the strategy."""
    return [
        f"Set up {strategy.test_framework} testing framework",
        f"Create {strategy.test_directory} directory",
        f"Follow {strategy.test_file_pattern} naming convention",
        f"Use {strategy.mocking_library} for mocking",
    ]


__all__ = [
    "DEFAULT_STRATEGY",
    "FRAMEWORK_DEPENDENCIES",
    "STRATEGIES",
    "TestStrategyResolver",
    "framework_dependencies",
    "recommendations",
]
