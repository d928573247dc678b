"""Core data models shared across testgen components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

FILE_CATEGORIES: tuple[str, ...] = ("source", "test", "config", "docs", "web", "unknown")

TEST_TYPES: tuple[str, ...] = (
    "unit",
    "integration",
    "e2e",
    "performance",
    "security",
    "api",
    "database",
    "visual",
    "accessibility",
)

COMPLEXITY_LEVELS: tuple[str, ...] = ("simple", "medium", "complex", "adaptive")

PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")

GENERATED_BY_MODEL = "model"
GENERATED_BY_FUNCTION = "fallback-function-based"
GENERATED_BY_GENERIC = "fallback-generic"

UNKNOWN = "unknown"


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class FileRecord:
    """A repository file, optionally classified and carrying fetched content."""

    path: str
    name: str
    content: Optional[str] = None
    size: int = 0
    language: str = UNKNOWN
    category: str = UNKNOWN
    priority: int = 4

    @classmethod
    def from_listing(cls, path: str, size: int = 0, content: str | None = None) -> "FileRecord":
        """Build an unclassified record from a tree listing entry."""
        cleaned = (path or "").replace("\\", "/")
        name = PurePosixPath(cleaned).name if cleaned else ""
        return cls(path=cleaned, name=name, content=content, size=size)

    def with_content(self, content: str, size: int | None = None) -> "FileRecord":
        """Return a copy holding fetched content."""
        effective = size if size is not None else len(content.encode("utf-8"))
        return replace(self, content=content, size=effective)

    def with_classification(self, classification: "Classification") -> "FileRecord":
        return replace(
            self,
            language=classification.language,
            category=classification.category,
            priority=classification.priority,
        )


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a single file name/path pair."""

    should_analyze: bool
    language: str
    category: str
    priority: int
    reason: str


@dataclass(frozen=True)
class ProjectStructure:
    """Project shape inferred from the full file set."""

    type: str = UNKNOWN
    framework: Optional[str] = None
    build_tool: Optional[str] = None
    test_framework: Optional[str] = None
    language: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "type": self.type,
            "framework": self.framework,
            "buildTool": self.build_tool,
            "testFramework": self.test_framework,
            "language": self.language,
        }


@dataclass(frozen=True)
class TestStrategy:
    """Test-authoring convention for a project type."""

    __test__ = False

    test_framework: str
    test_file_pattern: str
    test_directory: str
    mocking_library: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "testFramework": self.test_framework,
            "testFilePattern": self.test_file_pattern,
            "testDirectory": self.test_directory,
            "mockingLibrary": self.mocking_library,
        }


@dataclass(frozen=True)
class GenerationConfig:
    """Caller supplied generation options with coerced defaults."""

    types: Tuple[str, ...] = ("unit",)
    complexity: str = "medium"
    framework: str = "auto"
    include_edge_cases: bool = True
    include_negative_tests: bool = True

    def __post_init__(self) -> None:
        framework = self.framework.strip() if isinstance(self.framework, str) else ""
        object.__setattr__(self, "types", _coerce_types(self.types))
        object.__setattr__(self, "complexity", _coerce_choice(self.complexity, COMPLEXITY_LEVELS, "medium"))
        object.__setattr__(self, "framework", framework or "auto")
        object.__setattr__(self, "include_edge_cases", _coerce_bool(self.include_edge_cases, True))
        object.__setattr__(self, "include_negative_tests", _coerce_bool(self.include_negative_tests, True))

    @property
    def primary_type(self) -> str:
        return self.types[0] if self.types else "unit"

    @property
    def explicit_framework(self) -> Optional[str]:
        """Return the requested framework name, or None when set to auto."""
        if self.framework.lower() == "auto":
            return None
        return self.framework

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "GenerationConfig":
        """Coerce a loosely-typed mapping into a config; never raises."""
        if not isinstance(data, Mapping):
            return cls()

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            types=pick("types", "testTypes", "test_types", "testType", "test_type"),
            complexity=pick("complexity"),
            framework=pick("framework"),
            include_edge_cases=pick("includeEdgeCases", "include_edge_cases"),
            include_negative_tests=pick("includeNegativeTests", "include_negative_tests"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": list(self.types),
            "complexity": self.complexity,
            "framework": self.framework,
            "includeEdgeCases": self.include_edge_cases,
            "includeNegativeTests": self.include_negative_tests,
        }


@dataclass(frozen=True)
class TestCase:
    """A single generated test-case record."""

    __test__ = False

    id: str
    title: str
    description: str
    type: str
    priority: str
    file: str
    code: str
    generated_by: str
    created_at: str
    function: Optional[str] = None
    setup: Optional[str] = None
    teardown: Optional[str] = None
    dependencies: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
            "file": self.file,
            "function": self.function,
            "code": self.code,
            "setup": self.setup,
            "teardown": self.teardown,
            "dependencies": list(self.dependencies),
            "tags": list(self.tags),
            "generatedBy": self.generated_by,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Signature:
    """A function or method name discovered in source content."""

    name: str
    is_exported: bool


@dataclass(frozen=True)
class FileError:
    """A per-file failure recorded while preparing analysis input."""

    path: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass
class SelectionResult:
    """Files chosen for deep analysis plus the inferred conventions."""

    selected_files: List[FileRecord]
    project_structure: ProjectStructure
    test_strategy: TestStrategy


@dataclass
class GenerationResult:
    """Everything one pipeline run produces for callers."""

    test_cases: List[TestCase]
    project_structure: ProjectStructure
    test_strategy: TestStrategy
    summary: Dict[str, int]
    file_errors: List[FileError] = field(default_factory=list)
    stages: List[str] = field(default_factory=list)
    fallback_reason: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback_reason is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "testCases": [case.to_dict() for case in self.test_cases],
            "analysis": {
                **self.summary,
                "projectStructure": self.project_structure.to_dict(),
                "testStrategy": self.test_strategy.to_dict(),
            },
            "fileErrors": [error.to_dict() for error in self.file_errors],
            "fallbackReason": self.fallback_reason,
        }


def _coerce_types(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        candidates: Sequence[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        candidates = list(value)
    else:
        candidates = []

    ordered: List[str] = []
    for item in candidates:
        if not isinstance(item, str):
            continue
        normalised = item.strip().lower()
        if normalised in TEST_TYPES and normalised not in ordered:
            ordered.append(normalised)
    return tuple(ordered) or ("unit",)


def _coerce_choice(value: Any, allowed: Sequence[str], default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return default


__all__ = [
    "COMPLEXITY_LEVELS",
    "Classification",
    "FILE_CATEGORIES",
    "FileError",
    "FileRecord",
    "GENERATED_BY_FUNCTION",
    "GENERATED_BY_GENERIC",
    "GENERATED_BY_MODEL",
    "GenerationConfig",
    "GenerationResult",
    "PRIORITIES",
    "ProjectStructure",
    "SelectionResult",
    "Signature",
    "TEST_TYPES",
    "TestCase",
    "TestStrategy",
    "UNKNOWN",
    "utc_timestamp",
]
