"""Project structure detection from file names and paths."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, Iterable, Optional, Sequence, Set

from ..models import FileRecord, ProjectStructure, UNKNOWN


@dataclass(frozen=True)
class FileSet:
    """Name and path view over a file list, queried by marker rules."""

    names: frozenset[str]
    paths: tuple[str, ...]

    @classmethod
    def from_records(cls, files: Iterable[FileRecord]) -> "FileSet":
        names: Set[str] = set()
        paths: list[str] = []
        for record in files:
            path = (record.path or "").replace("\\", "/")
            name = record.name or (PurePosixPath(path).name if path else "")
            if name:
                names.add(name)
            if path:
                paths.append(path)
        return cls(names=frozenset(names), paths=tuple(paths))

    def has_name(self, *candidates: str) -> bool:
        return any(candidate in self.names for candidate in candidates)

    def has_suffix(self, *suffixes: str) -> bool:
        return any(name.endswith(suffixes) for name in self.names)

    def path_contains(self, *fragments: str) -> bool:
        return any(fragment in path for path in self.paths for fragment in fragments)


Predicate = Callable[[FileSet], bool]


@dataclass(frozen=True)
class TypeRule:
    """Maps a manifest marker to a project type."""

    type: str
    matches: Predicate
    language: Optional[str] = None
    build_tool: Optional[str] = None
    build_tool_resolver: Optional[Callable[[FileSet], str]] = None


@dataclass(frozen=True)
class FrameworkRule:
    framework: str
    types: frozenset[str]
    matches: Predicate


@dataclass(frozen=True)
class TestFrameworkRule:
    __test__ = False

    test_framework: str
    matches: Predicate


def _node_build_tool(files: FileSet) -> str:
    if files.has_name("pnpm-lock.yaml"):
        return "pnpm"
    if files.has_name("yarn.lock"):
        return "yarn"
    return "npm"


_JS_TYPES = frozenset({"javascript", "typescript"})

# Order matters: the first matching rule decides the project type.
TYPE_RULES: tuple[TypeRule, ...] = (
    TypeRule(
        type="typescript",
        matches=lambda f: f.has_name("package.json") and f.has_name("tsconfig.json"),
        language="typescript",
        build_tool_resolver=_node_build_tool,
    ),
    TypeRule(
        type="javascript",
        matches=lambda f: f.has_name("package.json"),
        language="javascript",
        build_tool_resolver=_node_build_tool,
    ),
    TypeRule(
        type="python",
        matches=lambda f: f.has_name("requirements.txt", "Pipfile", "pyproject.toml", "setup.py"),
        language="python",
    ),
    TypeRule(type="java", matches=lambda f: f.has_name("pom.xml"), language="java", build_tool="maven"),
    TypeRule(
        type="java",
        matches=lambda f: f.has_name("build.gradle", "build.gradle.kts"),
        language="java",
        build_tool="gradle",
    ),
    TypeRule(type="go", matches=lambda f: f.has_name("go.mod"), language="go", build_tool="go"),
    TypeRule(type="rust", matches=lambda f: f.has_name("Cargo.toml"), language="rust", build_tool="cargo"),
    TypeRule(
        type="csharp",
        matches=lambda f: f.has_suffix(".csproj", ".sln"),
        language="csharp",
        build_tool="dotnet",
    ),
    TypeRule(type="php", matches=lambda f: f.has_name("composer.json"), language="php", build_tool="composer"),
    TypeRule(type="ruby", matches=lambda f: f.has_name("Gemfile"), language="ruby", build_tool="bundler"),
)

FRAMEWORK_RULES: tuple[FrameworkRule, ...] = (
    FrameworkRule("react", _JS_TYPES, lambda f: f.path_contains("src/App.js", "src/App.jsx", "src/App.tsx")),
    FrameworkRule(
        "nextjs",
        _JS_TYPES,
        lambda f: f.has_name("next.config.js", "next.config.mjs", "next.config.ts")
        or any("pages/" in path and "_app." in path for path in f.paths),
    ),
    FrameworkRule("nuxtjs", _JS_TYPES, lambda f: f.path_contains("nuxt.config")),
    FrameworkRule("angular", _JS_TYPES, lambda f: f.path_contains("angular.json")),
    FrameworkRule("svelte", _JS_TYPES, lambda f: f.path_contains("svelte.config")),
    FrameworkRule("django", frozenset({"python"}), lambda f: f.has_name("manage.py")),
    FrameworkRule("flask", frozenset({"python"}), lambda f: f.has_name("app.py") or f.path_contains("flask")),
    FrameworkRule("fastapi", frozenset({"python"}), lambda f: f.has_name("main.py") or f.path_contains("fastapi")),
    FrameworkRule("spring", frozenset({"java"}), lambda f: f.path_contains("spring")),
    FrameworkRule("rails", frozenset({"ruby"}), lambda f: f.path_contains("config/routes.rb")),
    FrameworkRule("laravel", frozenset({"php"}), lambda f: f.has_name("artisan")),
)

TEST_FRAMEWORK_RULES: tuple[TestFrameworkRule, ...] = (
    TestFrameworkRule(
        "jest",
        lambda f: f.has_name("jest.config.js", "jest.config.ts", "jest.config.mjs") or f.path_contains("jest"),
    ),
    TestFrameworkRule("vitest", lambda f: f.has_name("vitest.config.ts", "vitest.config.js")),
    TestFrameworkRule(
        "cypress",
        lambda f: f.has_name("cypress.json", "cypress.config.js", "cypress.config.ts") or f.path_contains("cypress"),
    ),
    TestFrameworkRule("playwright", lambda f: f.has_name("playwright.config.ts", "playwright.config.js")),
    TestFrameworkRule("mocha", lambda f: f.has_name(".mocharc", ".mocharc.json", ".mocharc.yml")),
    TestFrameworkRule(
        "pytest",
        lambda f: f.has_name("pytest.ini", "conftest.py")
        or f.path_contains("pytest")
        or any(name.startswith("test_") and name.endswith(".py") for name in f.names),
    ),
    TestFrameworkRule("unittest", lambda f: f.path_contains("unittest")),
)


class ProjectStructureDetector:
    """Infers project type, framework, build tool and test framework."""

    def __init__(
        self,
        type_rules: Sequence[TypeRule] = TYPE_RULES,
        framework_rules: Sequence[FrameworkRule] = FRAMEWORK_RULES,
        test_framework_rules: Sequence[TestFrameworkRule] = TEST_FRAMEWORK_RULES,
    ) -> None:
        self._type_rules = tuple(type_rules)
        self._framework_rules = tuple(framework_rules)
        self._test_framework_rules = tuple(test_framework_rules)

    def detect(self, files: Sequence[FileRecord]) -> ProjectStructure:
        """Return the structure for the whole file set; defaults to unknown."""
        file_set = FileSet.from_records(files or [])
        if not file_set.names and not file_set.paths:
            return ProjectStructure()

        project_type = UNKNOWN
        language: Optional[str] = None
        build_tool: Optional[str] = None

        rule = self._match_type_rule(file_set)
        if rule is not None:
            project_type = rule.type
            language = rule.language
            build_tool = rule.build_tool_resolver(file_set) if rule.build_tool_resolver else rule.build_tool
        else:
            inferred = self._infer_language(files)
            if inferred is not None:
                project_type = inferred
                language = inferred

        return ProjectStructure(
            type=project_type,
            framework=self._match_framework(project_type, file_set),
            build_tool=build_tool,
            test_framework=self._match_test_framework(file_set),
            language=language,
        )

    def _match_type_rule(self, file_set: FileSet) -> Optional[TypeRule]:
        for rule in self._type_rules:
            if rule.matches(file_set):
                return rule
        return None

    def _match_framework(self, project_type: str, file_set: FileSet) -> Optional[str]:
        for rule in self._framework_rules:
            if project_type in rule.types and rule.matches(file_set):
                return rule.framework
        return None

    def _match_test_framework(self, file_set: FileSet) -> Optional[str]:
        for rule in self._test_framework_rules:
            if rule.matches(file_set):
                return rule.test_framework
        return None

    @staticmethod
    def _infer_language(files: Sequence[FileRecord]) -> Optional[str]:
        counts = Counter(
            record.language
            for record in files
            if record.category == "source" and record.language and record.language != UNKNOWN
        )
        if not counts:
            return None
        # most_common keeps first-seen order for ties.
        return counts.most_common(1)[0][0]


__all__ = [
    "FRAMEWORK_RULES",
    "FileSet",
    "FrameworkRule",
    "ProjectStructureDetector",
    "TEST_FRAMEWORK_RULES",
    "TYPE_RULES",
    "TestFrameworkRule",
    "TypeRule",
]
