"""File classification by name, path and extension."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from re import Pattern
from typing import Iterable, Sequence

from ..models import Classification, UNKNOWN


@dataclass(frozen=True)
class ExtensionInfo:
    language: str
    category: str
    priority: int


_EXTENSION_TABLE: dict[str, ExtensionInfo] = {
    ".js": ExtensionInfo("javascript", "source", 1),
    ".jsx": ExtensionInfo("javascript", "source", 1),
    ".mjs": ExtensionInfo("javascript", "source", 1),
    ".cjs": ExtensionInfo("javascript", "source", 1),
    ".ts": ExtensionInfo("typescript", "source", 1),
    ".tsx": ExtensionInfo("typescript", "source", 1),
    ".py": ExtensionInfo("python", "source", 1),
    ".java": ExtensionInfo("java", "source", 1),
    ".cpp": ExtensionInfo("cpp", "source", 1),
    ".cc": ExtensionInfo("cpp", "source", 1),
    ".hpp": ExtensionInfo("cpp", "source", 1),
    ".c": ExtensionInfo("c", "source", 1),
    ".h": ExtensionInfo("c", "source", 1),
    ".cs": ExtensionInfo("csharp", "source", 1),
    ".php": ExtensionInfo("php", "source", 1),
    ".rb": ExtensionInfo("ruby", "source", 1),
    ".go": ExtensionInfo("go", "source", 1),
    ".rs": ExtensionInfo("rust", "source", 1),
    ".swift": ExtensionInfo("swift", "source", 1),
    ".kt": ExtensionInfo("kotlin", "source", 1),
    ".scala": ExtensionInfo("scala", "source", 1),
    ".vue": ExtensionInfo("vue", "source", 2),
    ".svelte": ExtensionInfo("svelte", "source", 2),
    # Compound suffixes, matched before the final suffix.
    ".test.js": ExtensionInfo("javascript", "test", 2),
    ".spec.js": ExtensionInfo("javascript", "test", 2),
    ".test.jsx": ExtensionInfo("javascript", "test", 2),
    ".spec.jsx": ExtensionInfo("javascript", "test", 2),
    ".test.ts": ExtensionInfo("typescript", "test", 2),
    ".spec.ts": ExtensionInfo("typescript", "test", 2),
    ".test.tsx": ExtensionInfo("typescript", "test", 2),
    ".spec.tsx": ExtensionInfo("typescript", "test", 2),
    ".test.py": ExtensionInfo("python", "test", 2),
    ".json": ExtensionInfo("json", "config", 3),
    ".yml": ExtensionInfo("yaml", "config", 3),
    ".yaml": ExtensionInfo("yaml", "config", 3),
    ".xml": ExtensionInfo("xml", "config", 3),
    ".toml": ExtensionInfo("toml", "config", 3),
    ".md": ExtensionInfo("markdown", "docs", 4),
    ".txt": ExtensionInfo("text", "docs", 4),
    ".rst": ExtensionInfo("restructuredtext", "docs", 4),
    ".html": ExtensionInfo("html", "web", 4),
    ".css": ExtensionInfo("css", "web", 4),
    ".scss": ExtensionInfo("scss", "web", 4),
    ".less": ExtensionInfo("less", "web", 4),
}

# Naming conventions that mark a plain source extension as an existing test.
_TEST_NAME_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"^test_.+\.py$"),
    re.compile(r"^.+_test\.py$"),
    re.compile(r"^.+_test\.go$"),
    re.compile(r"^.+Tests?\.(java|kt|cs)$"),
    re.compile(r"^.+_spec\.rb$"),
    re.compile(r"^.+Test\.php$"),
)

# Entries match whole path segments or exact file names, not substrings, so
# "logs" skips logs/app.txt but keeps src/catalogs.js.
IGNORED_ENTRIES: tuple[str, ...] = (
    "node_modules",
    ".git",
    ".hg",
    ".svn",
    ".vscode",
    ".idea",
    ".venv",
    "venv",
    "dist",
    "build",
    "target",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "coverage",
    ".nyc_output",
    "logs",
    "*.log",
    ".env",
    ".env.local",
    ".env.development",
    ".env.production",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "Pipfile.lock",
    "poetry.lock",
    "Cargo.lock",
    "*.min.js",
    ".DS_Store",
    "Thumbs.db",
)

IMPORTANT_CONFIG_FILES: frozenset[str] = frozenset(
    {
        "package.json",
        "requirements.txt",
        "Pipfile",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "pom.xml",
        "build.gradle",
        "build.gradle.kts",
        "Cargo.toml",
        "go.mod",
        "composer.json",
        "Gemfile",
        "tsconfig.json",
        "jest.config.js",
        "webpack.config.js",
        "babel.config.js",
        "eslint.config.js",
        ".eslintrc",
        "prettier.config.js",
        ".prettierrc",
        "docker-compose.yml",
        "Dockerfile",
        "Makefile",
    }
)


@dataclass(frozen=True)
class IgnoreRule:
    """An ignore entry: a literal segment/name or a `*` wildcard pattern."""

    pattern: str
    regex: Pattern[str] | None

    @classmethod
    def parse(cls, pattern: str) -> "IgnoreRule":
        cleaned = pattern.strip().strip("/")
        if "*" in cleaned:
            translated = re.escape(cleaned).replace(r"\*", ".*")
            return cls(pattern=cleaned, regex=re.compile(f"^{translated}$"))
        return cls(pattern=cleaned, regex=None)

    def matches(self, path: str, name: str) -> bool:
        if not self.pattern:
            return False
        if self.regex is not None:
            if name and self.regex.match(name):
                return True
            return bool(path) and self.regex.match(path) is not None
        if name == self.pattern:
            return True
        if "/" in self.pattern:
            return f"/{self.pattern}/" in f"/{path}/"
        return self.pattern in path.split("/")


def file_extension(name: str) -> str:
    """Return the lookup suffix, preferring `.test.<ext>`/`.spec.<ext>` forms."""
    if not name:
        return ""
    lowered = name.lower()
    parts = lowered.split(".")
    if len(parts) >= 3 and parts[-2] in {"test", "spec"}:
        return f".{parts[-2]}.{parts[-1]}"
    return PurePosixPath(lowered).suffix


def language_for_path(path: str) -> str:
    """Best-effort language lookup from a path's extension."""
    info = _EXTENSION_TABLE.get(PurePosixPath((path or "").lower()).suffix)
    return info.language if info else UNKNOWN


class FileClassifier:
    """Maps a file name/path to language, category and priority."""

    def __init__(self, extra_ignores: Iterable[str] | None = None) -> None:
        entries: list[str] = list(IGNORED_ENTRIES)
        if extra_ignores:
            entries.extend(entry for entry in extra_ignores if isinstance(entry, str))
        self._rules: Sequence[IgnoreRule] = [IgnoreRule.parse(entry) for entry in entries]

    def classify(self, path: str | None, name: str | None = None) -> Classification:
        """Classify a file; never raises and always returns every field."""
        safe_path = (path or "").replace("\\", "/").strip()
        safe_name = (name or "").strip() or (PurePosixPath(safe_path).name if safe_path else "")

        if not safe_name:
            return self._skip("File name is missing")
        if self.is_ignored(safe_path, safe_name):
            return self._skip("File type or path is ignored")

        if safe_name in IMPORTANT_CONFIG_FILES:
            info = _EXTENSION_TABLE.get(PurePosixPath(safe_name.lower()).suffix)
            return Classification(
                should_analyze=True,
                language=info.language if info else "config",
                category="config",
                priority=2,
                reason="Important configuration file",
            )

        info = _EXTENSION_TABLE.get(file_extension(safe_name))
        if info is None:
            return self._skip("Unsupported file type")

        category = info.category
        priority = info.priority
        if category == "source" and self._looks_like_test(safe_name):
            category, priority = "test", 2

        return Classification(
            should_analyze=True,
            language=info.language,
            category=category,
            priority=priority,
            reason=f"Supported {category} file",
        )

    def is_ignored(self, path: str, name: str) -> bool:
        if not path and not name:
            return True
        return any(rule.matches(path, name) for rule in self._rules)

    @staticmethod
    def _looks_like_test(name: str) -> bool:
        return any(pattern.match(name) for pattern in _TEST_NAME_PATTERNS)

    @staticmethod
    def _skip(reason: str) -> Classification:
        return Classification(
            should_analyze=False,
            language=UNKNOWN,
            category=UNKNOWN,
            priority=4,
            reason=reason,
        )


__all__ = [
    "FileClassifier",
    "IGNORED_ENTRIES",
    "IMPORTANT_CONFIG_FILES",
    "IgnoreRule",
    "file_extension",
    "language_for_path",
]
