"""Filesystem-backed repository source and concurrent content fetching."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from ..config import DEFAULT_MAX_FILE_SIZE
from ..errors import SourceError
from ..logging import get_logger
from ..models import FileError, FileRecord
from .base import RepositorySource

DEFAULT_FETCH_WORKERS = 8

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

_logger = get_logger("sources")


@dataclass
class PathRule:
    """Represents an ignore rule parsed from .gitignore or .testgen.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str, negate: bool = False) -> PathRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return PathRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_gitignore(path: Path) -> List[PathRule]:
    if not path.exists():
        return []

    rules: List[PathRule] = []
    for raw_line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[PathRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


class LocalRepositorySource:
    """Serves files from a directory on disk."""

    def __init__(self, root: str | Path, *, exclude_paths: Iterable[str] | None = None) -> None:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")
        self.root = root_path
        self._rules = parse_gitignore(root_path / ".gitignore")
        for pattern in exclude_paths or []:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                self._rules.append(rule)

    def list_files(self) -> List[FileRecord]:
        records: List[FileRecord] = []
        for path in self._iter_files():
            rel_path = path.relative_to(self.root).as_posix()
            try:
                size = path.stat().st_size
            except OSError:
                continue
            records.append(FileRecord.from_listing(rel_path, size=size))
        return records

    def read(self, path: str) -> str:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise SourceError(f"Path escapes repository root: {path}", path=path)
        try:
            data = target.read_bytes()
        except OSError as exc:
            raise SourceError(f"Unable to read {path}: {exc.strerror or exc}", path=path) from exc
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SourceError(f"{path} is not a UTF-8 text file", path=path) from exc

    def _iter_files(self) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(self.root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(self.root).as_posix() if current_dir != self.root else ""

            kept_dirs = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, self._rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, self._rules):
                    continue
                yield current_dir / filename


def fetch_contents(
    records: Sequence[FileRecord],
    source: RepositorySource | None,
    *,
    max_workers: int = DEFAULT_FETCH_WORKERS,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
) -> Tuple[List[FileRecord], List[FileError]]:
    """Fetch content for records concurrently, isolating per-file failures.

    Records that already carry content are only size-checked; without a
    source, records lacking content pass through unchanged. Order of the
    returned records follows the input order.
    """

    def fetch(record: FileRecord) -> FileRecord | FileError:
        if record.size > max_file_size:
            return FileError(record.path, _too_large(record.size, max_file_size))
        if record.content is not None:
            fetched = record.with_content(record.content)
        elif source is None:
            return record
        else:
            try:
                fetched = record.with_content(source.read(record.path))
            except (SourceError, OSError) as exc:
                return FileError(record.path, str(exc))
        if fetched.size > max_file_size:
            return FileError(record.path, _too_large(fetched.size, max_file_size))
        return fetched

    if not records:
        return [], []

    workers = max(1, min(max_workers, len(records)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        outcomes = list(executor.map(fetch, records))

    fetched: List[FileRecord] = []
    errors: List[FileError] = []
    for outcome in outcomes:
        if isinstance(outcome, FileError):
            _logger.warning("Skipping %s: %s", outcome.path, outcome.message)
            errors.append(outcome)
        else:
            fetched.append(outcome)
    return fetched, errors


def _too_large(size: int, limit: int) -> str:
    return f"File too large ({size} bytes, limit {limit})"


__all__ = [
    "DEFAULT_FETCH_WORKERS",
    "PathRule",
    "LocalRepositorySource",
    "build_ignore_rule",
    "fetch_contents",
    "parse_gitignore",
]
