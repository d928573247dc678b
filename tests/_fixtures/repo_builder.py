"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping

from testgen.models import FileRecord
from testgen.sources.local import LocalRepositorySource


class RepoBuilder:
    """Utility for writing files into a throwaway repository and listing it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def source(self) -> LocalRepositorySource:
        return LocalRepositorySource(self.root)

    def records(self) -> List[FileRecord]:
        """Return a fresh listing of the repository contents."""
        return self.source().list_files()

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


def records_from(files: Mapping[str, str]) -> List[FileRecord]:
    """Build in-memory records carrying content, in mapping order."""
    return [
        FileRecord.from_listing(path, content=textwrap.dedent(content).lstrip("\n"))
        for path, content in files.items()
    ]


__all__ = ["RepoBuilder", "records_from"]
