"""Collaborator contracts for file sources and model runners."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from ..models import FileRecord


@runtime_checkable
class RepositorySource(Protocol):
    """Lists repository files and reads their contents."""

    def list_files(self) -> List[FileRecord]:
        """Return every file in the repository as an unclassified record."""

    def read(self, path: str) -> str:
        """Return the text content of a file relative to the repository root."""


@runtime_checkable
class ModelRunner(Protocol):
    """Produces a text completion for a prompt."""

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Return the raw model response text."""
