"""Bounded, priority-ordered file selection for deep analysis."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..logging import get_logger
from ..models import FileRecord, ProjectStructure, SelectionResult
from .classifier import FileClassifier
from .strategy import TestStrategyResolver
from .structure import ProjectStructureDetector

DEFAULT_MAX_FILES = 10

# Config files at or above this priority carry strategy signal worth analysing.
_HIGH_IMPORTANCE_PRIORITY = 2


@dataclass
class RepositoryAnalysis:
    """Aggregate view of a classified file set."""

    total_files: int
    files_by_language: Dict[str, int]
    files_by_category: Dict[str, int]
    languages: List[str]
    has_tests: bool
    project_structure: ProjectStructure
    test_files: List[FileRecord] = field(default_factory=list)
    config_files: List[FileRecord] = field(default_factory=list)
    source_files: List[FileRecord] = field(default_factory=list)
    documentation_files: List[FileRecord] = field(default_factory=list)
    recommended_files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalFiles": self.total_files,
            "filesByLanguage": dict(self.files_by_language),
            "filesByCategory": dict(self.files_by_category),
            "languages": list(self.languages),
            "hasTests": self.has_tests,
            "testFiles": [record.path for record in self.test_files],
            "configFiles": [record.path for record in self.config_files],
            "sourceFiles": [record.path for record in self.source_files],
            "documentationFiles": [record.path for record in self.documentation_files],
            "recommendedFiles": [record.path for record in self.recommended_files],
            "projectStructure": self.project_structure.to_dict(),
        }


class FileSelector:
    """Classifies a file set and picks the files worth sending for analysis."""

    def __init__(
        self,
        classifier: FileClassifier | None = None,
        detector: ProjectStructureDetector | None = None,
        resolver: TestStrategyResolver | None = None,
    ) -> None:
        self.classifier = classifier or FileClassifier()
        self.detector = detector or ProjectStructureDetector()
        self.resolver = resolver or TestStrategyResolver()
        self.logger = get_logger("selector")

    def classify_all(self, files: Sequence[FileRecord]) -> List[tuple[FileRecord, bool]]:
        """Return each record with its classification applied and its analyse flag."""
        classified: List[tuple[FileRecord, bool]] = []
        for record in files or []:
            result = self.classifier.classify(record.path, record.name)
            classified.append((record.with_classification(result), result.should_analyze))
        return classified

    def select(self, files: Sequence[FileRecord], max_files: int = DEFAULT_MAX_FILES) -> SelectionResult:
        """Pick at most `max_files` records: sources and key configs first, then tests."""
        limit = max(0, int(max_files))
        classified = self.classify_all(files)
        all_records = [record for record, _ in classified]

        structure = self.detector.detect(all_records)
        strategy = self.resolver.resolve(structure)

        analysable = [record for record, should_analyze in classified if should_analyze]
        candidates = [record for record in analysable if self._is_candidate(record)]
        # sorted() is stable, so equal keys keep input order.
        candidates = sorted(candidates, key=lambda record: (record.priority, record.category != "source"))
        selected = candidates[:limit]

        if len(selected) < limit:
            tests = [record for record in analysable if record.category == "test"]
            selected.extend(tests[: limit - len(selected)])

        self.logger.debug(
            "Selected %d of %d files (%d candidates, project type %s)",
            len(selected),
            len(all_records),
            len(candidates),
            structure.type,
        )
        return SelectionResult(
            selected_files=selected,
            project_structure=structure,
            test_strategy=strategy,
        )

    def analyze(self, files: Sequence[FileRecord]) -> RepositoryAnalysis:
        """Summarise a file set by language and category."""
        classified = self.classify_all(files)
        all_records = [record for record, _ in classified]
        analysable = [record for record, should_analyze in classified if should_analyze]

        by_language: Counter[str] = Counter(record.language for record in analysable)
        by_category: Counter[str] = Counter(record.category for record in analysable)

        def of_category(category: str) -> List[FileRecord]:
            return [record for record in analysable if record.category == category]

        test_files = of_category("test")
        return RepositoryAnalysis(
            total_files=len(all_records),
            files_by_language=dict(by_language),
            files_by_category=dict(by_category),
            languages=list(by_language),
            has_tests=bool(test_files),
            project_structure=self.detector.detect(all_records),
            test_files=test_files,
            config_files=of_category("config"),
            source_files=of_category("source"),
            documentation_files=of_category("docs"),
            recommended_files=sorted(analysable, key=lambda record: record.priority),
        )

    @staticmethod
    def _is_candidate(record: FileRecord) -> bool:
        if record.category == "source":
            return True
        return record.category == "config" and record.priority <= _HIGH_IMPORTANCE_PRIORITY


def analyze_repository(
    files: Sequence[FileRecord], *, extra_ignores: Sequence[str] | None = None
) -> RepositoryAnalysis:
    """Summarise a file listing without selecting or fetching anything."""
    return FileSelector(FileClassifier(extra_ignores)).analyze(files)


__all__ = ["DEFAULT_MAX_FILES", "FileSelector", "RepositoryAnalysis", "analyze_repository"]
