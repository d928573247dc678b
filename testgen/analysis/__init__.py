"""Repository analysis: classification, structure detection and file selection."""

from __future__ import annotations

from .classifier import FileClassifier, file_extension, language_for_path
from .selector import DEFAULT_MAX_FILES, FileSelector, RepositoryAnalysis, analyze_repository
from .strategy import TestStrategyResolver, framework_dependencies, recommendations
from .structure import ProjectStructureDetector

__all__ = [
    "DEFAULT_MAX_FILES",
    "FileClassifier",
    "FileSelector",
    "ProjectStructureDetector",
    "RepositoryAnalysis",
    "TestStrategyResolver",
    "analyze_repository",
    "file_extension",
    "framework_dependencies",
    "language_for_path",
    "recommendations",
]
