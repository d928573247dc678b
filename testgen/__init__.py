"""Repository-driven test case generation."""

from .errors import ConfigError, EmptyInputError, ModelError, SourceError, TestGenError
from .models import FileRecord, GenerationConfig, GenerationResult, TestCase
from .orchestrator import TestGenerationPipeline

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "EmptyInputError",
    "FileRecord",
    "GenerationConfig",
    "GenerationResult",
    "ModelError",
    "SourceError",
    "TestCase",
    "TestGenError",
    "TestGenerationPipeline",
    "__version__",
]
