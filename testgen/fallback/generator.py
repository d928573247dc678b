"""Deterministic template-based test cases used when the model cannot help."""

from __future__ import annotations

import re
import uuid
from pathlib import Path, PurePosixPath
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..analysis.classifier import language_for_path
from ..analysis.strategy import framework_dependencies
from ..logging import get_logger
from ..models import (
    GENERATED_BY_FUNCTION,
    GENERATED_BY_GENERIC,
    FileRecord,
    GenerationConfig,
    Signature,
    TestCase,
    UNKNOWN,
    utc_timestamp,
)
from .extractors import MAX_SIGNATURES_PER_FILE, extract_signatures

DEFAULT_FRAMEWORKS: Dict[str, str] = {
    "javascript": "jest",
    "typescript": "jest",
    "vue": "jest",
    "svelte": "jest",
    "python": "pytest",
    "java": "junit",
    "kotlin": "junit",
    "csharp": "nunit",
    "php": "phpunit",
    "ruby": "rspec",
    "go": "testing",
    "rust": "cargo test",
}

# Framework names as they appear in configs and catalogues, mapped to template directories.
_FRAMEWORK_TEMPLATE_KEYS: Dict[str, str] = {
    "go test": "testing",
    "cargo test": "cargo",
    "built-in": "cargo",
    "junit5": "junit",
}

_TEMPLATE_LANGUAGE_ALIASES: Dict[str, str] = {
    "vue": "javascript",
    "svelte": "javascript",
}

_HASH_COMMENT_LANGUAGES = frozenset({"python", "ruby", "yaml", "toml", "config", "text"})


class FallbackGenerator:
    """Renders skeleton test cases from per-language Jinja2 templates."""

    def __init__(
        self,
        *,
        templates_dir: Path | None = None,
        max_signatures: int = MAX_SIGNATURES_PER_FILE,
    ) -> None:
        self.max_signatures = max_signatures
        self.logger = get_logger("fallback")
        self._env = self._create_env(templates_dir)

    def generate(
        self,
        reason: str,
        files: Sequence[FileRecord],
        config: GenerationConfig | None = None,
        *,
        detected_framework: str | None = None,
    ) -> List[TestCase]:
        """Build template cases for every file; always succeeds.

        The framework is the explicitly configured one, else the project's
        detected framework when a template exists for it in the file's
        language, else the language default.
        """
        config = config or GenerationConfig()
        self.logger.warning("Creating fallback test cases: %s", reason)

        cases: List[TestCase] = []
        for file_index, record in enumerate(files or []):
            language = self._language(record)
            framework = self._framework(language, config, detected_framework)
            signatures = extract_signatures(record.content, language, limit=self.max_signatures)
            if signatures:
                for sig_index, signature in enumerate(signatures):
                    for type_index, test_type in enumerate(config.types):
                        cases.append(
                            self._function_case(
                                record,
                                signature,
                                test_type,
                                language,
                                framework,
                                config,
                                f"{file_index}_{sig_index}_{type_index}",
                            )
                        )
            else:
                for type_index, test_type in enumerate(config.types):
                    cases.append(
                        self._generic_case(
                            record, test_type, language, framework, config, f"{file_index}_{type_index}"
                        )
                    )

        self.logger.info("Created %d fallback test cases", len(cases))
        return cases

    def _function_case(
        self,
        record: FileRecord,
        signature: Signature,
        test_type: str,
        language: str,
        framework: str,
        config: GenerationConfig,
        suffix: str,
    ) -> TestCase:
        code = self._render(
            "function",
            language,
            framework,
            self._context(record, test_type, language, framework, config, name=signature.name),
        )
        return TestCase(
            id=f"fallback_{uuid.uuid4().hex[:12]}_{suffix}",
            title=f"Test {signature.name} function - {test_type}",
            description=f"{test_type} test for {signature.name} function in {record.path}",
            type=test_type,
            priority="high" if signature.is_exported else "medium",
            file=record.path,
            function=signature.name,
            code=code,
            dependencies=tuple(framework_dependencies(framework)),
            tags=_unique_tags(language, framework),
            generated_by=GENERATED_BY_FUNCTION,
            created_at=utc_timestamp(),
        )

    def _generic_case(
        self,
        record: FileRecord,
        test_type: str,
        language: str,
        framework: str,
        config: GenerationConfig,
        suffix: str,
    ) -> TestCase:
        code = self._render(
            "module",
            language,
            framework,
            self._context(record, test_type, language, framework, config, name=None),
        )
        return TestCase(
            id=f"fallback_generic_{uuid.uuid4().hex[:12]}_{suffix}",
            title=f"{test_type} test for {record.name or record.path}",
            description=f"Generated {test_type} test case for {record.path}",
            type=test_type,
            priority="medium",
            file=record.path,
            function=None,
            code=code,
            dependencies=tuple(framework_dependencies(framework)),
            tags=_unique_tags(language, framework),
            generated_by=GENERATED_BY_GENERIC,
            created_at=utc_timestamp(),
        )

    def _framework(self, language: str, config: GenerationConfig, detected: str | None) -> str:
        if config.explicit_framework:
            return config.explicit_framework
        if detected and self._has_template(language, detected):
            return detected
        return DEFAULT_FRAMEWORKS.get(language, "jest")

    def _has_template(self, language: str, framework: str) -> bool:
        try:
            self._env.get_template(_template_name("function", language, framework))
        except TemplateNotFound:
            return False
        return True

    def _render(self, kind: str, language: str, framework: str, context: Dict[str, object]) -> str:
        try:
            template = self._env.get_template(_template_name(kind, language, framework))
        except TemplateNotFound:
            template = self._env.get_template(f"generic/{kind}.j2")
        return template.render(**context).strip()

    @staticmethod
    def _context(
        record: FileRecord,
        test_type: str,
        language: str,
        framework: str,
        config: GenerationConfig,
        *,
        name: str | None,
    ) -> Dict[str, object]:
        path = PurePosixPath(record.path)
        stem = path.name.split(".")[0] if path.name else "module"
        return {
            "name": name,
            "class_name": _pascal_case(name or stem),
            "file_path": record.path,
            "file_name": record.name or path.name,
            "module_path": _module_path(record.path, language),
            "package_name": _identifier(path.parent.name) or "main",
            "test_type": test_type,
            "language": language,
            "framework": framework,
            "include_edge_cases": config.include_edge_cases,
            "include_negative_tests": config.include_negative_tests,
            "comment": "#" if language in _HASH_COMMENT_LANGUAGES else "//",
        }

    @staticmethod
    def _language(record: FileRecord) -> str:
        if record.language and record.language != UNKNOWN:
            return record.language
        return language_for_path(record.path)

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def _module_path(path: str, language: str) -> str:
    without_suffix = re.sub(r"\.[^/.]+$", "", path)
    if language == "python":
        return without_suffix.replace("/", ".")
    return without_suffix


def _pascal_case(value: str) -> str:
    parts = re.split(r"[^0-9A-Za-z]+|(?<=[a-z0-9])(?=[A-Z])", value)
    joined = "".join(part[:1].upper() + part[1:] for part in parts if part)
    return joined or "Subject"


def _identifier(value: str) -> str:
    return re.sub(r"\W+", "_", value).strip("_").lower()


def _template_name(kind: str, language: str, framework: str) -> str:
    template_language = _TEMPLATE_LANGUAGE_ALIASES.get(language, language)
    framework_key = _FRAMEWORK_TEMPLATE_KEYS.get(framework.lower(), framework.lower())
    return f"{template_language}/{framework_key}/{kind}.j2"


def _unique_tags(language: str, framework: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys((language, framework, "fallback")))


__all__ = ["DEFAULT_FRAMEWORKS", "FallbackGenerator"]
