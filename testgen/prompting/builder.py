"""Builds test-generation prompts for the model runner."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..analysis.classifier import language_for_path
from ..models import FileRecord, GenerationConfig, ProjectStructure, TestStrategy, UNKNOWN
from .constants import CASES_PER_FILE, COMPLEXITY_GUIDANCE, CONTENT_CHAR_LIMIT, MAX_TEST_CASES

_OUTPUT_SCHEMA: Dict[str, object] = {
    "testCases": [
        {
            "id": "unique_test_id",
            "title": "Clear, descriptive test title",
            "description": "What this test validates",
            "type": "unit|integration|e2e|performance|security|api|database|visual|accessibility",
            "priority": "low|medium|high|critical",
            "file": "source_file_path",
            "function": "function_name_being_tested",
            "code": "complete_executable_test_code",
            "setup": "setup_code_if_needed",
            "teardown": "cleanup_code_if_needed",
            "dependencies": ["dependency1", "dependency2"],
            "tags": ["tag1", "tag2"],
        }
    ]
}


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for model prompting."""

    role: str
    content: str


@dataclass
class PromptRequest:
    """A rendered generation request ready for the model runner."""

    messages: List[PromptMessage]
    expected_cases: int
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def system(self) -> str | None:
        for message in self.messages:
            if message.role == "system":
                return message.content
        return None

    @property
    def prompt(self) -> str:
        return "\n\n".join(message.content for message in self.messages if message.role == "user")


def target_case_count(file_count: int) -> int:
    """Number of cases to request for a batch of files."""
    return min(max(file_count, 0) * CASES_PER_FILE, MAX_TEST_CASES)


class PromptBuilder:
    """Assembles a single generation request from selected files and options."""

    SYSTEM_PROMPT = (
        "You are an expert software testing engineer. Analyse the provided code and generate "
        "practical, executable test cases. Respond only with the requested JSON document."
    )

    def __init__(self, *, content_limit: int = CONTENT_CHAR_LIMIT) -> None:
        self.content_limit = content_limit

    def build(
        self,
        files: Sequence[FileRecord],
        config: GenerationConfig | None = None,
        *,
        structure: ProjectStructure | None = None,
        strategy: TestStrategy | None = None,
    ) -> PromptRequest:
        config = config or GenerationConfig()
        expected = target_case_count(len(files))
        truncated = [record.path for record in files if self._is_truncated(record)]

        sections = [
            self._render_files(files),
            self._render_requirements(config, structure, strategy),
            self._render_schema(expected),
        ]
        user_prompt = "\n\n".join(section for section in sections if section)

        return PromptRequest(
            messages=[
                PromptMessage(role="system", content=self.SYSTEM_PROMPT),
                PromptMessage(role="user", content=user_prompt),
            ],
            expected_cases=expected,
            metadata={
                "files": [record.path for record in files],
                "truncated_files": truncated,
                "config": config.to_dict(),
            },
        )

    def _render_files(self, files: Sequence[FileRecord]) -> str:
        blocks: List[str] = []
        for record in files:
            language = self._language(record)
            content = record.content[: self.content_limit] if record.content else "Content not available"
            blocks.append(
                "\n".join(
                    [
                        f"File: {record.path}",
                        f"Language: {language}",
                        "Content:",
                        f"```{language}",
                        content,
                        "```",
                    ]
                )
            )
        return "\n\n".join(blocks)

    @staticmethod
    def _render_requirements(
        config: GenerationConfig,
        structure: ProjectStructure | None,
        strategy: TestStrategy | None,
    ) -> str:
        framework = config.explicit_framework or "most appropriate for the language"
        lines = [
            "Requirements:",
            f"- Test types: {', '.join(config.types)}",
            f"- Complexity level: {config.complexity}. {COMPLEXITY_GUIDANCE[config.complexity]}",
            f"- Framework: {framework}",
            "- Generate executable test cases with proper syntax",
            "- Follow testing best practices and naming conventions",
        ]
        if config.include_edge_cases:
            lines.append("- Include edge cases and boundary values")
        if config.include_negative_tests:
            lines.append("- Include negative tests for invalid input and error handling")

        if structure is not None and structure.type != UNKNOWN:
            details = ", ".join(
                f"{label}: {value}"
                for label, value in (
                    ("type", structure.type),
                    ("framework", structure.framework),
                    ("build tool", structure.build_tool),
                    ("test framework", structure.test_framework),
                )
                if value
            )
            lines.append(f"- Project: {details}")
        if strategy is not None:
            lines.append(
                f"- Conventions: tests live in `{strategy.test_directory}` named "
                f"`{strategy.test_file_pattern}`, mocking with {strategy.mocking_library}"
            )
        return "\n".join(lines)

    @staticmethod
    def _render_schema(expected: int) -> str:
        return "\n".join(
            [
                "IMPORTANT: Respond ONLY with one valid JSON object. No additional text or formatting.",
                "Required JSON format:",
                json.dumps(_OUTPUT_SCHEMA, indent=2),
                f"Generate {expected} relevant, high-quality test cases.",
            ]
        )

    def _is_truncated(self, record: FileRecord) -> bool:
        return bool(record.content) and len(record.content) > self.content_limit

    @staticmethod
    def _language(record: FileRecord) -> str:
        if record.language and record.language != UNKNOWN:
            return record.language
        return language_for_path(record.path)


__all__ = ["PromptBuilder", "PromptMessage", "PromptRequest", "target_case_count"]
