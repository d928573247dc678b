"""Reconstruct structured test cases from untrusted model output."""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from ..fallback.generator import FallbackGenerator
from ..logging import get_logger
from ..models import (
    GENERATED_BY_MODEL,
    PRIORITIES,
    TEST_TYPES,
    FileRecord,
    GenerationConfig,
    TestCase,
    utc_timestamp,
)

T = TypeVar("T")

_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
_TEST_CASES_KEY = '"testCases"'

_FUNCTION_PATTERNS = (
    re.compile(r"\bdescribe\s*\(\s*(['\"`])(?P<name>[^'\"`]+)\1"),
    re.compile(r"\btest\s*\(\s*(['\"`])(?P<name>[^'\"`]+)\1"),
    re.compile(r"\bit\s*\(\s*(['\"`])(?P<name>[^'\"`]+)\1"),
    re.compile(r"\bdef\s+test_(?P<name>[A-Za-z_]\w*)"),
    re.compile(r"\bfunc\s+Test(?P<name>[A-Za-z_]\w*)"),
    re.compile(r"\bfn\s+test_(?P<name>[A-Za-z_]\w*)"),
    re.compile(r"@Test\b[^{]*?\bvoid\s+(?P<name>[A-Za-z_]\w*)\s*\("),
)

PLACEHOLDER_CODE = "// Test implementation required"
DEFAULT_DESCRIPTION = "AI generated test case"


@dataclass(frozen=True)
class ParsedModel:
    """Model output that yielded at least one test-case shaped entry."""

    entries: List[Dict[str, Any]]
    strategy: str


@dataclass(frozen=True)
class Unparseable:
    """Model output no strategy could turn into test cases."""

    reason: str


ParseOutcome = Union[ParsedModel, Unparseable]


def first_success(attempts: Iterable[Callable[[], Optional[T]]]) -> Optional[T]:
    """Evaluate attempts in order and return the first non-None result."""
    for attempt in attempts:
        result = attempt()
        if result is not None:
            return result
    return None


def _test_case_entries(payload: Any) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(payload, dict):
        return None
    raw_cases = payload.get("testCases")
    if not isinstance(raw_cases, list):
        return None
    entries = [entry for entry in raw_cases if isinstance(entry, dict)]
    return entries or None


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def _whole_document(text: str) -> Optional[List[Dict[str, Any]]]:
    return _test_case_entries(_loads(text.strip()))


def _fenced_block(text: str) -> Optional[List[Dict[str, Any]]]:
    for match in _FENCED_BLOCK.finditer(text):
        entries = _test_case_entries(_loads(match.group(1).strip()))
        if entries:
            return entries
    return None


def _embedded_object(text: str) -> Optional[List[Dict[str, Any]]]:
    if _TEST_CASES_KEY not in text:
        return None
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start >= 0:
        try:
            payload, _end = decoder.raw_decode(text, start)
        except ValueError:
            payload = None
        entries = _test_case_entries(payload)
        if entries:
            return entries
        start = text.find("{", start + 1)
    return None


_STRATEGIES: Tuple[Tuple[str, Callable[[str], Optional[List[Dict[str, Any]]]]], ...] = (
    ("whole-document", _whole_document),
    ("fenced-block", _fenced_block),
    ("embedded-object", _embedded_object),
)


def interpret_response(raw_text: Any) -> ParseOutcome:
    """Classify raw model output as parsed entries or unparseable."""
    if not isinstance(raw_text, str) or not raw_text.strip():
        return Unparseable("Model returned an empty response")

    def attempt(name: str, strategy: Callable[[str], Optional[List[Dict[str, Any]]]]):
        def run() -> Optional[ParsedModel]:
            entries = strategy(raw_text)
            return ParsedModel(entries=entries, strategy=name) if entries else None

        return run

    outcome = first_success(attempt(name, strategy) for name, strategy in _STRATEGIES)
    if outcome is None:
        return Unparseable("Response did not contain a usable testCases array")
    return outcome


def recover_function_name(code: Any) -> Optional[str]:
    """Best-effort guess of the function under test from test source."""
    if not isinstance(code, str) or not code:
        return None
    for pattern in _FUNCTION_PATTERNS:
        match = pattern.search(code)
        if match:
            name = match.group("name").strip()
            if name:
                return name
    return None


class ResponseParser:
    """Turns model text into TestCase records, deferring to the fallback generator."""

    def __init__(self, fallback: FallbackGenerator | None = None) -> None:
        self.fallback = fallback or FallbackGenerator()
        self.logger = get_logger("parser")

    def parse(
        self,
        raw_text: Any,
        files: Sequence[FileRecord],
        config: GenerationConfig | None = None,
    ) -> List[TestCase]:
        """Parse model output; never raises."""
        config = config or GenerationConfig()
        outcome = self.interpret(raw_text)
        if isinstance(outcome, Unparseable):
            return self.fallback.generate(f"Parsing failed: {outcome.reason}", files, config)
        return self.normalise(outcome.entries, files, config)

    def interpret(self, raw_text: Any) -> ParseOutcome:
        outcome = interpret_response(raw_text)
        if isinstance(outcome, ParsedModel):
            self.logger.info(
                "Parsed %d test cases using the %s strategy", len(outcome.entries), outcome.strategy
            )
        else:
            preview = raw_text[:200] if isinstance(raw_text, str) else repr(raw_text)
            self.logger.warning("Unable to parse model response (%s): %s", outcome.reason, preview)
        return outcome

    def normalise(
        self,
        entries: Sequence[Mapping[str, Any]],
        files: Sequence[FileRecord],
        config: GenerationConfig,
    ) -> List[TestCase]:
        default_file = files[0].path if files else "unknown"
        created_at = utc_timestamp()
        return [
            self._normalise_entry(entry, index, default_file, config, created_at)
            for index, entry in enumerate(entries, start=1)
        ]

    @staticmethod
    def _normalise_entry(
        entry: Mapping[str, Any],
        index: int,
        default_file: str,
        config: GenerationConfig,
        created_at: str,
    ) -> TestCase:
        title = _verbatim(entry.get("title")) or f"Test Case {index}"
        code = _verbatim(entry.get("code"))
        test_type = _text(entry.get("type"))
        test_type = test_type.lower() if test_type and test_type.lower() in TEST_TYPES else config.primary_type
        priority = _text(entry.get("priority"))
        priority = priority.lower() if priority and priority.lower() in PRIORITIES else "medium"

        raw_id = entry.get("id")
        if isinstance(raw_id, (str, int)) and not isinstance(raw_id, bool) and str(raw_id).strip():
            case_id = str(raw_id).strip()
        else:
            case_id = f"model_{uuid.uuid4().hex[:12]}_{index}"

        return TestCase(
            id=case_id,
            title=title,
            description=_verbatim(entry.get("description")) or DEFAULT_DESCRIPTION,
            type=test_type,
            priority=priority,
            file=_text(entry.get("file")) or default_file,
            function=_text(entry.get("function")) or recover_function_name(code),
            code=code or PLACEHOLDER_CODE,
            setup=_verbatim(entry.get("setup")),
            teardown=_verbatim(entry.get("teardown")),
            dependencies=tuple(_strings(entry.get("dependencies"))),
            tags=tuple(dict.fromkeys(_strings(entry.get("tags")))),
            generated_by=GENERATED_BY_MODEL,
            created_at=created_at,
        )


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _verbatim(value: Any) -> Optional[str]:
    """Return the string untouched unless it is blank."""
    return value if _text(value) else None


def _strings(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


__all__ = [
    "ParseOutcome",
    "ParsedModel",
    "ResponseParser",
    "Unparseable",
    "first_success",
    "interpret_response",
    "recover_function_name",
]
