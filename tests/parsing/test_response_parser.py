"""Tests for model response parsing."""

from __future__ import annotations

import json

import pytest

from testgen.models import GENERATED_BY_MODEL, FileRecord, GenerationConfig
from testgen.parsing.response import (
    DEFAULT_DESCRIPTION,
    PLACEHOLDER_CODE,
    ParsedModel,
    ResponseParser,
    Unparseable,
    first_success,
    interpret_response,
    recover_function_name,
)

_SOURCE = FileRecord.from_listing(
    "src/math.js",
    content="export function add(a, b) {\n  return a + b;\n}\n",
)


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


def test_fenced_block_with_minimal_entry_gets_defaults(parser: ResponseParser) -> None:
    raw = 'Sure! Here are your tests:\n```json\n{"testCases": [{"title": "x"}]}\n```'

    cases = parser.parse(raw, [_SOURCE], GenerationConfig())

    assert len(cases) == 1
    case = cases[0]
    assert case.title == "x"
    assert case.description == DEFAULT_DESCRIPTION
    assert case.type == "unit"
    assert case.priority == "medium"
    assert case.file == "src/math.js"
    assert case.function is None
    assert case.code == PLACEHOLDER_CODE
    assert case.dependencies == ()
    assert case.tags == ()
    assert case.generated_by == GENERATED_BY_MODEL
    assert case.id.startswith("model_")


def test_complete_entry_is_preserved(parser: ResponseParser) -> None:
    entry = {
        "id": "add_sums",
        "title": "  adds two numbers ",
        "description": "Checks addition",
        "type": "INTEGRATION",
        "priority": "Critical",
        "file": "src/math.js",
        "function": "add",
        "code": "test('adds', () => expect(add(1, 2)).toBe(3));",
        "setup": "const { add } = require('./math');",
        "teardown": "",
        "dependencies": ["jest"],
        "tags": ["math", "math", "smoke"],
    }

    (case,) = parser.parse(json.dumps({"testCases": [entry]}), [_SOURCE])

    assert case.id == "add_sums"
    assert case.title == "  adds two numbers "
    assert case.type == "integration"
    assert case.priority == "critical"
    assert case.function == "add"
    assert case.setup == "const { add } = require('./math');"
    assert case.teardown is None
    assert case.dependencies == ("jest",)
    assert case.tags == ("math", "smoke")


def test_code_fields_keep_their_whitespace(parser: ResponseParser) -> None:
    code = "    def test_add():\n        assert add(1, 2) == 3\n"
    setup = "\nfrom math_utils import add\n"
    raw = json.dumps({"testCases": [{"title": "adds", "code": code, "setup": setup, "teardown": "  \n"}]})

    (case,) = parser.parse(raw, [_SOURCE])

    assert case.code == code
    assert case.setup == setup
    assert case.teardown is None
    assert case.function == "add"


def test_invalid_type_and_priority_are_defaulted(parser: ResponseParser) -> None:
    raw = json.dumps({"testCases": [{"type": "smoke", "priority": "urgent"}]})
    config = GenerationConfig.from_mapping({"types": ["api", "unit"]})

    (case,) = parser.parse(raw, [_SOURCE], config)

    assert case.type == "api"
    assert case.priority == "medium"
    assert case.title == "Test Case 1"


def test_missing_files_default_to_unknown(parser: ResponseParser) -> None:
    (case,) = parser.parse('{"testCases": [{"title": "lonely"}]}', [])

    assert case.file == "unknown"


def test_generated_ids_are_unique(parser: ResponseParser) -> None:
    raw = json.dumps({"testCases": [{"title": "a"}, {"title": "b"}, {"title": "c"}]})

    cases = parser.parse(raw, [_SOURCE])

    assert len({case.id for case in cases}) == 3


@pytest.mark.parametrize(
    ("raw", "strategy"),
    [
        ('{"testCases": [{"title": "a"}]}', "whole-document"),
        ('```\n{"testCases": [{"title": "a"}]}\n```', "fenced-block"),
        ('Here you go: {"testCases": [{"title": "a"}]} hope it helps', "embedded-object"),
        (
            'Below is an object with a "testCases" array:\n{"testCases": [{"title": "a"}]}\nThanks!',
            "embedded-object",
        ),
        ('Note {braces} first, then {"testCases": [{"title": "a"}]}', "embedded-object"),
    ],
)
def test_strategies_are_tried_in_order(raw: str, strategy: str) -> None:
    outcome = interpret_response(raw)

    assert isinstance(outcome, ParsedModel)
    assert outcome.strategy == strategy
    assert outcome.entries == [{"title": "a"}]


@pytest.mark.parametrize(
    "raw",
    [
        "I could not produce any tests for this code, sorry.",
        '{"tests": [{"title": "wrong key"}]}',
        'Here is the summary object: {"status": "ok", "count": 2} as requested.',
        '{"testCases": []}',
        '{"testCases": ["not", "objects"]}',
        '{"testCases": [{"title": "unterminated"',
    ],
)
def test_unusable_responses_fall_back_to_templates(parser: ResponseParser, raw: str) -> None:
    assert isinstance(interpret_response(raw), Unparseable)

    cases = parser.parse(raw, [_SOURCE])

    assert cases
    assert all(case.generated_by.startswith("fallback") for case in cases)
    assert cases[0].function == "add"


@pytest.mark.parametrize("raw", [None, "", "   ", 42, {"testCases": [{"title": "dict"}]}])
def test_non_text_or_blank_input_never_raises(parser: ResponseParser, raw) -> None:
    outcome = interpret_response(raw)

    assert outcome == Unparseable("Model returned an empty response")
    assert parser.parse(raw, [_SOURCE])


def test_non_dict_entries_are_dropped() -> None:
    outcome = interpret_response('{"testCases": [1, {"title": "kept"}, "x"]}')

    assert isinstance(outcome, ParsedModel)
    assert outcome.entries == [{"title": "kept"}]


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("describe('add', () => { it('works', () => {}); });", "add"),
        ('test("parses input", () => {});', "parses input"),
        ("def test_parse_input():\n    assert parse_input('1') == 1", "parse_input"),
        ("func TestHandler(t *testing.T) {}", "Handler"),
        ("#[test]\nfn test_sum() {}", "sum"),
        ("@Test\n    void computesTotal() {\n    }", "computesTotal"),
        ("assert True", None),
        (None, None),
    ],
)
def test_function_name_recovery(code, expected) -> None:
    assert recover_function_name(code) == expected


def test_recovered_function_is_used_when_missing(parser: ResponseParser) -> None:
    raw = json.dumps({"testCases": [{"code": "describe('subtract', () => {});"}]})

    (case,) = parser.parse(raw, [_SOURCE])

    assert case.function == "subtract"


def test_first_success_is_lazy() -> None:
    calls: list[str] = []

    def attempt(label: str, value):
        def run():
            calls.append(label)
            return value

        return run

    result = first_success([attempt("a", None), attempt("b", "hit"), attempt("c", "late")])

    assert result == "hit"
    assert calls == ["a", "b"]


def test_first_success_returns_none_when_all_fail() -> None:
    assert first_success([lambda: None, lambda: None]) is None
    assert first_success([]) is None
