"""Model response parsing."""

from .response import (
    ParsedModel,
    ParseOutcome,
    ResponseParser,
    Unparseable,
    first_success,
    interpret_response,
    recover_function_name,
)

__all__ = [
    "ParseOutcome",
    "ParsedModel",
    "ResponseParser",
    "Unparseable",
    "first_success",
    "interpret_response",
    "recover_function_name",
]
