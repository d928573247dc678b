from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from testgen.llm.runner import LLMRunner
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _clear_llm_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep runner resolution independent of the developer's shell."""
    for key in (*LLMRunner.ENV_MODEL_KEYS, *LLMRunner.ENV_BASE_URL_KEYS, *LLMRunner.ENV_API_KEY_KEYS):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_testgen_logging() -> Iterator[None]:
    """Drop handlers the CLI installs so they never outlive a captured stream."""
    yield
    logger = logging.getLogger("testgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
