"""Pipeline orchestration: select, prompt, call the model, parse or fall back."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from .analysis.classifier import FileClassifier
from .analysis.selector import DEFAULT_MAX_FILES, FileSelector, RepositoryAnalysis
from .config import DEFAULT_MAX_FILE_SIZE, TestGenSettings, load_config
from .errors import EmptyInputError
from .fallback.generator import FallbackGenerator
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import FileRecord, GenerationConfig, GenerationResult, SelectionResult, TestCase
from .parsing.response import ParsedModel, ResponseParser, first_success
from .prompting.builder import PromptBuilder, PromptRequest
from .sources.base import ModelRunner, RepositorySource
from .sources.local import DEFAULT_FETCH_WORKERS, LocalRepositorySource, fetch_contents

STAGE_SELECTING = "selecting"
STAGE_PROMPTING = "prompting"
STAGE_AWAITING_MODEL = "awaiting_model"
STAGE_PARSING = "parsing"
STAGE_FALLING_BACK = "falling_back"
STAGE_DONE = "done"


class _RunState:
    """Mutable bookkeeping for a single pipeline run."""

    def __init__(self) -> None:
        self.stages: List[str] = []
        self.fallback_reason: Optional[str] = None
        self.detected_framework: Optional[str] = None

    def enter(self, stage: str) -> None:
        self.stages.append(stage)


class TestGenerationPipeline:
    """Coordinates selection, prompting, model invocation and fallback."""

    __test__ = False

    def __init__(
        self,
        selector: FileSelector | None = None,
        prompt_builder: PromptBuilder | None = None,
        parser: ResponseParser | None = None,
        fallback: FallbackGenerator | None = None,
        model: ModelRunner | None = None,
        *,
        max_fetch_workers: int = DEFAULT_FETCH_WORKERS,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self.selector = selector or FileSelector()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.fallback = fallback or FallbackGenerator()
        self.parser = parser or ResponseParser(self.fallback)
        self.model = model
        self.max_fetch_workers = max_fetch_workers
        self.max_file_size = max_file_size
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_settings(
        cls,
        settings: TestGenSettings,
        *,
        model: ModelRunner | None = None,
        offline: bool = False,
    ) -> "TestGenerationPipeline":
        """Build a pipeline honouring .testgen.yml exclusions, templates and runner settings."""
        if model is None and not offline:
            model = _resolve_model_runner(settings)
        return cls(
            selector=FileSelector(FileClassifier(settings.exclude_paths)),
            fallback=FallbackGenerator(templates_dir=settings.templates_dir),
            model=None if offline else model,
            max_file_size=settings.selection.max_file_size,
        )

    def analyze(self, files: Sequence[FileRecord]) -> RepositoryAnalysis:
        if not files:
            raise EmptyInputError()
        return self.selector.analyze(files)

    def run(
        self,
        files: Sequence[FileRecord],
        config: GenerationConfig | None = None,
        *,
        max_files: int = DEFAULT_MAX_FILES,
        source: RepositorySource | None = None,
    ) -> GenerationResult:
        """Generate test cases for a file set; only empty input raises."""
        if not files:
            raise EmptyInputError()
        config = config or GenerationConfig()
        state = _RunState()

        state.enter(STAGE_SELECTING)
        selection = self.selector.select(files, max_files)
        state.detected_framework = selection.test_strategy.test_framework
        analysable, file_errors = fetch_contents(
            selection.selected_files,
            source,
            max_workers=self.max_fetch_workers,
            max_file_size=self.max_file_size,
        )
        self.logger.info(
            "Selected %d of %d files; %d ready for analysis",
            len(selection.selected_files),
            len(files),
            len(analysable),
        )

        if analysable:
            request = self._prompt(state, analysable, config, selection)
            cases = first_success(
                (
                    lambda: self._model_cases(state, request, analysable, config),
                    lambda: self._fallback_cases(state, analysable, config),
                )
            )
        else:
            state.fallback_reason = "No analysable files remain after fetching content"
            cases = self._fallback_cases(state, analysable, config)

        state.enter(STAGE_DONE)
        return GenerationResult(
            test_cases=list(cases or []),
            project_structure=selection.project_structure,
            test_strategy=selection.test_strategy,
            summary={
                "totalFiles": len(files),
                "selectedFiles": len(selection.selected_files),
                "analyzedFiles": len(analysable),
            },
            file_errors=list(file_errors),
            stages=state.stages,
            fallback_reason=state.fallback_reason,
        )

    def generate_for_path(
        self,
        path: str | Path,
        config: GenerationConfig | None = None,
        *,
        max_files: int = DEFAULT_MAX_FILES,
        exclude_paths: Sequence[str] | None = None,
    ) -> GenerationResult:
        """List and read a local repository, then run the pipeline over it."""
        source = LocalRepositorySource(path, exclude_paths=exclude_paths)
        files = source.list_files()
        self.logger.debug("Discovered %d files under %s", len(files), source.root)
        return self.run(files, config, max_files=max_files, source=source)

    def _prompt(
        self,
        state: _RunState,
        files: Sequence[FileRecord],
        config: GenerationConfig,
        selection: SelectionResult,
    ) -> PromptRequest:
        state.enter(STAGE_PROMPTING)
        return self.prompt_builder.build(
            files,
            config,
            structure=selection.project_structure,
            strategy=selection.test_strategy,
        )

    def _model_cases(
        self,
        state: _RunState,
        request: PromptRequest,
        files: Sequence[FileRecord],
        config: GenerationConfig,
    ) -> Optional[List[TestCase]]:
        if self.model is None:
            state.fallback_reason = "No model runner configured"
            return None

        state.enter(STAGE_AWAITING_MODEL)
        try:
            raw = self.model.run(request.prompt, system=request.system)
        except Exception as exc:
            self.logger.warning("Model invocation failed: %s", exc)
            state.fallback_reason = f"AI generation failed: {exc}"
            return None

        state.enter(STAGE_PARSING)
        outcome = self.parser.interpret(raw)
        if isinstance(outcome, ParsedModel):
            return self.parser.normalise(outcome.entries, files, config)
        state.fallback_reason = f"Parsing failed: {outcome.reason}"
        return None

    def _fallback_cases(
        self,
        state: _RunState,
        files: Sequence[FileRecord],
        config: GenerationConfig,
    ) -> List[TestCase]:
        state.enter(STAGE_FALLING_BACK)
        return self.fallback.generate(
            state.fallback_reason or "Fallback requested",
            files,
            config,
            detected_framework=state.detected_framework,
        )


def _resolve_model_runner(settings: TestGenSettings) -> ModelRunner | None:
    logger = get_logger("orchestrator")
    if settings.llm is None and not LLMRunner.environment_available():
        logger.debug("No LLM configuration detected; using template generation mode.")
        return None
    runner = LLMRunner.from_config(settings.llm)
    logger.debug("Using model %s via %s", runner.model, runner.base_url or runner.executable)
    return runner


def pipeline_for_path(
    path: str | Path,
    *,
    model: ModelRunner | None = None,
    offline: bool = False,
) -> tuple[TestGenerationPipeline, TestGenSettings]:
    """Load .testgen.yml under `path` and build a matching pipeline."""
    settings = load_config(Path(path))
    return TestGenerationPipeline.from_settings(settings, model=model, offline=offline), settings


__all__ = [
    "STAGE_AWAITING_MODEL",
    "STAGE_DONE",
    "STAGE_FALLING_BACK",
    "STAGE_PARSING",
    "STAGE_PROMPTING",
    "STAGE_SELECTING",
    "TestGenerationPipeline",
    "pipeline_for_path",
]
