"""FastAPI application entrypoint for testgen service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..analysis.selector import DEFAULT_MAX_FILES
from ..analysis.strategy import recommendations
from ..config import TestGenSettings, load_config
from ..errors import ConfigError, EmptyInputError
from ..models import FileRecord, GenerationConfig, TEST_TYPES
from ..orchestrator import TestGenerationPipeline
from ..prompting.constants import FRAMEWORK_CATALOGUE, TEST_TYPE_CATALOGUE

T = TypeVar("T")


class FileInput(BaseModel):
    path: str
    content: Optional[str] = None
    size: int = 0

    def to_record(self) -> FileRecord:
        return FileRecord.from_listing(self.path, size=self.size, content=self.content)


class AnalyzeRequest(BaseModel):
    files: List[FileInput] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: List[FileInput] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
    max_files: int = Field(DEFAULT_MAX_FILES, alias="maxFiles")


class RepositoryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str
    config: Dict[str, Any] = Field(default_factory=dict)
    max_files: Optional[int] = Field(None, alias="maxFiles")


class HealthResponse(BaseModel):
    status: str


def _default_pipeline() -> TestGenerationPipeline:
    return TestGenerationPipeline.from_settings(TestGenSettings(root=Path.cwd()))


def _repository_pipeline(settings: TestGenSettings) -> TestGenerationPipeline:
    return TestGenerationPipeline.from_settings(settings)


async def _in_executor(func: Callable[[], T]) -> T:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return func()
    return await loop.run_in_executor(None, func)


def create_app(
    pipeline_factory: Callable[[], TestGenerationPipeline] = _default_pipeline,
    repository_factory: Callable[[TestGenSettings], TestGenerationPipeline] = _repository_pipeline,
) -> FastAPI:
    """Create the FastAPI application exposing testgen operations.

    `pipeline_factory` serves requests that carry their own files.
    `repository_factory` builds a pipeline from the target repository's
    .testgen.yml so its exclusions, templates and model settings apply.
    """

    app = FastAPI(title="TestGen Service", version="1.0.0")

    async def get_pipeline() -> TestGenerationPipeline:
        return pipeline_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/frameworks")
    async def frameworks() -> Dict[str, Any]:
        return {"frameworks": FRAMEWORK_CATALOGUE}

    @app.get("/types")
    async def test_types() -> Dict[str, Any]:
        return {"types": [{"id": name, **TEST_TYPE_CATALOGUE[name]} for name in TEST_TYPES]}

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        pipeline: TestGenerationPipeline = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        records = [item.to_record() for item in payload.files]
        analysis = await _in_executor(lambda: pipeline.analyze(records))
        strategy = pipeline.selector.resolver.resolve(analysis.project_structure)
        return {
            "analysis": analysis.to_dict(),
            "testStrategy": strategy.to_dict(),
            "recommendations": recommendations(strategy),
        }

    @app.post("/generate")
    async def generate(
        payload: GenerateRequest,
        pipeline: TestGenerationPipeline = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        records = [item.to_record() for item in payload.files]
        config = GenerationConfig.from_mapping(payload.config)
        result = await _in_executor(
            lambda: pipeline.run(records, config, max_files=payload.max_files)
        )
        return result.to_dict()

    @app.post("/generate/repository")
    async def generate_repository(payload: RepositoryRequest) -> Dict[str, Any]:
        def _run() -> Dict[str, Any]:
            settings = load_config(Path(payload.path))
            pipeline = repository_factory(settings)
            config = GenerationConfig.from_mapping({**settings.generation.to_dict(), **payload.config})
            max_files = payload.max_files if payload.max_files is not None else settings.selection.max_files
            result = pipeline.generate_for_path(
                payload.path,
                config,
                max_files=max_files,
                exclude_paths=settings.exclude_paths,
            )
            return result.to_dict()

        return await _in_executor(_run)

    @app.exception_handler(EmptyInputError)
    async def empty_input_handler(_: Any, exc: EmptyInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
