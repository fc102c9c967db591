"""FastAPI application entrypoint for gdassist service mode."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, List, Literal, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import AssistConfig, ConfigError, load_config
from ..pipeline import MaterializationPipeline, PipelineResult
from ..storage import FileSystemStorage, MemoryStorage, Storage
from ..uid import UidGenerator
from ..upgrade import LegacyFormatUpgrader, is_legacy


class ApplyRequest(BaseModel):
    response: str
    strategy: Optional[Literal["dependencies", "fast"]] = None
    dry_run: bool = False


class ReportModel(BaseModel):
    path: str
    outcome: str
    message: Optional[str] = None


class ApplyResponse(BaseModel):
    ok: bool
    summary: str
    order: List[str]
    implied: List[str]
    cycles: List[List[str]]
    reports: List[ReportModel]


class UpgradeRequest(BaseModel):
    content: str
    seed: Optional[int] = None


class UpgradeResponse(BaseModel):
    legacy: bool
    content: str


class HealthResponse(BaseModel):
    status: str


StorageFactory = Callable[[AssistConfig, bool], Storage]


def _default_storage(config: AssistConfig, dry_run: bool) -> Storage:
    if dry_run:
        return MemoryStorage()
    return FileSystemStorage(config.root)


def create_app(
    config: AssistConfig | None = None,
    storage_factory: StorageFactory = _default_storage,
) -> FastAPI:
    """Create the FastAPI application exposing the pipeline and the upgrader."""

    settings = config or load_config(Path.cwd())
    app = FastAPI(title="gdassist Service", version=__version__)

    async def get_settings() -> AssistConfig:
        return settings

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/apply", response_model=ApplyResponse)
    async def apply_response(
        payload: ApplyRequest,
        current: AssistConfig = Depends(get_settings),
    ) -> ApplyResponse:
        materialize = current.materialize
        if payload.strategy:
            materialize = replace(materialize, strategy=payload.strategy)

        def _run_apply() -> PipelineResult:
            # Fresh storage and pipeline per request; nothing is shared between responses.
            pipeline = MaterializationPipeline(
                storage_factory(current, payload.dry_run),
                config=materialize,
                templates_dir=current.project.templates_dir,
            )
            return pipeline.run(payload.response)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # pragma: no cover
            result = _run_apply()
        else:
            result = await loop.run_in_executor(None, _run_apply)

        return ApplyResponse(
            ok=result.ok,
            summary=result.summary(),
            order=result.order,
            implied=result.implied,
            cycles=result.cycles,
            reports=[
                ReportModel(path=report.path, outcome=report.outcome.value, message=report.message)
                for report in result.reports
            ],
        )

    @app.post("/upgrade", response_model=UpgradeResponse)
    async def upgrade_scene(payload: UpgradeRequest) -> UpgradeResponse:
        generator = UidGenerator.seeded(payload.seed) if payload.seed is not None else UidGenerator()
        content = LegacyFormatUpgrader(generator).upgrade(payload.content)
        return UpgradeResponse(legacy=is_legacy(payload.content), content=content)

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(
        _: Any, exc: RuntimeError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: AssistConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(config), host=host, port=port)
