"""FastAPI application entrypoint for rsbuild service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..builder import Builder, BuildOutcome
from ..config import ConfigError


class BuildRequest(BaseModel):
    path: str
    full: bool = False
    verbose: Optional[bool] = None


class MarkerModel(BaseModel):
    kind: str
    message: str
    severity: str
    file: Optional[str] = None
    line: Optional[int] = None


class BuildResponse(BaseModel):
    status: str
    compiled: List[str]
    succeeded: List[str]
    failed: List[str]
    removed: List[str]
    markers: List[MarkerModel]


class CleanRequest(BaseModel):
    path: str


class CleanResponse(BaseModel):
    removed: int


class HealthResponse(BaseModel):
    status: str


def _default_builder() -> Builder:
    return Builder()


def create_app(
    builder_factory: Callable[[], Builder] = _default_builder,
) -> FastAPI:
    """Create the FastAPI application exposing build and clean operations."""

    app = FastAPI(title="rsbuild Service", version="1.0.0")

    async def get_builder() -> Builder:
        return builder_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/build", response_model=BuildResponse)
    async def build_project(
        payload: BuildRequest,
        builder: Builder = Depends(get_builder),
    ) -> BuildResponse:
        def _run_build() -> BuildOutcome:
            return builder.run_build(
                payload.path, full=payload.full, verbose=payload.verbose
            )

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run_build)
        return BuildResponse(
            status="ok" if outcome.ok else "failed",
            compiled=outcome.compiled,
            succeeded=outcome.succeeded,
            failed=outcome.failed,
            removed=outcome.removed,
            markers=[
                MarkerModel(
                    kind=marker.kind,
                    message=marker.message,
                    severity=marker.severity.value,
                    file=marker.file,
                    line=marker.line,
                )
                for marker in outcome.markers
            ],
        )

    @app.post("/clean", response_model=CleanResponse)
    async def clean_project(
        payload: CleanRequest,
        builder: Builder = Depends(get_builder),
    ) -> CleanResponse:
        loop = asyncio.get_running_loop()
        removed = await loop.run_in_executor(None, builder.run_clean, payload.path)
        return CleanResponse(removed=removed)

    async def missing_project_handler(
        _: Any, exc: OSError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    app.add_exception_handler(FileNotFoundError, missing_project_handler)
    app.add_exception_handler(NotADirectoryError, missing_project_handler)

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
