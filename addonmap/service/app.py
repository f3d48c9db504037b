"""FastAPI application entrypoint for addonmap service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..orchestrator import DEFAULT_REPO, Orchestrator, RunOutcome


class ScanRequest(BaseModel):
    workspace: str
    repo: str = DEFAULT_REPO
    repo_path: Optional[str] = None
    output_dir: Optional[str] = None


class ArtifactResponse(BaseModel):
    name: str
    json_path: str
    md_path: str


class ScanResponse(BaseModel):
    repository: str
    output_dir: str
    confidence_score: float
    metrics: Dict[str, int]
    artifacts: List[ArtifactResponse]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _to_response(outcome: RunOutcome) -> ScanResponse:
    return ScanResponse(
        repository=outcome.repository_label,
        output_dir=str(outcome.output_dir),
        confidence_score=outcome.confidence_score,
        metrics=outcome.metrics,
        artifacts=[
            ArtifactResponse(
                name=item.name, json_path=str(item.json_path), md_path=str(item.md_path)
            )
            for item in outcome.artifacts
        ],
    )


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing addonmap scans."""

    app = FastAPI(title="AddonMap Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # Fresh instance per request; runs share no state.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/scan", response_model=ScanResponse)
    async def scan(
        payload: ScanRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ScanResponse:
        def _run_scan() -> RunOutcome:
            return orchestrator.run(
                payload.workspace,
                repo=payload.repo,
                repo_path=payload.repo_path,
                output_dir=payload.output_dir,
            )

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run_scan)
        return _to_response(outcome)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
