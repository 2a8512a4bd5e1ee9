"""FastAPI application entrypoint for monodep service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..orchestrator import AnalysisReport, Orchestrator, RunOptions
from ..reporting import report_payload
from ..workspace import WorkspaceError


class AnalyzeRequest(BaseModel):
    path: str
    only_extras: bool = False
    check_outdated: Optional[bool] = None
    check_installed_peers: Optional[bool] = None
    ownership_report: Optional[bool] = None


class AnalyzeResponse(BaseModel):
    root: str
    stats: Dict[str, int]
    total_issues: int
    exit_code: int
    unused: List[Dict[str, Any]]
    missing: List[Dict[str, Any]]
    wrong_type: List[Dict[str, Any]]
    outdated: List[Dict[str, Any]]
    mismatches: List[Dict[str, Any]]
    internal: List[Dict[str, Any]]
    peers: List[Dict[str, Any]]
    installed_peers: List[Dict[str, Any]]
    dynamic_candidates: List[Dict[str, Any]]
    ownership: List[Dict[str, Any]]
    installed_peer_diagnostics: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing monodep analysis."""

    app = FastAPI(title="monodep Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # Fresh orchestrator per request so registry caches never leak between runs.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> AnalyzeResponse:
        options = RunOptions(
            only_extras=payload.only_extras,
            check_outdated=payload.check_outdated,
            check_installed_peers=payload.check_installed_peers,
            ownership_report=payload.ownership_report,
        )

        def _run() -> AnalysisReport:
            return orchestrator.run(payload.path, options)

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run)
        return AnalyzeResponse(**report_payload(report))

    @app.exception_handler(WorkspaceError)
    async def workspace_error_handler(
        _: Any, exc: WorkspaceError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
