"""HTTP routes.

Endpoints:
  GET  /health        — static liveness check
  GET  /status        — last run + 24h history summary (CORS open)
  GET  /{any other}   — manual keepalive run, returns the RunSummary
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..orchestrator.run import Trigger
from ..status.reporter import render_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/status")
def status(request: Request) -> JSONResponse:
    """Render the latest history snapshot."""
    store = request.app.state.history_store
    next_run = getattr(request.app.state, "next_run_hint", "")

    rendered = render_status(store.read(), next_run=next_run)
    return JSONResponse(
        content=rendered.body,
        status_code=rendered.http_status,
        headers={"Access-Control-Allow-Origin": "*"},
    )


@router.get("/{path:path}")
async def manual_run(path: str, request: Request) -> JSONResponse:
    """Any other path triggers a run; 207 when any target failed."""
    runner = request.app.state.runner
    logger.info("Manual keepalive triggered via /%s", path)

    summary = await runner.run(Trigger.MANUAL)
    return JSONResponse(
        content=summary.to_dict(),
        status_code=200 if summary.success else 207,
    )
