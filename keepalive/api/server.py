"""FastAPI server for the keepalive service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from ..config import load_target_config, settings
from ..health.engine import make_client, request_builder
from ..health.scheduler import KeepaliveScheduler
from ..history.backends import SqliteKeyValueBackend
from ..history.store import HistoryStore
from ..orchestrator.service import KeepaliveRunner
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire history store, HTTP client, runner and scheduler."""
    build_request = request_builder(settings.probe_mode, settings.probe_table)

    backend = SqliteKeyValueBackend(settings.history_db_path)
    store = HistoryStore(
        backend,
        key=settings.history_key,
        retention=timedelta(hours=settings.history_retention_hours),
    )
    app.state.history_store = store
    app.state.next_run_hint = settings.next_run_hint

    client = make_client(settings.probe_timeout_seconds)
    runner = KeepaliveRunner(
        store,
        client,
        config_loader=load_target_config,
        prefix=settings.target_prefix,
        build_request=build_request,
    )
    app.state.runner = runner
    logger.info("Keepalive runner ready: %d target(s) configured", len(runner.targets()))

    scheduler = KeepaliveScheduler(
        runner.run, interval=settings.schedule_interval_hours * 3600,
    )
    app.state.scheduler = scheduler
    try:
        await scheduler.start()
    except Exception:
        logger.exception("Keepalive scheduler failed to start")

    yield

    # Shutdown
    await scheduler.stop()
    await client.aclose()
    backend.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Keepalive - database liveness pinger",
        version="0.1.0",
        lifespan=lifespan,
        # every other GET path triggers a manual run
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.include_router(router)
    return app


app = create_app()
