"""FastAPI server — command surface over the monitor plus the poll loop."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from labwatch import __version__
from labwatch.api.routes import router
from labwatch.config import settings
from labwatch.health.errors import InternalStateError
from labwatch.health.persistence import SettingsFile
from labwatch.health.scheduler import PollScheduler
from labwatch.health.service import MonitorService
from labwatch.health.store import HealthStore
from labwatch.presentation import (
    BroadcastPresenter,
    ConsolePresenter,
    FanOutPresenter,
    StatusPresenter,
)

logger = logging.getLogger(__name__)


def build_monitor(
    settings_file: SettingsFile,
    presenter: StatusPresenter | None = None,
) -> MonitorService:
    """Load persisted settings and wrap them in a store + mutation API."""
    config = settings_file.load()
    store = HealthStore(config, lock_timeout=settings.lock_timeout)
    return MonitorService(store, settings_file, presenter=presenter)


def build_presenter(broadcaster: BroadcastPresenter, console_status: bool) -> StatusPresenter:
    if not console_status:
        return broadcaster
    return FanOutPresenter([broadcaster, ConsolePresenter()])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings and start the poller on startup."""
    settings_file = SettingsFile(settings.settings_path)
    logger.info("Configuration file: %s", settings_file.path)

    broadcaster = BroadcastPresenter()
    app.state.broadcaster = broadcaster

    presenter = build_presenter(broadcaster, settings.console_status)
    monitor = build_monitor(settings_file, presenter=presenter)
    app.state.monitor = monitor

    scheduler = PollScheduler(
        monitor.store,
        presenter=presenter,
        tick_seconds=settings.tick_seconds,
        probe_timeout=settings.probe_timeout,
    )
    app.state.scheduler = scheduler

    try:
        await scheduler.start()
    except Exception:
        logger.exception("Poll scheduler failed to start")

    yield

    await scheduler.stop()


async def _internal_state_handler(request: Request, exc: InternalStateError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="labwatch",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InternalStateError, _internal_state_handler)

    app.include_router(router, prefix="/api")

    return app


app = create_app()
