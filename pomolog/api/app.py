from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..clock import Clock
from ..db import PomologDB, default_db_path
from ..errors import PersistenceFailure, ValidationError
from ..notifier import NotifierLike
from ..storage import Storage
from .routes.export import router as export_router
from .routes.health import router as health_router
from .routes.meta import router as meta_router
from .routes.sessions import router as sessions_router
from .routes.settings import router as settings_router
from .routes.stats import router as stats_router
from .routes.tasks import router as tasks_router
from .routes.timer import router as timer_router
from .timer_service import TickerFactory, TimerService


def create_app(
    db_path: Path | None = None,
    storage: Storage | None = None,
    clock: Clock | None = None,
    ticker_factory: TickerFactory | None = None,
    notifier: NotifierLike | None = None,
    journal_mode: str | None = None,
) -> FastAPI:
    if storage is None:
        resolved_db = Path(db_path or default_db_path())
        storage = PomologDB(resolved_db, journal_mode=journal_mode)
        db_label = str(resolved_db)
    else:
        db_label = str(db_path) if db_path else ":memory:"

    service = TimerService(
        storage,
        clock=clock,
        ticker_factory=ticker_factory,
        notifier=notifier,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        service.shutdown()

    app = FastAPI(title="Pomolog API", version=__version__, lifespan=lifespan)
    app.state.db_path = db_label
    app.state.timer_service = service

    @app.exception_handler(ValidationError)
    async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc), "problems": exc.problems})

    @app.exception_handler(PersistenceFailure)
    async def _persistence_failure(_: Request, exc: PersistenceFailure) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    app.include_router(health_router)
    app.include_router(meta_router)
    app.include_router(tasks_router)
    app.include_router(sessions_router)
    app.include_router(settings_router)
    app.include_router(stats_router)
    app.include_router(export_router)
    app.include_router(timer_router)
    return app

