# =============================================================================
# app.py
# Gym Log API, FastAPI + SQLAlchemy 2.x async, Pydantic v2
# Users own exercises; each workout log belongs to one exercise and must only
# carry the fields its exercise type (strength or cardio) allows.
# =============================================================================

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from . import __version__, auth, exercises, progress, public_exercises, workout_logs
from .config import Settings, configure_logging
from .database import Database
from .errors import install_error_handlers
from .ratelimit import RateLimiter
from .schemas import HealthOut

log = logging.getLogger("gymlog")

SESSION_COOKIE = "gymlog_session"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    db = Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        await db.init()
        yield
        await db.dispose()

    app = FastAPI(
        title="Gym Log API",
        description="Personal exercise registry and strength/cardio workout log.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.rate_limiter = RateLimiter(settings.rate_limit_requests, settings.rate_limit_window)

    install_error_handlers(app)

    # -------------------------------------------------------------------------
    # Middleware (last added runs first)
    # -------------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.info(
            f"{request.method} {request.url.path} - Status: {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.cookie_secure,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------
    @app.get("/health", response_model=HealthOut)
    async def health() -> HealthOut:
        db_connected = await db.ping()
        return HealthOut(
            ok=db_connected,
            db_connected=db_connected,
            db_type=db.db_type,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    # progress first: its /workout-logs/weekly and /export/csv are literal paths
    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix)
    app.include_router(progress.router, prefix=prefix)
    app.include_router(exercises.router, prefix=prefix)
    app.include_router(public_exercises.router, prefix=prefix)
    app.include_router(workout_logs.router, prefix=prefix)

    return app
