from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import admin_router, auth_router, pages
from .analytics import (
    CounterStore,
    PageViewMiddleware,
    analytics_api_router,
    analytics_page_router,
    tracking_router,
)
from .analytics.middleware import Clock, utc_clock
from .config import Settings, get_settings
from .errors import GuardRejected
from .guards import guard_rejected_handler
from .rendering import STATIC_DIR
from .sessions import SessionStore
from .user_store import UserStore

logger = logging.getLogger("uvicorn.error")


def _log_startup(settings: Settings) -> None:
    logger.info("Counter database: %s", settings.database_path)
    logger.info("Session lifetime: %ss", settings.session_ttl_seconds)
    if settings.manual_counter_mode == "timestamp":
        logger.warning(
            "/page-view keys counters by exact timestamp and does not add to the daily "
            "page-view series; set MANUAL_COUNTER_MODE=day to share the daily counters."
        )


def create_app(
    settings: Optional[Settings] = None,
    *,
    counter_store: Optional[CounterStore] = None,
    user_store: Optional[UserStore] = None,
    session_store: Optional[SessionStore] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    settings = settings or get_settings()
    clock = clock or utc_clock
    counter_store = counter_store or CounterStore(settings.database_path)
    user_store = user_store or UserStore(settings.database_path)
    session_store = session_store or SessionStore(settings.session_ttl_seconds, clock=clock)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        _log_startup(settings)
        yield

    app = FastAPI(title="Portal Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.clock = clock
    app.state.counter_store = counter_store
    app.state.user_store = user_store
    app.state.session_store = session_store

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    # Added last so it wraps everything else and sees every request first
    app.add_middleware(
        PageViewMiddleware,
        store=counter_store,
        clock=clock,
        utc_offset_hours=settings.tracking_utc_offset_hours,
    )
    app.add_exception_handler(GuardRejected, guard_rejected_handler)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(pages.router)
    app.include_router(auth_router.router)
    app.include_router(admin_router.router)
    app.include_router(analytics_page_router)
    app.include_router(analytics_api_router)
    app.include_router(tracking_router)

    @app.get("/api/ping")
    def ping() -> Dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
