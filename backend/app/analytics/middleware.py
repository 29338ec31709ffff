"""Middleware that counts every request against today's page-view bucket."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .store import CounterField, CounterStore

logger = logging.getLogger("uvicorn.error")

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


def day_key(now: datetime, utc_offset_hours: int = 0) -> date:
    """Truncate ``now`` to a calendar day in the tracking timezone."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone(timedelta(hours=utc_offset_hours))).date()


class PageViewMiddleware(BaseHTTPMiddleware):
    """Increment the daily page-view counter before handing the request on."""

    # Served before tracking, never counted
    SKIP_ENDPOINTS = {
        "/favicon.ico",
    }

    SKIP_PREFIXES = (
        "/static/",
    )

    def __init__(
        self,
        app,
        store: CounterStore,
        clock: Optional[Clock] = None,
        utc_offset_hours: int = 0,
    ) -> None:
        super().__init__(app)
        self.store = store
        self.clock = clock or utc_clock
        self.utc_offset_hours = utc_offset_hours

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.SKIP_ENDPOINTS or path.startswith(self.SKIP_PREFIXES):
            return await call_next(request)

        try:
            day = day_key(self.clock(), self.utc_offset_hours)
            await run_in_threadpool(self.store.increment, day, CounterField.PAGE_VIEWS)
        except Exception:
            # Tracking must never fail the request
            logger.exception("Error tracking page views for %s %s", request.method, path)

        return await call_next(request)
