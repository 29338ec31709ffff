"""Analytics API, report page and the explicit counter endpoints."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from ..errors import StorageError
from ..exporter import daily_counters_to_csv
from ..guards import admin_only
from ..models import DailyCounterPayload, PageViewPoint
from ..rendering import templates
from .middleware import day_key
from .store import BestEffortTimestampCounters, CounterField, CounterStore

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
tracking_router = APIRouter(tags=["tracking"])
page_router = APIRouter(tags=["analytics-page"])


def get_store(request: Request) -> CounterStore:
    """Get the counter store attached to the application."""
    store = getattr(request.app.state, "counter_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Analytics store not initialized")
    return store


def get_timestamp_counters(store: CounterStore = Depends(get_store)) -> BestEffortTimestampCounters:
    return BestEffortTimestampCounters(store)


def _load_series(store: CounterStore, start_date: Optional[date], end_date: Optional[date]) -> list[dict]:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    try:
        return store.list_daily(start_date, end_date)
    except StorageError as exc:
        logger.error("Error fetching analytics data: %s", exc)
        raise HTTPException(status_code=500, detail="Error fetching analytics data") from exc


@router.get("/page-views", response_model=list[PageViewPoint])
def get_page_views(
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    store: CounterStore = Depends(get_store),
) -> list[PageViewPoint]:
    """Daily page views, oldest day first."""
    rows = _load_series(store, start_date, end_date)
    return [PageViewPoint(date=row["date"], page_views=row["page_views"]) for row in rows]


@router.get("/daily", response_model=list[DailyCounterPayload])
def get_daily_counters(
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    store: CounterStore = Depends(get_store),
) -> list[DailyCounterPayload]:
    """Daily page views and button clicks, oldest day first."""
    rows = _load_series(store, start_date, end_date)
    return [DailyCounterPayload(**row) for row in rows]


@router.get("/daily.csv", response_class=PlainTextResponse)
def export_daily_counters(
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    store: CounterStore = Depends(get_store),
) -> PlainTextResponse:
    rows = _load_series(store, start_date, end_date)
    return PlainTextResponse(
        daily_counters_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="daily_counters.csv"'},
    )


@page_router.get("/admin/reports", response_class=HTMLResponse, dependencies=[Depends(admin_only)])
def serve_reports_page(request: Request, store: CounterStore = Depends(get_store)) -> HTMLResponse:
    rows = _load_series(store, None, None)
    return templates.TemplateResponse(request, "admin/reports.html", {"analytics_data": rows})


@tracking_router.get("/page-view", response_class=PlainTextResponse)
def record_page_view(
    request: Request,
    store: CounterStore = Depends(get_store),
    timestamp_counters: BestEffortTimestampCounters = Depends(get_timestamp_counters),
) -> PlainTextResponse:
    """Explicit page-view hit.

    In ``timestamp`` mode every call is keyed by the exact current time and
    does not add to the day's bucket; ``day`` mode shares the middleware's
    atomic increment.
    """
    settings = request.app.state.settings
    now = request.app.state.clock()
    try:
        if settings.manual_counter_mode == "day":
            store.increment(day_key(now, settings.tracking_utc_offset_hours), CounterField.PAGE_VIEWS)
        else:
            timestamp_counters.record_view(now)
    except StorageError as exc:
        logger.error("Error recording page view: %s", exc)
        return PlainTextResponse("Error recording page view", status_code=500)
    return PlainTextResponse("Page viewed!")


@tracking_router.post("/track-click", response_class=PlainTextResponse)
def track_click(request: Request, store: CounterStore = Depends(get_store)) -> PlainTextResponse:
    settings = request.app.state.settings
    day = day_key(request.app.state.clock(), settings.tracking_utc_offset_hours)
    try:
        store.increment(day, CounterField.BUTTON_CLICKS)
    except StorageError as exc:
        logger.error("Error tracking click: %s", exc)
        return PlainTextResponse("Error tracking click", status_code=500)
    return PlainTextResponse("Click tracked")
