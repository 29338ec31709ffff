"""Analytics module for request tracking and daily counters."""
from .store import BestEffortTimestampCounters, CounterField, CounterStore
from .middleware import PageViewMiddleware
from .router import page_router as analytics_page_router
from .router import router as analytics_api_router
from .router import tracking_router

__all__ = [
    "BestEffortTimestampCounters",
    "CounterField",
    "CounterStore",
    "PageViewMiddleware",
    "analytics_api_router",
    "analytics_page_router",
    "tracking_router",
]
