"""SQLite-backed storage for page-view and click counters."""
from __future__ import annotations

import sqlite3
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import StorageError


class CounterField(str, Enum):
    PAGE_VIEWS = "page_views"
    BUTTON_CLICKS = "button_clicks"


# Column names are only ever taken from this mapping, never from input.
_COLUMNS = {
    CounterField.PAGE_VIEWS: "page_views",
    CounterField.BUTTON_CLICKS: "button_clicks",
}


class CounterStore:
    """Day-bucketed counters, one row per calendar day."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=30)
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self.connect() as conn:
            conn.executescript(
                """
                PRAGMA journal_mode=WAL;
                CREATE TABLE IF NOT EXISTS daily_counters (
                    day TEXT PRIMARY KEY,
                    page_views INTEGER NOT NULL DEFAULT 0,
                    button_clicks INTEGER NOT NULL DEFAULT 0
                );
                CREATE TABLE IF NOT EXISTS timestamp_counters (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    recorded_at TEXT NOT NULL,
                    page_views INTEGER NOT NULL DEFAULT 0
                );
                CREATE INDEX IF NOT EXISTS idx_timestamp_counters_recorded_at
                    ON timestamp_counters(recorded_at);
                """
            )

    @property
    def db_path(self) -> Path:
        return self._db_path

    def increment(self, day: date, field: CounterField, delta: int = 1) -> None:
        """Add ``delta`` to ``field`` for ``day``, creating the row if absent.

        A single upsert statement; sqlite serialises the read and the write,
        so concurrent increments of the same day from any number of
        connections never lose updates.
        """
        if delta < 0:
            raise ValueError("delta must be non-negative")
        column = _COLUMNS[CounterField(field)]
        try:
            with self.connect() as conn:
                conn.execute(
                    f"""
                    INSERT INTO daily_counters (day, {column})
                    VALUES (?, ?)
                    ON CONFLICT(day) DO UPDATE SET {column} = {column} + excluded.{column}
                    """,
                    (day.isoformat(), delta),
                )
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    def get_day(self, day: date) -> Optional[Dict[str, Any]]:
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT day, page_views, button_clicks FROM daily_counters WHERE day = ?",
                    (day.isoformat(),),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return self._serialize(row) if row else None

    def list_daily(self, start: Optional[date] = None, end: Optional[date] = None) -> List[Dict[str, Any]]:
        """Return counters ascending by day, optionally within an inclusive range."""
        clauses = []
        params: List[str] = []
        if start is not None:
            clauses.append("day >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("day <= ?")
            params.append(end.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            with self.connect() as conn:
                rows = conn.execute(
                    f"""
                    SELECT day, page_views, button_clicks
                    FROM daily_counters
                    {where}
                    ORDER BY day ASC
                    """,
                    tuple(params),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return [self._serialize(row) for row in rows]

    def _serialize(self, row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "date": row["day"],
            "page_views": int(row["page_views"] or 0),
            "button_clicks": int(row["button_clicks"] or 0),
        }


class BestEffortTimestampCounters:
    """Find-or-create counters keyed by an exact timestamp.

    NOT atomic: the lookup, the increment and the write are separate
    statements, so two concurrent calls for the same timestamp can lose an
    update. Timestamps carry microseconds, so nearly every call creates a new
    row. Use ``CounterStore.increment`` for anything that must add up.
    """

    def __init__(self, store: CounterStore) -> None:
        self._store = store

    def record_view(self, timestamp: datetime) -> Dict[str, Any]:
        key = timestamp.isoformat(timespec="microseconds")
        try:
            existing = self._find(key)
            if existing is not None:
                page_views = existing["page_views"] + 1
                with self._store.connect() as conn:
                    conn.execute(
                        "UPDATE timestamp_counters SET page_views = ? WHERE id = ?",
                        (page_views, existing["id"]),
                    )
                return {**existing, "page_views": page_views}
            with self._store.connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO timestamp_counters (recorded_at, page_views) VALUES (?, 1)",
                    (key,),
                )
                return {"id": cursor.lastrowid, "recorded_at": key, "page_views": 1}
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    def list_all(self) -> List[Dict[str, Any]]:
        try:
            with self._store.connect() as conn:
                rows = conn.execute(
                    "SELECT id, recorded_at, page_views FROM timestamp_counters ORDER BY recorded_at ASC, id ASC"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return [dict(row) for row in rows]

    def _find(self, key: str) -> Optional[Dict[str, Any]]:
        with self._store.connect() as conn:
            row = conn.execute(
                "SELECT id, recorded_at, page_views FROM timestamp_counters WHERE recorded_at = ? LIMIT 1",
                (key,),
            ).fetchone()
        return dict(row) if row else None


__all__ = ["BestEffortTimestampCounters", "CounterField", "CounterStore"]
