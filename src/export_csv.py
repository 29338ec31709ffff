"""Utility to dump the daily counters to CSV."""
from __future__ import annotations

import argparse
import csv
import io
import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence

DAILY_COUNTER_COLUMNS: Sequence[str] = (
    "date",
    "page_views",
    "button_clicks",
)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export daily page-view and click counters to CSV.")
    parser.add_argument("--db", type=Path, default=None, help="Database path (defaults to APP_DATABASE_PATH).")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("output") / "daily_counters.csv",
        help="CSV file to write (default: ./output/daily_counters.csv).",
    )
    parser.add_argument("--start-date", type=date.fromisoformat, default=None, help="First day (YYYY-MM-DD).")
    parser.add_argument("--end-date", type=date.fromisoformat, default=None, help="Last day (YYYY-MM-DD).")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the CSV file if it already exists.",
    )
    return parser.parse_args(argv)


def build_csv(columns: Sequence[str], rows: Iterable[Dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), restval="", extrasaction="ignore", lineterminator="\r\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def write_csv(path: Path, columns: Sequence[str], rows: Iterable[Dict[str, Any]], *, overwrite: bool) -> int:
    if path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with path.open("w", encoding="utf-8-sig", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(columns), extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
            written += 1
    return written


def main(argv: Optional[Sequence[str]] = None) -> None:
    from backend.app.analytics.store import CounterStore
    from backend.app.config import get_settings

    args = parse_args(argv)
    store = CounterStore(args.db or get_settings().database_path)
    rows = store.list_daily(args.start_date, args.end_date)
    written = write_csv(args.output, DAILY_COUNTER_COLUMNS, rows, overwrite=args.force)
    print(json.dumps({"exported": str(args.output), "rows": written}, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
