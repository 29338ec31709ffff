"""Thin wrapper around CSV export utility."""
from __future__ import annotations

from typing import Dict, List

from src.export_csv import DAILY_COUNTER_COLUMNS, build_csv


def daily_counters_to_csv(rows: List[Dict]) -> str:
    return build_csv(DAILY_COUNTER_COLUMNS, rows)
