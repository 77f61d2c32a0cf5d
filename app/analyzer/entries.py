"""TALLY — Tolerant readers for embedded metric entries.

Entries come from stored JSON and may be missing fields or carry junk;
every aggregation reads them through these helpers so a malformed entry
counts as zero instead of failing the view.
"""

from typing import Any, Iterator, Optional

from app.core.dates import day_key


def safe_float(value: Any) -> float:
    """Safely convert a value to float."""
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def optional_float(value: Any) -> Optional[float]:
    """Like ``safe_float`` but keeps "absent" distinct from zero."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def iter_entries(report) -> Iterator[dict]:
    """Yield the well-formed (dict) metric entries of a report."""
    for entry in getattr(report, "metrics", None) or []:
        if isinstance(entry, dict):
            yield entry


def find_entry(report, title: str) -> Optional[dict]:
    for entry in iter_entries(report):
        if entry.get("title") == title:
            return entry
    return None


def report_day_key(report) -> str:
    """Charting day of a report: week ending date, else creation date."""
    return day_key(report.week_ending_date or report.created_at)
