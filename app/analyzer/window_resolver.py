"""TALLY — Time-Window Resolver.

Maps a named range to a concrete [start, end] interval anchored on "now".
The window always ends at the end of today.
"""

from datetime import datetime, timedelta

from app.core.dates import end_of_day, start_of_day
from app.models.analysis_models import TimeWindow

DEFAULT_RANGE = "month"

# Ranges expressed as a fixed look-back in days
LOOKBACK_DAYS = {
    "month": 30,
    "quarter": 90,
    "halfYear": 180,
    "year": 365,
}

RANGE_NAMES = ("week", *LOOKBACK_DAYS)


def _week_start(now: datetime) -> datetime:
    """Most recent Monday 00:00 (Sunday rolls back 6 days)."""
    days_since_monday = now.weekday()
    return start_of_day(now - timedelta(days=days_since_monday))


def resolve_window(range_name: str, now: datetime) -> TimeWindow:
    """Resolve a range name into a TimeWindow. Unknown names fall back to a month."""
    end = end_of_day(now)
    if range_name == "week":
        start = _week_start(now)
    else:
        days = LOOKBACK_DAYS.get(range_name, LOOKBACK_DAYS[DEFAULT_RANGE])
        start = start_of_day(now - timedelta(days=days))
    return TimeWindow(range_name=range_name, start_date=start, end_date=end)
