"""TALLY — Wall-Clock Date Helpers.

All report timestamps are naive datetimes expressed in the reference timezone
(``settings.report_timezone``). Reporting weeks run Sunday through Saturday.
"""

from calendar import monthrange
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.config import settings

DATE_KEY_FORMAT = "%Y-%m-%d"


def now_local(tz_name: str | None = None) -> datetime:
    """Current wall-clock time in the reference timezone, without tzinfo."""
    tz = ZoneInfo(tz_name or settings.report_timezone)
    return datetime.now(tz).replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def day_key(dt: datetime | date) -> str:
    """Truncate a timestamp to its calendar day (YYYY-MM-DD)."""
    return dt.strftime(DATE_KEY_FORMAT)


def reporting_week_range(now: datetime) -> tuple[datetime, datetime]:
    """Sunday 00:00 → Saturday 23:59:59.999 of the week containing ``now``."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = start_of_day(now - timedelta(days=days_since_sunday))
    end = end_of_day(start + timedelta(days=6))
    return start, end


def week_ending_date(now: datetime) -> datetime:
    """The Saturday (end of day) that closes the reporting week of ``now``."""
    return reporting_week_range(now)[1]


def is_current_week(dt: datetime, now: datetime) -> bool:
    start, end = reporting_week_range(now)
    return start <= dt <= end


def month_range(now: datetime) -> tuple[datetime, datetime]:
    """First day 00:00 → last day 23:59:59.999 of the month containing ``now``."""
    last_day = monthrange(now.year, now.month)[1]
    first = start_of_day(now.replace(day=1))
    last = end_of_day(now.replace(day=last_day))
    return first, last


def week_of_month(now: datetime) -> int:
    """Week number within the month, counted from the day of month (1–5)."""
    return (now.day - 1) // 7 + 1


def should_create_new_report(now: datetime) -> bool:
    """Monday at or after the configured creation hour."""
    return now.weekday() == 0 and now.hour >= settings.report_creation_hour
