"""TALLY — Report Filter/Sort Stage.

Selects the submitted reports that belong to a window. A report is kept
when either its week ending date or its creation date falls inside the
window, so records whose two dates disagree still surface.
"""

from datetime import datetime
from typing import Iterable, List

from app.analyzer.window_resolver import resolve_window
from app.connectors.report_store import ReportStore, ReportStoreError
from app.models.analysis_models import TimeWindow
from app.models.report_models import ReportStatus, WeeklyReport
from app.core.logging import get_logger

logger = get_logger("analyzer.filter")


def _in_window(dt: datetime | None, window: TimeWindow) -> bool:
    return dt is not None and window.start_date <= dt <= window.end_date


def filter_reports(
    reports: Iterable[WeeklyReport], window: TimeWindow
) -> List[WeeklyReport]:
    """Keep reports inside the window (OR on both dates), newest week first."""
    seen: set = set()
    kept: List[WeeklyReport] = []
    for report in reports:
        key = report.id if report.id is not None else id(report)
        if key in seen:
            continue
        if _in_window(report.week_ending_date, window) or _in_window(
            report.created_at, window
        ):
            seen.add(key)
            kept.append(report)

    kept.sort(key=lambda r: r.week_ending_date or r.created_at, reverse=True)
    return kept


def get_reports_for_window(
    store: ReportStore, range_name: str, now: datetime
) -> List[WeeklyReport]:
    """Submitted reports for a named range. Store failures yield []."""
    window = resolve_window(range_name, now)
    try:
        submitted = store.query_by_status(ReportStatus.SUBMITTED)
    except ReportStoreError as e:
        logger.error(
            f"Could not load reports for {range_name}: {e}",
            extra={"range_name": range_name},
        )
        return []

    reports = filter_reports(submitted, window)
    logger.info(
        f"Filtered {len(submitted)} submitted reports to {len(reports)} for {range_name}",
        extra={"range_name": range_name},
    )
    return reports
