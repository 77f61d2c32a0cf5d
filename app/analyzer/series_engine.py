"""TALLY — Per-Metric Series Builder.

Builds the chart series for one metric: one point per day, where several
reports on the same day sum their values but keep the largest target, so
partial submissions accumulate progress without double-counting the goal.
No points are ever synthesised; an empty window is an empty series.
"""

from datetime import datetime
from typing import Dict, List, Optional

from app.analyzer.entries import find_entry, optional_float, report_day_key, safe_float
from app.analyzer.report_filter import get_reports_for_window
from app.analyzer.window_resolver import resolve_window
from app.config import settings
from app.connectors.report_store import ReportStore
from app.core.metric_registry import get_metric
from app.models.analysis_models import MetricPerformance, SeriesPoint, TimeWindow
from app.models.report_models import WeeklyReport
from app.core.logging import get_logger

logger = get_logger("analyzer.series")


def _fallback_target(metric_title: str) -> float:
    metric = get_metric(metric_title)
    return metric.target_value if metric else settings.default_series_target


def merge_point(existing: SeriesPoint, value: float, target: float) -> SeriesPoint:
    """Same-day merge: values add up, the target is the larger one."""
    return SeriesPoint(
        date=existing.date,
        value=existing.value + value,
        target=max(existing.target, target),
    )


def build_metric_series(
    reports: List[WeeklyReport],
    metric_title: str,
    window: Optional[TimeWindow] = None,
) -> MetricPerformance:
    """Day-sorted series and summary for one metric across reports.

    ``window`` only scopes the log line; callers pass reports already
    filtered to it.
    """
    fallback = _fallback_target(metric_title)
    points: Dict[str, SeriesPoint] = {}
    total_value = 0.0
    total_target = 0.0
    count = 0

    for report in reports:
        entry = find_entry(report, metric_title)
        if entry is None:
            continue

        value = safe_float(entry.get("value"))
        target = optional_float(entry.get("target_value"))
        if target is None:
            target = fallback

        key = report_day_key(report)
        if key in points:
            points[key] = merge_point(points[key], value, target)
        else:
            points[key] = SeriesPoint(date=key, value=value, target=target)

        total_value += value
        total_target += target
        count += 1

    if not points:
        return MetricPerformance(metric_title=metric_title)

    data = [points[k] for k in sorted(points)]
    if window is not None:
        logger.info(
            f"Built {len(data)} points for {metric_title} "
            f"({window.start_date:%Y-%m-%d} → {window.end_date:%Y-%m-%d})",
            extra={"metric": metric_title, "range_name": window.range_name},
        )

    return MetricPerformance(
        metric_title=metric_title,
        data=data,
        total=total_value,
        average=total_value / count if count > 0 else 0.0,
        completion_rate=(total_value / total_target * 100) if total_target > 0 else 0.0,
    )


def get_performance_by_metric(
    store: ReportStore, range_name: str, metric_title: str, now: datetime
) -> MetricPerformance:
    """Series for one metric over a named range; failures yield an empty series."""
    try:
        reports = get_reports_for_window(store, range_name, now)
        return build_metric_series(reports, metric_title, resolve_window(range_name, now))
    except Exception as e:
        logger.error(
            f"Performance for {metric_title} failed: {e}",
            extra={"metric": metric_title, "range_name": range_name},
        )
        return MetricPerformance(metric_title=metric_title)
