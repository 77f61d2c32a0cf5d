"""TALLY — Metric Aggregator.

Folds a window's reports into per-metric totals, averages and raw
completion ratios, plus per-day buckets for the overview chart.
Completion here is unclamped; the achievement engine clamps for display.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List

from app.analyzer.entries import iter_entries, safe_float
from app.analyzer.report_filter import get_reports_for_window
from app.connectors.report_store import ReportStore
from app.core.dates import day_key
from app.models.analysis_models import DateBucket, MetricsPerformance
from app.models.report_models import WeeklyReport
from app.core.logging import get_logger

logger = get_logger("analyzer.performance")


def aggregate_metrics(reports: List[WeeklyReport]) -> MetricsPerformance:
    """Aggregate metric values across reports."""
    sums: Dict[str, float] = defaultdict(float)
    targets: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    by_day: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))

    for report in reports:
        bucket = by_day[day_key(report.created_at)]
        for entry in iter_entries(report):
            title = entry.get("title", "")
            value = safe_float(entry.get("value"))
            bucket[title] += value
            sums[title] += value
            targets[title] += safe_float(entry.get("target_value"))
            counts[title] += 1

    totals: Dict[str, float] = {}
    averages: Dict[str, float] = {}
    completion: Dict[str, float] = {}
    for title, total in sums.items():
        totals[title] = total
        averages[title] = total / counts[title] if counts[title] > 0 else 0.0
        completion[title] = (total / targets[title] * 100) if targets[title] > 0 else 0.0

    return MetricsPerformance(
        by_date=[DateBucket(date=d, metrics=dict(by_day[d])) for d in sorted(by_day)],
        totals=totals,
        averages=averages,
        completion=completion,
    )


def get_metrics_performance(
    store: ReportStore, range_name: str, now: datetime
) -> MetricsPerformance:
    """Aggregate for a named range; any failure degrades to an empty result."""
    try:
        reports = get_reports_for_window(store, range_name, now)
        return aggregate_metrics(reports)
    except Exception as e:
        logger.error(
            f"Metrics performance failed for {range_name}: {e}",
            extra={"range_name": range_name},
        )
        return MetricsPerformance()
