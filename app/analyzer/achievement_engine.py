"""TALLY — Achievement Engine.

Turns a report set into a clamped 0–100 completion percentage and a
status per metric. Every registered metric is reported, even with no data.

Monthly-cadence targets restate the same goal in every weekly report, so
they count once per calendar month (the largest target filed that month).
"""

from collections import defaultdict
from typing import Dict, List

from app.analyzer.entries import iter_entries, safe_float
from app.core.metric_registry import (
    Cadence,
    DEFAULT_METRICS,
    MetricDefinition,
    entry_cadence,
)
from app.models.analysis_models import Achievement, AchievementStatus
from app.models.report_models import WeeklyReport
from app.core.logging import get_logger

logger = get_logger("analyzer.achievement")

# Thresholds (percent)
AHEAD_THRESHOLD = 100.0
ON_TRACK_THRESHOLD = 75.0


def classify(percentage: float) -> AchievementStatus:
    """ahead ≥ 100, on-track ≥ 75, otherwise behind."""
    if percentage >= AHEAD_THRESHOLD:
        return AchievementStatus.AHEAD
    if percentage >= ON_TRACK_THRESHOLD:
        return AchievementStatus.ON_TRACK
    return AchievementStatus.BEHIND


def clamped_percentage(value: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return max(0.0, min(100.0, value / target * 100))


def calculate_achievements(
    reports: List[WeeklyReport],
    definitions: List[MetricDefinition] = DEFAULT_METRICS,
) -> Dict[str, Achievement]:
    """Achievement per metric title across the given reports."""
    sums: Dict[str, float] = {m.title: 0.0 for m in definitions}
    weekly_targets: Dict[str, float] = defaultdict(float)
    # (title, "YYYY-MM") → largest monthly target seen
    monthly_targets: Dict[tuple[str, str], float] = {}

    for report in reports:
        month_key = report.created_at.strftime("%Y-%m")
        for entry in iter_entries(report):
            title = entry.get("title", "")
            target = safe_float(entry.get("target_value"))
            sums[title] = sums.get(title, 0.0) + safe_float(entry.get("value"))

            if entry_cadence(entry) == Cadence.MONTHLY.value:
                key = (title, month_key)
                monthly_targets[key] = max(monthly_targets.get(key, 0.0), target)
            else:
                weekly_targets[title] += target

    targets: Dict[str, float] = defaultdict(float, weekly_targets)
    for (title, _), target in monthly_targets.items():
        targets[title] += target

    # No contributing target: fall back to the configured default
    for metric in definitions:
        if targets[metric.title] == 0 and metric.target_value:
            targets[metric.title] = metric.target_value

    result: Dict[str, Achievement] = {}
    for title, total in sums.items():
        percentage = clamped_percentage(total, targets[title])
        result[title] = Achievement(percentage=percentage, status=classify(percentage))

    logger.info(f"Computed achievements for {len(result)} metrics over {len(reports)} reports")
    return result
