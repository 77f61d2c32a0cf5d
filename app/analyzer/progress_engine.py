"""TALLY — Monthly Progress Engine.

Monthly-cadence metrics are reported weekly but targeted monthly. This
engine sums a submitter's earlier submitted reports in the current month
and combines that running total with the values on the editing form to
pace the rest of the month.
"""

import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List

from app.analyzer.achievement_engine import classify
from app.analyzer.entries import iter_entries, safe_float
from app.connectors.report_store import ReportStore, ReportStoreError
from app.core.dates import month_range, week_of_month
from app.core.metric_registry import Cadence, default_target, entry_cadence
from app.models.analysis_models import (
    AchievementStatus,
    MonthlyProgress,
    WeeklyGuidance,
)
from app.models.report_models import WeeklyReport
from app.core.logging import get_logger

logger = get_logger("analyzer.progress")

WEEKS_PER_MONTH = 4


def accumulate_monthly_progress(
    reports: Iterable[WeeklyReport],
) -> Dict[str, MonthlyProgress]:
    """Running totals of Monthly-cadence entries, keyed by metric title."""
    progress: Dict[str, MonthlyProgress] = {}
    for report in reports:
        for entry in iter_entries(report):
            if entry_cadence(entry) != Cadence.MONTHLY.value:
                continue
            title = entry.get("title", "")
            if title not in progress:
                progress[title] = MonthlyProgress(
                    value=0.0,
                    target_value=safe_float(entry.get("target_value")),
                    cadence=Cadence.MONTHLY.value,
                )
            progress[title].value += safe_float(entry.get("value"))
    return progress


def calculate_monthly_progress(
    store: ReportStore, submitter_name: str, now: datetime
) -> Dict[str, MonthlyProgress]:
    """Progress so far this calendar month for one submitter. Failures yield {}."""
    first, last = month_range(now)
    try:
        reports = store.submitted_between(submitter_name, first, last)
    except ReportStoreError as e:
        logger.error(f"Monthly progress unavailable for {submitter_name!r}: {e}")
        return {}
    return accumulate_monthly_progress(reports)


def suggested_weekly_value(target: float, prior: float, week: int) -> int:
    """Value needed this week to stay on pace for the monthly target."""
    weeks_left = (WEEKS_PER_MONTH + 1) - week
    if weeks_left <= 0:
        return 0
    remaining = max(0.0, target - prior)
    return math.ceil(remaining / weeks_left)


def pacing_status(
    value: float,
    target: float,
    cadence: str,
    prior: float | None,
    week: int,
) -> AchievementStatus:
    """Status shown beside a form value.

    Monthly metrics with earlier progress are judged on the projected month
    total, and count as on-track once it reaches the week's share of target.
    """
    if cadence == Cadence.MONTHLY.value and prior is not None:
        total = value + prior
        percentage = (total / target * 100) if target > 0 else 0.0
        status = classify(percentage)
        if status != AchievementStatus.BEHIND:
            return status
        expected = week / WEEKS_PER_MONTH * target
        return AchievementStatus.ON_TRACK if total >= expected else AchievementStatus.BEHIND

    percentage = (value / target * 100) if target > 0 else 0.0
    return classify(percentage)


def build_weekly_guidance(
    entries: Iterable[dict],
    progress: Dict[str, MonthlyProgress],
    now: datetime,
) -> List[WeeklyGuidance]:
    """Per-entry pacing for the form's current, unsubmitted values."""
    week = week_of_month(now)
    guidance: List[WeeklyGuidance] = []
    for entry in entries:
        title = entry.get("title", "")
        cadence = entry_cadence(entry)
        value = safe_float(entry.get("value"))
        target = safe_float(entry.get("target_value")) or default_target(title)
        prior_progress = progress.get(title)
        prior = prior_progress.value if prior_progress else None
        is_monthly = cadence == Cadence.MONTHLY.value

        guidance.append(
            WeeklyGuidance(
                metric_title=title,
                cadence=cadence,
                current_value=value,
                target_value=target,
                prior_accumulated=prior or 0.0,
                projected_total=value + (prior or 0.0) if is_monthly else value,
                week_of_month=week,
                suggested_value=(
                    suggested_weekly_value(target, prior or 0.0, week) if is_monthly else 0
                ),
                status=pacing_status(value, target, cadence, prior, week),
            )
        )
    return guidance


def guidance_totals(guidance: List[WeeklyGuidance]) -> Dict[str, int]:
    """Count of metrics per status, for the form header."""
    counts: Dict[str, int] = defaultdict(int)
    for g in guidance:
        counts[g.status.value] += 1
    return dict(counts)
