"""TALLY — Analytics Output Models (Versioned).

Everything here is derived from the current report set on each request;
nothing is persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel


class AchievementStatus(str, Enum):
    """Three-level classification of a completion percentage."""

    AHEAD = "ahead"
    ON_TRACK = "on-track"
    BEHIND = "behind"


class TimeWindow(BaseModel):
    """A named range resolved against the current instant."""

    range_name: str
    start_date: datetime
    end_date: datetime


class DateBucket(BaseModel):
    """Per-day metric totals, keyed by report creation day."""

    date: str
    metrics: Dict[str, float] = {}


class MetricsPerformance(BaseModel):
    """Aggregate across all metrics. ``completion`` is unclamped."""

    by_date: List[DateBucket] = []
    totals: Dict[str, float] = {}
    averages: Dict[str, float] = {}
    completion: Dict[str, float] = {}


class SeriesPoint(BaseModel):
    """One charted day for one metric."""

    date: str
    value: float
    target: float


class MetricPerformance(BaseModel):
    """Chart series for a single metric plus its summary."""

    metric_title: str
    data: List[SeriesPoint] = []
    total: float = 0.0
    average: float = 0.0
    completion_rate: float = 0.0


class Achievement(BaseModel):
    """Clamped completion percentage and its status."""

    percentage: float = 0.0
    status: AchievementStatus = AchievementStatus.BEHIND


class MonthlyProgress(BaseModel):
    """Running monthly total for a Monthly-cadence metric."""

    value: float = 0.0
    target_value: float = 0.0
    cadence: str = "Monthly"


class WeeklyGuidance(BaseModel):
    """Pacing hint for one metric on the editing form."""

    metric_title: str
    cadence: str
    current_value: float = 0.0
    target_value: float = 0.0
    prior_accumulated: float = 0.0
    projected_total: float = 0.0
    week_of_month: int = 1
    suggested_value: int = 0
    status: AchievementStatus = AchievementStatus.BEHIND


class AnalyticsOverview(BaseModel):
    """TALLY Analytics Output v1 — everything the analytics view renders."""

    schema_version: str = "1.0.0"
    generated_at: str = ""
    window: Optional[TimeWindow] = None
    report_count: int = 0
    achievements: Dict[str, Achievement] = {}
    performance: MetricsPerformance = MetricsPerformance()
    charts: List[MetricPerformance] = []
