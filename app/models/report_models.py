"""TALLY — Weekly Report Models.

One document per reporting week. Metric entries are embedded as JSON so a
report keeps the targets it was filed against even if the registry changes.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field

from app.analyzer.entries import optional_float, safe_float
from app.core.dates import now_local
from app.core.metric_registry import entry_cadence


class ReportStatus(str, Enum):
    """Report lifecycle status."""

    PENDING = "pending"
    SUBMITTED = "submitted"


# ─────────────────────────────────────────────
# DATABASE MODEL — Stored weekly reports
# ─────────────────────────────────────────────


class WeeklyReport(SQLModel, table=True):
    """A submitter's weekly report.

    At most one non-archived report per Sunday–Saturday week is expected,
    but nothing here enforces it — callers check before creating.
    """

    __tablename__ = "weekly_reports"

    id: Optional[int] = Field(default=None, primary_key=True)
    submitter_name: str = Field(default="", index=True)
    narrative_text: str = Field(default="")
    metrics: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    # Wall-clock times in the reference timezone, stored without tzinfo
    created_at: datetime = Field(
        default_factory=now_local,
        sa_column=Column(DateTime(timezone=False), index=True, nullable=False),
    )
    week_ending_date: datetime = Field(
        description="Saturday end of day",
        sa_column=Column(DateTime(timezone=False), index=True, nullable=False),
    )
    status: str = Field(default=ReportStatus.PENDING.value, index=True)
    archived: bool = Field(default=False, index=True)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS — Entries, requests, responses
# ─────────────────────────────────────────────


class MetricEntry(BaseModel):
    """A metric as embedded in a report."""

    id: str = ""
    title: str
    cadence: Optional[str] = None
    value: float = 0
    target_value: float = 0
    previous_value: Optional[float] = None
    completed: bool = False


class ReportRead(BaseModel):
    """API view of a stored report."""

    id: int
    submitter_name: str
    narrative_text: str
    metrics: List[MetricEntry]
    created_at: datetime
    week_ending_date: datetime
    status: ReportStatus
    archived: bool

    @classmethod
    def from_report(cls, report: WeeklyReport) -> "ReportRead":
        return cls(
            id=report.id,
            submitter_name=report.submitter_name,
            narrative_text=report.narrative_text,
            metrics=[MetricEntry(**_clean_entry(m)) for m in report.metrics or []],
            created_at=report.created_at,
            week_ending_date=report.week_ending_date,
            status=ReportStatus(report.status),
            archived=report.archived,
        )


class ReportDraft(BaseModel):
    """Request body for creating, saving or submitting a report."""

    submitter_name: Optional[str] = None
    narrative_text: Optional[str] = None
    metrics: Optional[List[MetricEntry]] = None


class PendingReportRequest(BaseModel):
    """Request body for POST /reports/pending."""

    submitter_name: str


class ArchivedPage(BaseModel):
    """One page of archived reports with cursors for both directions."""

    reports: List[ReportRead] = []
    next_cursor: Optional[int] = None
    prev_cursor: Optional[int] = None


class CurrentWeekReport(BaseModel):
    """Current-week lookup. Duplicates are surfaced, never merged."""

    report: Optional[ReportRead] = None
    duplicates: List[ReportRead] = []
    has_duplicates: bool = False


def _clean_entry(entry: Any) -> dict:
    """Drop unknown keys and null numerics so a stored entry validates."""
    if not isinstance(entry, dict):
        return {"title": ""}
    cleaned = {k: v for k, v in entry.items() if k in MetricEntry.model_fields}
    cleaned["value"] = safe_float(entry.get("value"))
    cleaned["target_value"] = safe_float(entry.get("target_value"))
    cleaned["previous_value"] = optional_float(entry.get("previous_value"))
    cleaned["completed"] = bool(entry.get("completed", False))
    cleaned["title"] = str(entry.get("title") or "")
    cleaned["cadence"] = entry_cadence(cleaned)
    cleaned["id"] = str(entry.get("id", ""))
    return cleaned
