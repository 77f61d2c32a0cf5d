"""TALLY — Report Lifecycle Service.

pending → submitted on submit; submitted → pending on reopen, only while
the report's week is still the current one. Archiving is one-way.

One non-archived report per week: every create path checks first and
raises ``ReportExistsError`` with the existing report. There is no unique
constraint, so concurrent creates can still both land; those duplicates
are surfaced, never merged.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from app.analyzer.entries import optional_float, safe_float
from app.connectors.report_store import ReportError, ReportStore
from app.core.dates import (
    is_current_week,
    reporting_week_range,
    should_create_new_report,
    week_ending_date,
)
from app.core.metric_registry import default_metric_entries, default_target, entry_cadence
from app.models.report_models import ReportStatus, WeeklyReport
from app.core.logging import get_logger

logger = get_logger("services.reports")


class ReportLockedError(ReportError):
    """Raised when a lifecycle rule forbids the requested change."""


class ReportValidationError(ReportError):
    """Raised when a report is submitted without required fields."""


class ReportExistsError(ReportError):
    """Raised instead of creating a second report for the current week."""

    def __init__(self, existing: WeeklyReport):
        self.existing = existing
        super().__init__(
            f"A {existing.status} report already exists for this week (report {existing.id})"
        )


# ── Entries ──


def normalize_entries(entries: Iterable[dict]) -> List[dict]:
    """Coerce form entries and derive ``completed`` at write time."""
    normalized = []
    for entry in entries:
        title = str(entry.get("title") or "")
        value = safe_float(entry.get("value"))
        target = optional_float(entry.get("target_value"))
        if target is None:
            target = default_target(title)
        normalized.append(
            {
                "id": str(entry.get("id", "")),
                "title": title,
                "cadence": entry_cadence(entry),
                "value": value,
                "target_value": target,
                "previous_value": optional_float(entry.get("previous_value")),
                "completed": value >= target,
            }
        )
    return normalized


def _validate_submission(submitter_name: str, narrative_text: str) -> None:
    if not submitter_name.strip():
        raise ReportValidationError("Please enter your name")
    if not narrative_text.strip():
        raise ReportValidationError("Please provide a report summary")


# ── Creation ──


def _ensure_week_is_free(store: ReportStore, now: datetime) -> None:
    """Refuse to create when a non-archived report already covers this week."""
    existing = current_week_reports(store, now)
    if existing:
        raise ReportExistsError(existing[0])


def create_pending_report(
    store: ReportStore, submitter_name: str, now: datetime
) -> WeeklyReport:
    """New pending report for the current week, seeded with default metrics."""
    _ensure_week_is_free(store, now)
    report = WeeklyReport(
        submitter_name=submitter_name.strip(),
        narrative_text="",
        metrics=default_metric_entries(),
        created_at=now,
        week_ending_date=week_ending_date(now),
        status=ReportStatus.PENDING.value,
        archived=False,
    )
    store.create(report)
    return report


def submit_new_report(
    store: ReportStore,
    submitter_name: str,
    narrative_text: str,
    entries: Optional[Iterable[dict]],
    now: datetime,
) -> WeeklyReport:
    """File a report directly as submitted (no pending draft existed)."""
    _validate_submission(submitter_name, narrative_text)
    _ensure_week_is_free(store, now)
    report = WeeklyReport(
        submitter_name=submitter_name.strip(),
        narrative_text=narrative_text,
        metrics=normalize_entries(entries if entries is not None else default_metric_entries()),
        created_at=now,
        week_ending_date=week_ending_date(now),
        status=ReportStatus.SUBMITTED.value,
        archived=False,
    )
    store.create(report)
    return report


# ── Editing ──


def _unarchived(store: ReportStore, report_id: int) -> WeeklyReport:
    report = store.get_by_id(report_id)
    if report.archived:
        raise ReportLockedError("Archived reports cannot be changed")
    return report


def _draft_fields(
    report: WeeklyReport,
    submitter_name: Optional[str],
    narrative_text: Optional[str],
    entries: Optional[Iterable[dict]],
) -> dict:
    return {
        "submitter_name": (
            submitter_name.strip() if submitter_name is not None else report.submitter_name
        ),
        "narrative_text": narrative_text if narrative_text is not None else report.narrative_text,
        "metrics": normalize_entries(entries if entries is not None else report.metrics or []),
    }


def save_draft(
    store: ReportStore,
    report_id: int,
    submitter_name: Optional[str] = None,
    narrative_text: Optional[str] = None,
    entries: Optional[Iterable[dict]] = None,
) -> WeeklyReport:
    """Save form edits to a pending report, keeping it pending."""
    report = _unarchived(store, report_id)
    if report.status != ReportStatus.PENDING.value:
        raise ReportLockedError("Only pending reports can be edited; reopen it first")
    fields = _draft_fields(report, submitter_name, narrative_text, entries)
    return store.update(report_id, status=ReportStatus.PENDING.value, **fields)


def submit_pending_report(
    store: ReportStore,
    report_id: int,
    submitter_name: str,
    narrative_text: str,
    entries: Optional[Iterable[dict]] = None,
) -> WeeklyReport:
    """pending → submitted with the final form values."""
    _validate_submission(submitter_name, narrative_text)
    report = _unarchived(store, report_id)
    if report.status != ReportStatus.PENDING.value:
        raise ReportLockedError("Report has already been submitted")
    fields = _draft_fields(report, submitter_name, narrative_text, entries)
    report = store.update(report_id, status=ReportStatus.SUBMITTED.value, **fields)
    logger.info(f"Submitted report {report_id}", extra={"report_id": report_id})
    return report


def revert_to_pending(store: ReportStore, report_id: int, now: datetime) -> WeeklyReport:
    """submitted → pending, only while the report's week is current."""
    report = _unarchived(store, report_id)
    if report.status != ReportStatus.SUBMITTED.value:
        raise ReportLockedError("Report is not submitted")
    if not is_current_week(report.week_ending_date, now):
        raise ReportLockedError("Only reports from the current week can be reopened")
    report = store.update(report_id, status=ReportStatus.PENDING.value)
    logger.info(f"Reopened report {report_id}", extra={"report_id": report_id})
    return report


def archive_report(store: ReportStore, report_id: int) -> WeeklyReport:
    report = store.get_by_id(report_id)
    if report.archived:
        return report
    return store.update(report_id, archived=True)


def delete_report(store: ReportStore, report_id: int) -> None:
    store.delete(report_id)


# ── Lookup ──


def get_report(store: ReportStore, report_id: int) -> WeeklyReport:
    return store.get_by_id(report_id)


def list_active_reports(store: ReportStore) -> List[WeeklyReport]:
    return store.list_active()


def list_archived_reports(
    store: ReportStore,
    page_size: int,
    after: Optional[int] = None,
    before: Optional[int] = None,
) -> Tuple[List[WeeklyReport], Optional[int], Optional[int]]:
    """A page of archived reports plus (next, prev) cursors."""
    reports = store.list_archived_page(page_size, after=after, before=before)
    if not reports:
        return [], None, None
    full_page = len(reports) == page_size
    if before is not None:
        return reports, reports[-1].id, reports[0].id if full_page else None
    next_cursor = reports[-1].id if full_page else None
    prev_cursor = reports[0].id if after is not None else None
    return reports, next_cursor, prev_cursor


def current_week_reports(store: ReportStore, now: datetime) -> List[WeeklyReport]:
    """Every non-archived report (any submitter, any status) for this week."""
    start, end = reporting_week_range(now)
    return [r for r in store.find_in_range(start, end) if not r.archived]


def ensure_current_week_report(
    store: ReportStore, submitter_name: str, now: datetime
) -> Tuple[Optional[WeeklyReport], bool]:
    """Create this week's pending report when it is due and none exists.

    Returns (report for the week or None, whether it was just created).
    """
    existing = current_week_reports(store, now)
    if existing:
        if len(existing) > 1:
            logger.warning(
                f"{len(existing)} reports exist for the week ending {week_ending_date(now):%Y-%m-%d}"
            )
        return existing[0], False

    if not submitter_name.strip() or not should_create_new_report(now):
        return None, False

    report = create_pending_report(store, submitter_name, now)
    logger.info(
        f"Auto-created pending report {report.id} for {submitter_name!r}",
        extra={"report_id": report.id},
    )
    return report, True
