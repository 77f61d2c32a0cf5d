"""TALLY — Report Store.

The document-store collaborator behind every report read and write.
Queries stay deliberately plain (by status, by id, by week-ending range):
date-window filtering for analytics happens in the analyzer, not here.
Any database failure surfaces as ``ReportStoreError``.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models.report_models import ReportStatus, WeeklyReport
from app.core.logging import get_logger

logger = get_logger("store.reports")

UPDATABLE_FIELDS = {
    "submitter_name",
    "narrative_text",
    "metrics",
    "week_ending_date",
    "status",
    "archived",
}


class ReportError(Exception):
    """Base class for report lifecycle and storage errors."""


class ReportStoreError(ReportError):
    """Raised when the underlying store cannot be read or written."""


class ReportNotFoundError(ReportError):
    """Raised when a report id has no record."""

    def __init__(self, report_id: Any):
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found")


class ReportStore:
    """Report persistence over a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    # ── Core Execution ──

    def _all(self, statement) -> List[WeeklyReport]:
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Report query failed: {e}")
            raise ReportStoreError(f"Report query failed: {e}") from e

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Report write failed: {e}")
            raise ReportStoreError(f"Report write failed: {e}") from e

    # ── Basic Operations ──

    def query_by_status(self, status: ReportStatus | str) -> List[WeeklyReport]:
        """All reports with the given status, no date filter."""
        status = ReportStatus(status).value
        return self._all(select(WeeklyReport).where(WeeklyReport.status == status))

    def get_by_id(self, report_id: int) -> WeeklyReport:
        try:
            report = self.session.get(WeeklyReport, report_id)
        except SQLAlchemyError as e:
            raise ReportStoreError(f"Report lookup failed: {e}") from e
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def create(self, report: WeeklyReport) -> int:
        self.session.add(report)
        self._commit()
        self.session.refresh(report)
        logger.info(
            f"Created {report.status} report {report.id}", extra={"report_id": report.id}
        )
        return report.id

    def update(self, report_id: int, **fields: Any) -> WeeklyReport:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        report = self.get_by_id(report_id)
        for key, value in fields.items():
            if key == "metrics":
                value = [dict(m) for m in value]  # fresh list so the JSON column is flagged dirty
            setattr(report, key, value)
        self.session.add(report)
        self._commit()
        self.session.refresh(report)
        return report

    def delete(self, report_id: int) -> None:
        report = self.get_by_id(report_id)
        self.session.delete(report)
        self._commit()
        logger.info(f"Deleted report {report_id}", extra={"report_id": report_id})

    # ── Listing ──

    def list_active(self) -> List[WeeklyReport]:
        """Non-archived reports, newest reporting week first."""
        return self._all(
            select(WeeklyReport)
            .where(WeeklyReport.archived == False)  # noqa: E712
            .order_by(WeeklyReport.week_ending_date.desc(), WeeklyReport.id.desc())  # type: ignore
        )

    def find_in_range(self, start: datetime, end: datetime) -> List[WeeklyReport]:
        """Reports whose week ending date falls in [start, end], oldest id first."""
        return self._all(
            select(WeeklyReport)
            .where(
                WeeklyReport.week_ending_date >= start,
                WeeklyReport.week_ending_date <= end,
            )
            .order_by(WeeklyReport.id)  # type: ignore
        )

    def submitted_between(
        self, submitter_name: str, start: datetime, end: datetime
    ) -> List[WeeklyReport]:
        """A submitter's submitted reports created in [start, end], ascending."""
        return self._all(
            select(WeeklyReport)
            .where(
                WeeklyReport.submitter_name == submitter_name,
                WeeklyReport.status == ReportStatus.SUBMITTED.value,
                WeeklyReport.created_at >= start,
                WeeklyReport.created_at <= end,
            )
            .order_by(WeeklyReport.created_at)  # type: ignore
        )

    # ── Pagination ──

    def list_archived_page(
        self,
        page_size: int,
        after: Optional[int] = None,
        before: Optional[int] = None,
    ) -> List[WeeklyReport]:
        """Cursor-paged archived submitted reports, newest week first.

        ``after`` returns the page following that report id; ``before``
        returns the page preceding it. Ordering is (week_ending_date, id)
        descending so the cursor is stable across equal dates.
        """
        base = select(WeeklyReport).where(
            WeeklyReport.archived == True,  # noqa: E712
            WeeklyReport.status == ReportStatus.SUBMITTED.value,
        )

        if before is not None:
            anchor = self.get_by_id(before)
            rows = self._all(
                base.where(
                    or_(
                        WeeklyReport.week_ending_date > anchor.week_ending_date,
                        and_(
                            WeeklyReport.week_ending_date == anchor.week_ending_date,
                            WeeklyReport.id > anchor.id,
                        ),
                    )
                )
                .order_by(WeeklyReport.week_ending_date.asc(), WeeklyReport.id.asc())  # type: ignore
                .limit(page_size)
            )
            return list(reversed(rows))

        if after is not None:
            anchor = self.get_by_id(after)
            base = base.where(
                or_(
                    WeeklyReport.week_ending_date < anchor.week_ending_date,
                    and_(
                        WeeklyReport.week_ending_date == anchor.week_ending_date,
                        WeeklyReport.id < anchor.id,
                    ),
                )
            )

        return self._all(
            base.order_by(WeeklyReport.week_ending_date.desc(), WeeklyReport.id.desc())  # type: ignore
            .limit(page_size)
        )
