"""
Unit tests for wall-clock date helpers.

Tests:
- Sunday to Saturday reporting weeks
- Month bounds and week of month
- The Monday creation rule
"""

from datetime import datetime

from app.core.dates import (
    day_key,
    end_of_day,
    is_current_week,
    month_range,
    reporting_week_range,
    should_create_new_report,
    week_ending_date,
    week_of_month,
)


class TestReportingWeek:
    """Sunday through Saturday reporting weeks."""

    def test_midweek_range(self):
        """A Wednesday belongs to the Sunday-to-Saturday week around it."""
        start, end = reporting_week_range(datetime(2024, 1, 17, 10, 0))
        assert start == datetime(2024, 1, 14)
        assert end == datetime(2024, 1, 20, 23, 59, 59, 999000)

    def test_sunday_starts_its_own_week(self):
        """Sunday opens a new week."""
        start, _ = reporting_week_range(datetime(2024, 1, 14, 0, 30))
        assert start == datetime(2024, 1, 14)

    def test_saturday_closes_the_week(self):
        """Saturday night is still the same week."""
        start, end = reporting_week_range(datetime(2024, 1, 20, 22, 0))
        assert start == datetime(2024, 1, 14)
        assert end.date() == datetime(2024, 1, 20).date()

    def test_week_ending_date_is_saturday(self):
        """The week ending date falls on Saturday."""
        assert week_ending_date(datetime(2024, 1, 15, 7, 0)).weekday() == 5

    def test_is_current_week(self):
        """Only this week's ending date counts as current."""
        now = datetime(2024, 1, 17, 10, 0)
        assert is_current_week(week_ending_date(now), now)
        assert not is_current_week(datetime(2024, 1, 13, 23, 59), now)


class TestMonth:
    """Tests for month bounds and week numbering."""

    def test_leap_february(self):
        """February 2024 ends on the 29th."""
        first, last = month_range(datetime(2024, 2, 10))
        assert first == datetime(2024, 2, 1)
        assert last == end_of_day(datetime(2024, 2, 29))

    def test_week_of_month(self):
        """Days 1-7 are week one, 8-14 week two, and so on."""
        assert week_of_month(datetime(2024, 1, 1)) == 1
        assert week_of_month(datetime(2024, 1, 7)) == 1
        assert week_of_month(datetime(2024, 1, 8)) == 2
        assert week_of_month(datetime(2024, 1, 22)) == 4
        assert week_of_month(datetime(2024, 1, 29)) == 5


class TestShouldCreateNewReport:
    """Monday at or after the creation hour (06:00 by default)."""

    def test_monday_at_creation_hour(self):
        """Monday at the creation hour is due."""
        assert should_create_new_report(datetime(2024, 1, 15, 6, 0))

    def test_monday_before_creation_hour(self):
        """Monday before the creation hour is not."""
        assert not should_create_new_report(datetime(2024, 1, 15, 5, 59))

    def test_other_weekdays(self):
        """No other day is due."""
        assert not should_create_new_report(datetime(2024, 1, 16, 9, 0))
        assert not should_create_new_report(datetime(2024, 1, 14, 9, 0))


def test_day_key():
    """Day keys are ISO dates."""
    assert day_key(datetime(2024, 3, 5, 23, 59)) == "2024-03-05"
