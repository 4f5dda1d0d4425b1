"""
Tests for the compliance clock and reminder grouping arithmetic.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from advising.early_alerts.compliance import ComplianceClock, days_since_anchor
from advising.early_alerts.reminders import EscalationGroup
from advising.early_alerts.template_params import EarlyAlertMessageView

from fakes import NOW, make_person

TODAY = NOW


def _view(alert_id, created, last_response=None):
    return EarlyAlertMessageView(
        id=alert_id,
        student_name="Pat Student",
        student_first_name="Pat",
        student_last_name="Student",
        student_school_id=None,
        course_name=None,
        course_title=None,
        course_term_code=None,
        enrollment_status=None,
        campus_name=None,
        comment=None,
        created_date=created,
        last_response_date=last_response,
    )


class TestDaysSinceAnchor:
    """Tests for whole-day counting."""

    def test_anchor_is_day_zero(self):
        assert days_since_anchor(date(1900, 1, 1)) == 0

    def test_time_of_day_is_ignored(self):
        morning = datetime(2024, 3, 15, 0, 1, tzinfo=timezone.utc)
        evening = datetime(2024, 3, 15, 23, 59, tzinfo=timezone.utc)
        assert days_since_anchor(morning) == days_since_anchor(evening)

    def test_dates_and_datetimes_agree(self):
        assert days_since_anchor(date(2024, 3, 15)) == days_since_anchor(NOW)


class TestComplianceClock:
    """Tests for cutoff and days-out-of-compliance arithmetic."""

    def test_cutoff_subtracts_max_days(self, clock):
        assert clock.compliance_cutoff(5) == TODAY - timedelta(days=5)

    def test_alert_six_days_old_is_one_day_out(self, clock):
        cutoff = clock.compliance_cutoff(5)
        assert ComplianceClock.days_out_of_compliance(cutoff, TODAY - timedelta(days=6)) == 1

    def test_alert_four_days_old_is_not_overdue(self, clock):
        cutoff = clock.compliance_cutoff(5)
        assert ComplianceClock.days_out_of_compliance(cutoff, TODAY - timedelta(days=4)) == -1

    def test_default_clock_is_timezone_aware(self):
        assert ComplianceClock().now().tzinfo is not None


class TestEscalationGroup:
    """Tests for per-recipient sorting and filtering."""

    def test_sorted_oldest_first_with_days(self, clock):
        cutoff = clock.compliance_cutoff(5)
        group = EscalationGroup(make_person("coach", email="coach@example.edu"))
        group.add(_view("newer", TODAY - timedelta(days=6)))
        group.add(_view("older", TODAY - timedelta(days=9)))

        pairs = group.out_of_compliance(cutoff)

        assert [(view.id, days) for view, days in pairs] == [("older", 4), ("newer", 1)]

    def test_negative_entries_excluded(self, clock):
        cutoff = clock.compliance_cutoff(5)
        group = EscalationGroup(make_person("coach", email="coach@example.edu"))
        group.add(_view("overdue", TODAY - timedelta(days=6)))
        group.add(_view("recent", TODAY - timedelta(days=4)))

        pairs = group.out_of_compliance(cutoff)

        assert [view.id for view, _ in pairs] == ["overdue"]

    def test_same_day_as_cutoff_is_kept_at_zero(self, clock):
        cutoff = clock.compliance_cutoff(5)
        group = EscalationGroup(make_person("coach", email="coach@example.edu"))
        group.add(_view("edge", cutoff - timedelta(hours=1)))

        assert [days for _, days in group.out_of_compliance(cutoff)] == [0]

    def test_last_response_date_wins_over_created(self, clock):
        cutoff = clock.compliance_cutoff(5)
        group = EscalationGroup(make_person("coach", email="coach@example.edu"))
        group.add(_view("answered", TODAY - timedelta(days=30), TODAY - timedelta(days=7)))

        assert [days for _, days in group.out_of_compliance(cutoff)] == [2]

    def test_ties_keep_insertion_order(self, clock):
        cutoff = clock.compliance_cutoff(5)
        same_day = TODAY - timedelta(days=8)
        group = EscalationGroup(make_person("coach", email="coach@example.edu"))
        for alert_id in ("first", "second", "third"):
            group.add(_view(alert_id, same_day))

        assert [view.id for view, _ in group.out_of_compliance(cutoff)] == ["first", "second", "third"]
