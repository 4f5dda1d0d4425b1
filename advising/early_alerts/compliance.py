"""
Compliance Clock

Day-granularity arithmetic for the early alert response window. Dates are
counted as whole days since a fixed anchor so that two timestamps on the
same calendar day always compare equal.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Union

ANCHOR = date(1900, 1, 1)

DateLike = Union[date, datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_since_anchor(value: DateLike) -> int:
    """Whole days between 1900-01-01 and the calendar day of value."""
    day = value.date() if isinstance(value, datetime) else value
    return (day - ANCHOR).days


class ComplianceClock:
    """Computes compliance cutoffs and days out of compliance."""

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or _utcnow

    def now(self) -> datetime:
        return self._now()

    def compliance_cutoff(self, max_days_before_response: int) -> datetime:
        """Alerts last touched before this instant are out of compliance."""
        return self.now() - timedelta(days=max_days_before_response)

    @staticmethod
    def days_out_of_compliance(cutoff: DateLike, effective_date: DateLike) -> int:
        """
        Days the effective date lies before the cutoff.

        Negative when the alert is not actually overdue yet; callers exclude
        those entries.
        """
        return days_since_anchor(cutoff) - days_since_anchor(effective_date)
