"""Advisor resolution for new early alerts."""

import logging

from advising.exceptions import EarlyAlertValidationError
from advising.models import EarlyAlert, Person
from advising.stores import PersonStore

logger = logging.getLogger(__name__)


class AdvisorResolver:
    """
    Decides who owns a new alert.

    The student's coach wins; otherwise the campus early alert coordinator.
    """

    def __init__(self, people: PersonStore):
        self.people = people

    def resolve(self, early_alert: EarlyAlert) -> str:
        """Return the advisor id or raise EarlyAlertValidationError."""
        student = early_alert.person
        if student is None:
            raise EarlyAlertValidationError("EarlyAlert Student data must be provided.")

        if student.coach is not None:
            return student.coach.id

        campus = early_alert.campus
        if campus is None:
            raise EarlyAlertValidationError(
                f"Campus must be provided to resolve an advisor for student ID {student.id}"
            )

        if campus.early_alert_coordinator_id:
            return campus.early_alert_coordinator_id

        raise EarlyAlertValidationError(
            f"Could not determine the Early Alert Advisor for student ID {student.id}"
        )

    async def assign(self, student: Person, advisor_id: str) -> Person:
        """
        Attach the advisor as the student's coach.

        Only when the student has no coach, or already has this one, so an
        existing different coach is never replaced.
        """
        if student.coach is None or student.coach.id == advisor_id:
            student.coach = await self.people.get(advisor_id)
            logger.debug(f"Student {student.id} coach set to {advisor_id}")
        return student.coach
