"""
Person State Reconciler

A student flagged by an early alert may not yet be known to advising. This
gives them the minimum state needed to show up in caseloads and searches:
an active object status, a current program status and a student type.
"""

import logging
from typing import List

from advising.exceptions import NotFoundError
from advising.models import ObjectStatus, Person, StudentType
from advising.stores import ReferenceStore
from .compliance import ComplianceClock
from .outcomes import StepOutcome

logger = logging.getLogger(__name__)

STEP_OBJECT_STATUS = "object_status"
STEP_PROGRAM_STATUS = "program_status"
STEP_STUDENT_TYPE = "student_type"


class PersonStateReconciler:
    """Idempotent, best-effort. Never raises."""

    def __init__(self, reference: ReferenceStore, clock: ComplianceClock):
        self.reference = reference
        self.clock = clock

    async def reconcile(self, person: Person) -> List[StepOutcome]:
        outcomes = [self._ensure_active(person)]
        for step, func in (
            (STEP_PROGRAM_STATUS, self._ensure_program_status),
            (STEP_STUDENT_TYPE, self._ensure_student_type),
        ):
            try:
                outcomes.append(await func(person))
            except Exception as e:
                logger.error(
                    f"Unable to set {step} on person '{person.id}'. This is likely to "
                    f"prevent that person from appearing in caseloads, student "
                    f"searches, and some reports: {e}"
                )
                outcomes.append(StepOutcome.skipped(step, str(e)))
        return outcomes

    def _ensure_active(self, person: Person) -> StepOutcome:
        if person.object_status == ObjectStatus.ACTIVE:
            return StepOutcome.unchanged(STEP_OBJECT_STATUS)
        person.object_status = ObjectStatus.ACTIVE
        return StepOutcome.applied(STEP_OBJECT_STATUS)

    async def _ensure_program_status(self, person: Person) -> StepOutcome:
        now = self.clock.now()
        if any(status.is_current(now) for status in person.program_statuses):
            return StepOutcome.unchanged(STEP_PROGRAM_STATUS)

        active = await self.reference.get_active_program_status()
        if active is None:
            raise NotFoundError(
                "ProgramStatus",
                message='Unable to find a ProgramStatus representing "activeness".',
            )
        await self.reference.add_program_status(person, active, now)
        return StepOutcome.applied(STEP_PROGRAM_STATUS)

    async def _ensure_student_type(self, person: Person) -> StepOutcome:
        if person.student_type is not None:
            return StepOutcome.unchanged(STEP_STUDENT_TYPE)

        student_type = await self.reference.get_student_type_by_code(
            StudentType.EARLY_ALERT_ASSIGNED_CODE
        )
        if student_type is None:
            raise NotFoundError(
                "StudentType",
                message="Unable to find a StudentType representing an early alert-assigned type.",
            )
        person.student_type = student_type
        return StepOutcome.applied(STEP_STUDENT_TYPE)
