"""
Template Parameter Resolver

Builds the parameter bag handed to the template renderer. Only the alert's
student, creator and campus are required; course, term, enrollment status,
creator and coordinator lookups are enrichment and are omitted (logged and
recorded as skipped) when they do not resolve.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from advising.exceptions import EarlyAlertValidationError, NotFoundError
from advising.models import EarlyAlert, FacultyCourse, Person
from advising.stores import CourseCatalog, PersonStore, ReferenceStore
from .outcomes import Diagnostics, StepOutcome, record
from .settings import EarlyAlertSettings

logger = logging.getLogger(__name__)


@dataclass
class EarlyAlertMessageView:
    """Read-only summary of an alert as templates see it."""
    id: Optional[str]
    student_name: str
    student_first_name: str
    student_last_name: str
    student_school_id: Optional[str]
    course_name: Optional[str]
    course_title: Optional[str]
    course_term_code: Optional[str]
    enrollment_status: Optional[str]
    campus_name: Optional[str]
    comment: Optional[str]
    created_date: Optional[datetime]
    last_response_date: Optional[datetime]
    creator: Optional[Person] = None
    coach: Optional[Person] = None
    reasons: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    watcher_email_addresses: List[str] = field(default_factory=list)

    @property
    def creator_name(self) -> Optional[str]:
        return self.creator.full_name if self.creator is not None else None

    @property
    def effective_date(self) -> Optional[datetime]:
        return self.last_response_date or self.created_date

    @classmethod
    def from_alert(
        cls,
        early_alert: EarlyAlert,
        creator: Optional[Person] = None,
        watcher_email_addresses: Optional[List[str]] = None,
    ) -> "EarlyAlertMessageView":
        student = early_alert.person
        return cls(
            id=early_alert.id,
            student_name=student.full_name,
            student_first_name=student.first_name,
            student_last_name=student.last_name,
            student_school_id=student.school_id,
            course_name=early_alert.course_name,
            course_title=early_alert.course_title,
            course_term_code=early_alert.course_term_code,
            enrollment_status=early_alert.enrollment_status,
            campus_name=early_alert.campus.name if early_alert.campus is not None else None,
            comment=early_alert.comment,
            created_date=early_alert.created_date,
            last_response_date=early_alert.last_response_date,
            creator=creator,
            coach=student.coach,
            reasons=sorted(reason.name for reason in early_alert.reasons),
            suggestions=sorted(suggestion.name for suggestion in early_alert.suggestions),
            watcher_email_addresses=list(watcher_email_addresses or []),
        )


class TemplateParameterResolver:
    """Assembles template parameters for one alert."""

    def __init__(self, people: PersonStore, catalog: CourseCatalog, reference: ReferenceStore):
        self.people = people
        self.catalog = catalog
        self.reference = reference

    async def fill_template_parameters(
        self,
        early_alert: EarlyAlert,
        settings: EarlyAlertSettings,
        diagnostics: Optional[Diagnostics] = None,
    ) -> Dict[str, Any]:
        self._validate(early_alert)
        params: Dict[str, Any] = {}

        if early_alert.course_name and early_alert.course_name.strip():
            await self._add_course_and_term(early_alert, params, diagnostics)

        creator = await self._resolve_creator(early_alert, diagnostics)
        view = EarlyAlertMessageView.from_alert(early_alert, creator)
        if view.coach is None:
            view.coach = await self._resolve_coordinator(early_alert, diagnostics)

        if early_alert.enrollment_status:
            enrollment = await self.reference.get_enrollment_status_by_code(early_alert.enrollment_status)
            if enrollment is not None:
                params["enrollment"] = enrollment
            else:
                record(diagnostics, StepOutcome.skipped(
                    "enrollment", f"enrollment status {early_alert.enrollment_status} not found"
                ))

        params.update({
            "early_alert": view,
            "term_to_represent_early_alert": settings.term_to_represent_early_alert,
            "external_link": settings.external_link,
            "application_title": settings.application_title,
            "institution_name": settings.institution_name,
            "first_name": view.student_first_name,
            "last_name": view.student_last_name,
            "course_name": view.course_name,
        })
        return params

    def _validate(self, early_alert: EarlyAlert) -> None:
        if early_alert is None:
            raise EarlyAlertValidationError("EarlyAlert was missing.")
        if early_alert.person is None:
            raise EarlyAlertValidationError("EarlyAlert.Person is missing.")
        if early_alert.created_by is None:
            raise EarlyAlertValidationError("EarlyAlert.CreatedBy is missing.")
        if early_alert.campus is None:
            raise EarlyAlertValidationError("EarlyAlert.Campus is missing.")

    async def _add_course_and_term(
        self,
        early_alert: EarlyAlert,
        params: Dict[str, Any],
        diagnostics: Optional[Diagnostics],
    ) -> None:
        try:
            faculty = await self.people.get(early_alert.created_by.id)
        except NotFoundError as e:
            raise EarlyAlertValidationError("EarlyAlert.CreatedBy could not be loaded.") from e

        school_id = faculty.school_id
        if not school_id or not school_id.strip():
            record(diagnostics, StepOutcome.skipped("course", "creator has no school id"))
            return

        course_name = early_alert.course_name
        term_code = (early_alert.course_term_code or "").strip() or None
        course: Optional[FacultyCourse] = await self.catalog.find_course(school_id, course_name, term_code)
        if course is None:
            logger.info(
                f"Not adding course nor term to message template params for early alert "
                f"{early_alert.id} because the associated course {course_name} and faculty "
                f"school id {school_id} did not resolve to a course record."
            )
            record(diagnostics, StepOutcome.skipped("course", f"course {course_name} not found"))
            return

        params["course"] = course
        code = term_code or course.term_code
        if not code:
            return

        term = await self.catalog.find_term(code)
        if term is None:
            logger.info(
                f"Not adding term to message template params for early alert "
                f"{early_alert.id} because the term code {code} did not resolve to a term record"
            )
            record(diagnostics, StepOutcome.skipped("term", f"term {code} not found"))
            return
        params["term"] = term

    async def _resolve_creator(
        self, early_alert: EarlyAlert, diagnostics: Optional[Diagnostics]
    ) -> Optional[Person]:
        try:
            return await self.people.get(early_alert.created_by.id)
        except NotFoundError as e:
            logger.error(f"Early Alert creator not found sending message for early alert {early_alert.id}: {e}")
            record(diagnostics, StepOutcome.skipped("creator", str(e)))
            return None

    async def _resolve_coordinator(
        self, early_alert: EarlyAlert, diagnostics: Optional[Diagnostics]
    ) -> Optional[Person]:
        coordinator_id = early_alert.campus.early_alert_coordinator_id
        if not coordinator_id:
            record(diagnostics, StepOutcome.skipped("coach", "no coach and campus has no coordinator"))
            return None
        try:
            return await self.people.get(coordinator_id)
        except NotFoundError as e:
            logger.error(
                f"Early Alert with id {early_alert.id} does not have a valid campus "
                f"coordinator ({coordinator_id}), no coach assigned"
            )
            record(diagnostics, StepOutcome.skipped("coach", str(e)))
            return None
