"""
Early Alert Lifecycle Manager

Creates, edits, closes and reopens early alerts.

create() is all-or-nothing: the alert is persisted before any notification
is queued (so messages can reference its id) and the whole unit of work is
rolled back if the advisor/routing notification or the faculty
confirmation cannot be sent. An alert never exists without its advisor
having been notified.
"""

import logging
from typing import Dict, Iterable, Optional

from advising.exceptions import EarlyAlertValidationError
from advising.models import EarlyAlert, Person
from advising.notifications import MessageSender, TemplateKey, TemplateRenderer
from advising.notifications.sender import join_addresses
from advising.stores import Stores
from .advisor import AdvisorResolver
from .compliance import ComplianceClock
from .outcomes import Diagnostics, StepOutcome, record
from .reconciler import PersonStateReconciler
from .routing import RecipientSet, RoutingMatcher
from .schemas import EarlyAlertUpdate
from .settings import EarlyAlertSettings
from .template_params import TemplateParameterResolver

logger = logging.getLogger(__name__)


class EarlyAlertLifecycleManager:
    """
    Orchestrates the early alert state machine.

    States: open (closed_date and closed_by empty) and closed (both set).
    close and open are no-ops when the alert is already in the target state.
    """

    def __init__(
        self,
        stores: Stores,
        sender: MessageSender,
        renderer: Optional[TemplateRenderer] = None,
        clock: Optional[ComplianceClock] = None,
    ):
        self.stores = stores
        self.sender = sender
        self.renderer = renderer or TemplateRenderer()
        self.clock = clock or ComplianceClock()

        self.advisors = AdvisorResolver(stores.people)
        self.reconciler = PersonStateReconciler(stores.reference, self.clock)
        self.router = RoutingMatcher(stores.routing, stores.watchers, sender)
        self.templates = TemplateParameterResolver(stores.people, stores.catalog, stores.reference)

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(
        self,
        early_alert: EarlyAlert,
        diagnostics: Optional[Diagnostics] = None,
    ) -> EarlyAlert:
        """
        Create an alert, assign its advisor and notify everyone concerned.

        Raises EarlyAlertValidationError (with nothing persisted) when the
        alert is incomplete, no advisor can be determined, or any required
        notification cannot be sent.
        """
        try:
            saved = await self._create(early_alert, diagnostics)
        except Exception:
            await self.stores.alerts.rollback()
            raise
        await self.stores.alerts.commit()
        logger.info(f"EarlyAlert {saved.id} created for student {saved.person.id}")
        return saved

    async def _create(self, early_alert: EarlyAlert, diagnostics: Optional[Diagnostics]) -> EarlyAlert:
        if early_alert.person is None:
            raise EarlyAlertValidationError("EarlyAlert Student data must be provided.")
        if not early_alert.reasons:
            raise EarlyAlertValidationError("EarlyAlert must have at least one reason.")
        if early_alert.campus is None:
            raise EarlyAlertValidationError("EarlyAlert.Campus is missing.")
        if early_alert.created_by is None:
            raise EarlyAlertValidationError("EarlyAlert.CreatedBy is missing.")

        settings = await EarlyAlertSettings.load(self.stores.config)
        student = early_alert.person

        advisor_id = self.advisors.resolve(early_alert)
        await self.advisors.assign(student, advisor_id)

        for outcome in await self.reconciler.reconcile(student):
            record(diagnostics, outcome)

        saved = await self.stores.alerts.add(early_alert)

        try:
            await self._send_message_to_advisor(saved, settings, diagnostics)
        except Exception as e:
            logger.warning(f"Could not send Early Alert message to advisor: {e}")
            raise EarlyAlertValidationError(
                "Early Alert notification e-mail could not be sent to advisor. "
                "Early Alert was NOT created."
            ) from e

        try:
            await self._send_confirmation_to_faculty(saved, settings, diagnostics)
        except Exception as e:
            logger.warning(f"Could not send Early Alert confirmation to faculty: {e}")
            raise EarlyAlertValidationError(
                "Early Alert confirmation e-mail could not be sent. Early Alert was NOT created."
            ) from e

        return saved

    async def _send_message_to_advisor(
        self,
        early_alert: EarlyAlert,
        settings: EarlyAlertSettings,
        diagnostics: Optional[Diagnostics],
    ) -> RecipientSet:
        params = await self.templates.fill_template_parameters(early_alert, settings, diagnostics)
        content = self.renderer.render(TemplateKey.ADVISOR_NOTIFICATION, params)
        return await self.router.notify(early_alert, content, early_alert.email_cc, diagnostics)

    async def _send_confirmation_to_faculty(
        self,
        early_alert: EarlyAlert,
        settings: EarlyAlertSettings,
        diagnostics: Optional[Diagnostics],
    ) -> None:
        if not settings.send_faculty_mail:
            logger.debug("Skipping faculty early alert confirmation: send_faculty_mail is off")
            record(diagnostics, StepOutcome.skipped("faculty_confirmation", "send_faculty_mail is off"))
            return

        faculty = await self.stores.people.get(early_alert.created_by.id)
        params = await self.templates.fill_template_parameters(early_alert, settings, diagnostics)
        content = self.renderer.render(TemplateKey.FACULTY_CONFIRMATION, params)
        message = await self.sender.send(faculty, None, content)
        logger.info(f"Message {message.id} created for EarlyAlert {early_alert.id}")
        record(diagnostics, StepOutcome.applied("faculty_confirmation"))

    # =========================================================================
    # STATE TRANSITIONS
    # =========================================================================

    async def close_early_alert(self, early_alert_id: str, acting_user: Optional[Person]) -> EarlyAlert:
        """Close an open alert. No-op if already closed."""
        early_alert = await self.stores.alerts.get(early_alert_id)
        if early_alert.is_closed:
            return early_alert

        if acting_user is None:
            raise EarlyAlertValidationError("Early Alert cannot be closed by a null User.")

        early_alert.close(acting_user, self.clock.now())
        await self.stores.alerts.save(early_alert)
        await self.stores.alerts.commit()
        logger.info(f"EarlyAlert {early_alert.id} closed by {acting_user.id}")
        return early_alert

    async def open_early_alert(self, early_alert_id: str, acting_user: Optional[Person]) -> EarlyAlert:
        """Reopen a closed alert. No-op if already open."""
        early_alert = await self.stores.alerts.get(early_alert_id)
        if not early_alert.is_closed:
            return early_alert

        if acting_user is None:
            raise EarlyAlertValidationError("Early Alert cannot be reopened by a null User.")

        early_alert.reopen()
        await self.stores.alerts.save(early_alert)
        await self.stores.alerts.commit()
        logger.info(f"EarlyAlert {early_alert.id} reopened by {acting_user.id}")
        return early_alert

    # =========================================================================
    # SAVE
    # =========================================================================

    async def save(self, update: EarlyAlertUpdate) -> EarlyAlert:
        """
        Overwrite an alert's editable fields.

        Reason and suggestion sets are rebuilt from the submitted ids and
        swapped in whole; an id that does not resolve fails the save.
        """
        try:
            current = await self._apply_update(update)
            await self.stores.alerts.save(current)
        except Exception:
            await self.stores.alerts.rollback()
            raise
        await self.stores.alerts.commit()
        return current

    async def _apply_update(self, update: EarlyAlertUpdate) -> EarlyAlert:
        people = self.stores.people
        reference = self.stores.reference
        current = await self.stores.alerts.get(update.id)

        # Resolve everything before touching the alert
        student = await people.get(update.person_id)
        campus = await reference.get_campus(update.campus_id)
        closed_by = await people.get(update.closed_by_id) if update.closed_by_id else None
        reasons = [await reference.load_reason(rid) for rid in update.reason_ids]
        suggestions = [await reference.load_suggestion(sid) for sid in update.suggestion_ids]

        current.person = student
        current.campus = campus
        current.course_name = update.course_name
        current.course_title = update.course_title
        current.course_term_code = update.course_term_code
        current.enrollment_status = update.enrollment_status
        current.email_cc = update.email_cc
        current.comment = update.comment
        current.early_alert_reason_other_description = update.early_alert_reason_other_description
        current.closed_date = update.closed_date
        current.closed_by = closed_by
        current.reasons = set(reasons)
        current.suggestions = set(suggestions)
        return current

    # =========================================================================
    # STUDENT MESSAGE AND COUNTS
    # =========================================================================

    async def send_message_to_student(self, early_alert: EarlyAlert) -> None:
        """Send the student notification, copying the student's watchers."""
        if early_alert.person is None:
            raise EarlyAlertValidationError("EarlyAlert.Person is missing.")

        settings = await EarlyAlertSettings.load(self.stores.config)
        params = await self.templates.fill_template_parameters(early_alert, settings)
        content = self.renderer.render(TemplateKey.STUDENT_NOTIFICATION, params)

        watchers = await self.stores.watchers.list_watchers(early_alert.person)
        cc = join_addresses(w.primary_email_address for w in watchers if w.primary_email_address)
        message = await self.sender.send(early_alert.person, cc, content)
        await self.stores.alerts.commit()
        logger.info(f"Message {message.id} created for EarlyAlert {early_alert.id}")

    async def get_count_of_open_alerts_for_people(self, person_ids: Iterable[str]) -> Dict[str, int]:
        return await self.stores.alerts.count_open_for_people(person_ids)

    async def get_count_of_closed_alerts_for_people(self, person_ids: Iterable[str]) -> Dict[str, int]:
        return await self.stores.alerts.count_closed_for_people(person_ids)
