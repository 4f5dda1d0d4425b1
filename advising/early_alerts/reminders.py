"""
Reminder Escalation Sweeper

Periodic job that finds open alerts nobody has responded to within the
configured window and sends each responsible person one aggregated reminder
listing their overdue alerts and how many days each is out of compliance.

Recipients per alert:
- the student's coach, when reminders include coaches
- the campus early alert coordinator, when reminders include coordinators,
  or when the student has no coach and coordinators are included only in
  that case
- everyone watching the student, in addition to the above

Missing coach/coordinator/campus data skips that recipient. A failed send
for one recipient is logged and does not stop the others.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from advising.exceptions import NotFoundError
from advising.models import EarlyAlert, Person
from advising.notifications import MessageSender, TemplateKey, TemplateRenderer
from advising.stores import Stores
from .compliance import ComplianceClock
from .outcomes import StepOutcome
from .settings import EarlyAlertSettings
from .template_params import EarlyAlertMessageView

logger = logging.getLogger(__name__)


@dataclass
class EscalationGroup:
    """Overdue alerts collected for one recipient during a sweep."""
    recipient: Person
    alerts: List[EarlyAlertMessageView] = field(default_factory=list)

    def add(self, view: EarlyAlertMessageView) -> None:
        self.alerts.append(view)

    def out_of_compliance(self, cutoff: datetime) -> List[Tuple[EarlyAlertMessageView, int]]:
        """
        (alert, days out of compliance) pairs, oldest effective date first.

        Entries not yet overdue (negative days) are dropped; that can happen
        when the fetch cutoff and the day arithmetic disagree at a day
        boundary.
        """
        ordered = sorted(self.alerts, key=lambda view: view.effective_date)
        pairs = []
        for view in ordered:
            days = ComplianceClock.days_out_of_compliance(cutoff, view.effective_date)
            if days >= 0:
                pairs.append((view, days))
        return pairs


@dataclass
class ReminderRunSummary:
    """What a sweep did. Failures are also logged."""
    started_at: datetime
    cutoff: Optional[datetime] = None
    alerts_out_of_compliance: int = 0
    recipients: int = 0
    messages_sent: int = 0
    skipped: List[StepOutcome] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "cutoff": self.cutoff.isoformat() if self.cutoff else None,
            "alerts_out_of_compliance": self.alerts_out_of_compliance,
            "recipients": self.recipients,
            "messages_sent": self.messages_sent,
            "skipped": [
                {"step": s.step, "reason": s.reason} for s in self.skipped
            ],
            "errors": self.errors,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


class ReminderEscalationSweeper:
    """Sends aggregated response-required reminders."""

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

    async def send_all_early_alert_reminder_notifications(self) -> ReminderRunSummary:
        summary = ReminderRunSummary(started_at=self.clock.now())
        settings = await EarlyAlertSettings.load(self.stores.config)

        if settings.max_days_before_response is None:
            logger.info("No early alert response window configured; no reminders sent")
            summary.completed_at = self.clock.now()
            return summary

        cutoff = self.clock.compliance_cutoff(settings.max_days_before_response)
        summary.cutoff = cutoff
        logger.info(f"Config: include coach: {settings.reminder_include_coach}")
        logger.info(f"Config: include coordinator: {settings.reminder_include_coordinator}")
        logger.info(
            f"Config: include coordinator only if student has no coach: "
            f"{settings.reminder_include_coordinator_if_no_coach}"
        )

        alerts = await self.stores.alerts.list_response_due(cutoff)
        summary.alerts_out_of_compliance = len(alerts)

        groups = await self._group_by_recipient(alerts, settings, summary)
        summary.recipients = len(groups)

        for group in groups.values():
            await self._send_reminder(group, cutoff, settings, summary)

        summary.completed_at = self.clock.now()
        logger.info(
            f"Early alert reminder run completed: {summary.alerts_out_of_compliance} alerts, "
            f"{summary.recipients} recipients, {summary.messages_sent} messages"
        )
        return summary

    async def get_responses_due_count(self, person_ids: Iterable[str]) -> Dict[str, int]:
        """Per-student count of open alerts past the response window."""
        settings = await EarlyAlertSettings.load(self.stores.config)
        if settings.max_days_before_response is None:
            return {}
        cutoff = self.clock.compliance_cutoff(settings.max_days_before_response)
        return await self.stores.alerts.count_response_due_for_people(person_ids, cutoff)

    async def _group_by_recipient(
        self,
        alerts: List[EarlyAlert],
        settings: EarlyAlertSettings,
        summary: ReminderRunSummary,
    ) -> Dict[str, EscalationGroup]:
        groups: Dict[str, EscalationGroup] = {}
        for early_alert in alerts:
            recipients = await self._resolve_recipients(early_alert, settings, summary)
            watchers = await self.stores.watchers.list_watchers(early_alert.person)

            # One entry per alert per person even if they are both coach and watcher
            audience: Dict[str, Person] = {}
            for person in recipients + watchers:
                audience.setdefault(person.id, person)
            if not audience:
                continue

            view = await self._summarize(early_alert, watchers)
            for person_id, person in audience.items():
                groups.setdefault(person_id, EscalationGroup(person)).add(view)
        return groups

    async def _resolve_recipients(
        self,
        early_alert: EarlyAlert,
        settings: EarlyAlertSettings,
        summary: ReminderRunSummary,
    ) -> List[Person]:
        recipients: List[Person] = []
        coach = early_alert.person.coach

        if settings.reminder_include_coach:
            if coach is None:
                logger.warning(
                    f"Early Alert with id {early_alert.id} is associated with a person "
                    f"without a coach, so skipping email to coach."
                )
                summary.skipped.append(StepOutcome.skipped(f"coach:{early_alert.id}", "student has no coach"))
            else:
                recipients.append(coach)

        if settings.reminder_include_coordinator or (
            coach is None and settings.reminder_include_coordinator_if_no_coach
        ):
            coordinator = await self._resolve_coordinator(early_alert, summary)
            if coordinator is not None and all(p.id != coordinator.id for p in recipients):
                recipients.append(coordinator)

        logger.debug(f"Early Alert {early_alert.id}; recipients: {[p.id for p in recipients]}")
        return recipients

    async def _resolve_coordinator(
        self, early_alert: EarlyAlert, summary: ReminderRunSummary
    ) -> Optional[Person]:
        step = f"coordinator:{early_alert.id}"
        campus = early_alert.campus
        if campus is None:
            logger.error(f"Early Alert with id {early_alert.id} does not have a valid campus, so skipping email to EAC.")
            summary.skipped.append(StepOutcome.skipped(step, "alert has no campus"))
            return None

        coordinator_id = campus.early_alert_coordinator_id
        if not coordinator_id:
            logger.error(
                f"Early Alert with id {early_alert.id} has campus with no early alert "
                f"coordinator, so skipping email to EAC."
            )
            summary.skipped.append(StepOutcome.skipped(step, "campus has no coordinator"))
            return None

        try:
            return await self.stores.people.get(coordinator_id)
        except NotFoundError:
            logger.error(
                f"Early Alert with id {early_alert.id} has campus with an early alert "
                f"coordinator with a bad ID ({coordinator_id}), so skipping email to EAC."
            )
            summary.skipped.append(StepOutcome.skipped(step, f"coordinator {coordinator_id} not found"))
            return None

    async def _summarize(self, early_alert: EarlyAlert, watchers: List[Person]) -> EarlyAlertMessageView:
        creator = None
        if early_alert.created_by is not None:
            try:
                creator = await self.stores.people.get(early_alert.created_by.id)
            except NotFoundError:
                logger.error(f"Early Alert with id {early_alert.id} does not have a valid creator")
        return EarlyAlertMessageView.from_alert(
            early_alert,
            creator,
            [w.primary_email_address for w in watchers if w.primary_email_address],
        )

    async def _send_reminder(
        self,
        group: EscalationGroup,
        cutoff: datetime,
        settings: EarlyAlertSettings,
        summary: ReminderRunSummary,
    ) -> None:
        recipient = group.recipient
        pairs = group.out_of_compliance(cutoff)
        if not pairs:
            summary.skipped.append(StepOutcome.skipped(
                f"reminder:{recipient.id}", "no alerts a full day out of compliance"
            ))
            return

        params = {
            "early_alert_pairs": pairs,
            "coach": recipient,
            "term_to_represent_early_alert": settings.term_to_represent_early_alert,
            "external_link": settings.external_link,
            "application_title": settings.application_title,
            "institution_name": settings.institution_name,
        }
        try:
            content = self.renderer.render(TemplateKey.RESPONSE_REQUIRED, params)
            await self.sender.send(recipient, None, content)
            summary.messages_sent += 1
        except Exception as e:
            logger.error(f"Unable to send reminder emails to coach: {recipient.full_name}: {e}")
            summary.errors.append({"recipient_id": recipient.id, "error": str(e)})
