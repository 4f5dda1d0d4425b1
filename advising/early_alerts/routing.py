"""
Routing Matcher

Sends the advisor notification for a new alert: first to the student's
coach (copying watchers and the alert's cc address), then to every active
campus routing rule whose reason is one of the alert's reasons.
"""

import logging
from typing import Dict, List, Optional

from advising.exceptions import NotFoundError
from advising.models import EarlyAlert, EarlyAlertRouting, Person
from advising.notifications import MessageSender, SubjectAndBody, normalize_address
from advising.notifications.sender import join_addresses, split_addresses
from advising.stores import RoutingStore, WatcherStore
from .outcomes import Diagnostics, StepOutcome, record

logger = logging.getLogger(__name__)


class RecipientSet:
    """
    Addresses already notified within one operation.

    Individual and group mailboxes are tracked in separate channels. Only
    individual addresses suppress repeat sends; group addresses are
    recorded for the caller.
    """

    def __init__(self):
        self._individuals: Dict[str, Optional[Person]] = {}
        self._groups: Dict[str, str] = {}

    def add_individual(self, address: Optional[str], person: Optional[Person] = None) -> bool:
        """Record an individual address. False if blank or already present."""
        key = normalize_address(address)
        if not key or key in self._individuals:
            return False
        self._individuals[key] = person
        return True

    def add_group(self, address: Optional[str], name: str) -> bool:
        key = normalize_address(address)
        if not key or key in self._groups:
            return False
        self._groups[key] = name
        return True

    def has_individual(self, address: Optional[str]) -> bool:
        return normalize_address(address) in self._individuals

    def has_group(self, address: Optional[str]) -> bool:
        return normalize_address(address) in self._groups

    @property
    def individual_addresses(self) -> List[str]:
        return list(self._individuals)

    @property
    def group_addresses(self) -> List[str]:
        return list(self._groups)

    def __len__(self) -> int:
        return len(self._individuals) + len(self._groups)


class RoutingMatcher:
    """Resolves and notifies the audience of a newly created alert."""

    def __init__(self, routing: RoutingStore, watchers: WatcherStore, sender: MessageSender):
        self.routing = routing
        self.watchers = watchers
        self.sender = sender

    async def notify(
        self,
        early_alert: EarlyAlert,
        content: SubjectAndBody,
        email_cc: Optional[str] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> RecipientSet:
        """
        Notify advisor, watchers and routed recipients.

        Send failures propagate. A routing rule without a reason raises
        NotFoundError.
        """
        sent = RecipientSet()
        await self._notify_advisor(early_alert, content, email_cc, sent, diagnostics)
        await self._notify_routes(early_alert, content, sent, diagnostics)
        return sent

    async def _notify_advisor(
        self,
        early_alert: EarlyAlert,
        content: SubjectAndBody,
        email_cc: Optional[str],
        sent: RecipientSet,
        diagnostics: Optional[Diagnostics],
    ) -> None:
        student = early_alert.person
        coach = student.coach

        watchers = await self.watchers.list_watchers(student)
        cc_addresses = [w.primary_email_address for w in watchers if w.primary_email_address]
        cc_addresses += split_addresses(email_cc)

        if coach is None:
            logger.warning(
                f"Student {student.id} had no coach when EarlyAlert {early_alert.id} was "
                f"created. Unable to send message to coach."
            )
            record(diagnostics, StepOutcome.skipped("notify_advisor", "student has no coach"))
            return

        # The coach is the primary recipient, not a copy
        cc_addresses = [a for a in cc_addresses
                        if normalize_address(a) != normalize_address(coach.primary_email_address)]

        message = await self.sender.send(coach, join_addresses(cc_addresses), content)
        logger.info(f"Message {message.id} created for EarlyAlert {early_alert.id}")

        sent.add_individual(coach.primary_email_address, coach)
        for address in cc_addresses:
            sent.add_individual(address)
        record(diagnostics, StepOutcome.applied("notify_advisor"))

    async def _notify_routes(
        self,
        early_alert: EarlyAlert,
        content: SubjectAndBody,
        sent: RecipientSet,
        diagnostics: Optional[Diagnostics],
    ) -> None:
        if early_alert.campus is None:
            return

        routes = await self.routing.list_active(early_alert.campus)
        reason_ids = {reason.id for reason in early_alert.reasons}

        for route in routes:
            if route.early_alert_reason is None:
                raise NotFoundError(
                    "EarlyAlertReason",
                    message=f"EarlyAlertRouting {route.id} missing EarlyAlertReason.",
                )
            if route.early_alert_reason.id not in reason_ids:
                continue

            await self._send_to_person(early_alert, content, route, sent, diagnostics)
            await self._send_to_group(early_alert, content, route, sent)

    async def _send_to_person(
        self,
        early_alert: EarlyAlert,
        content: SubjectAndBody,
        route: EarlyAlertRouting,
        sent: RecipientSet,
        diagnostics: Optional[Diagnostics],
    ) -> None:
        to = route.person
        address = route.person_email_address
        if to is None or not (address and address.strip()):
            record(diagnostics, StepOutcome.skipped(
                f"route:{route.id}", "routing rule has no person with an email address"
            ))
            return

        if sent.has_individual(address):
            logger.debug(f"EarlyAlert {early_alert.id} already sent to {address}, skipping route {route.id}")
            return

        message = await self.sender.send(to, None, content)
        sent.add_individual(address, to)
        logger.info(f"Message {message.id} for EarlyAlert {early_alert.id} also routed to {to.id}")

    async def _send_to_group(
        self,
        early_alert: EarlyAlert,
        content: SubjectAndBody,
        route: EarlyAlertRouting,
        sent: RecipientSet,
    ) -> None:
        if not route.group_name or not route.group_email:
            return

        # Every matching route sends, even when another route names the same mailbox
        message = await self.sender.send(route.group_email, None, content)
        sent.add_group(route.group_email, route.group_name)
        logger.info(f"Message {message.id} for EarlyAlert {early_alert.id} also routed to {route.group_email}")
