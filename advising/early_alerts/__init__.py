"""
Early Alerts Module

Lifecycle of early alerts raised by faculty about students at risk:
advisor assignment, student state reconciliation, routed notifications,
close/reopen, and the periodic response-required reminder sweep.
"""

from .advisor import AdvisorResolver
from .compliance import ComplianceClock, days_since_anchor
from .lifecycle import EarlyAlertLifecycleManager
from .outcomes import OutcomeStatus, StepOutcome
from .reconciler import PersonStateReconciler
from .reminders import EscalationGroup, ReminderEscalationSweeper, ReminderRunSummary
from .routing import RecipientSet, RoutingMatcher
from .schemas import EarlyAlertUpdate
from .settings import EarlyAlertSettings
from .template_params import EarlyAlertMessageView, TemplateParameterResolver
from .service import get_lifecycle_manager, get_reminder_sweeper

__all__ = [
    "AdvisorResolver",
    "ComplianceClock",
    "days_since_anchor",
    "EarlyAlertLifecycleManager",
    "OutcomeStatus",
    "StepOutcome",
    "PersonStateReconciler",
    "EscalationGroup",
    "ReminderEscalationSweeper",
    "ReminderRunSummary",
    "RecipientSet",
    "RoutingMatcher",
    "EarlyAlertUpdate",
    "EarlyAlertSettings",
    "EarlyAlertMessageView",
    "TemplateParameterResolver",
    "get_lifecycle_manager",
    "get_reminder_sweeper",
]
