"""Factories wiring the early alert engine onto a database session."""

from sqlalchemy.ext.asyncio import AsyncSession

from advising.notifications import QueuedMessageSender
from advising.stores import build_sql_stores
from .lifecycle import EarlyAlertLifecycleManager
from .reminders import ReminderEscalationSweeper


def get_lifecycle_manager(db: AsyncSession) -> EarlyAlertLifecycleManager:
    """Get a lifecycle manager whose stores and messages share one session."""
    return EarlyAlertLifecycleManager(build_sql_stores(db), QueuedMessageSender(db))


def get_reminder_sweeper(db: AsyncSession) -> ReminderEscalationSweeper:
    """Get a reminder sweeper bound to the session."""
    return ReminderEscalationSweeper(build_sql_stores(db), QueuedMessageSender(db))
