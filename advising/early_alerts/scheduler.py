"""
Early Alert Scheduler

Background jobs for the early alert engine:
- Response-required reminders: daily at EARLY_ALERT_REMINDER_HOUR
- Queued message delivery: every MESSAGE_DISPATCH_INTERVAL_MINUTES

Uses APScheduler for job scheduling.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from advising.config import settings
from advising.database import async_session_maker
from advising.notifications import MessageDispatcher
from .service import get_reminder_sweeper

logger = logging.getLogger(__name__)


class EarlyAlertReminderScheduler:
    """
    Runs the scheduled early alert jobs.

    Each run opens its own session; the methods can be called by APScheduler
    or any other job runner.
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or async_session_maker
        self._last_reminder_run: Optional[datetime] = None
        self._last_dispatch_run: Optional[datetime] = None

    async def run_reminders(self) -> dict:
        """
        Send response-required reminders for overdue alerts.

        Reminder messages are queued and committed together; they go out on
        the next dispatch run.
        """
        logger.info("Starting early alert reminder run")
        self._last_reminder_run = datetime.now(timezone.utc)
        summary = {
            "run_type": "reminders",
            "started_at": self._last_reminder_run.isoformat(),
            "errors": [],
        }

        async with self.session_factory() as db:
            try:
                sweeper = get_reminder_sweeper(db)
                result = await sweeper.send_all_early_alert_reminder_notifications()
                await db.commit()
                summary.update(result.to_dict())
            except Exception as e:
                await db.rollback()
                logger.error(f"Early alert reminder run failed: {e}")
                summary["errors"].append({"error": str(e)})

        summary["completed_at"] = datetime.now(timezone.utc).isoformat()
        return summary

    async def dispatch_messages(self) -> dict:
        """Deliver a batch of queued messages."""
        self._last_dispatch_run = datetime.now(timezone.utc)
        summary = {
            "run_type": "dispatch",
            "started_at": self._last_dispatch_run.isoformat(),
            "sent": 0,
            "failed": 0,
            "errors": [],
        }

        async with self.session_factory() as db:
            try:
                dispatcher = MessageDispatcher(db)
                summary.update(await dispatcher.dispatch_queued())
                await db.commit()
            except Exception as e:
                await db.rollback()
                logger.error(f"Message dispatch run failed: {e}")
                summary["errors"].append({"error": str(e)})

        summary["completed_at"] = datetime.now(timezone.utc).isoformat()
        if summary["sent"] or summary["failed"]:
            logger.info(f"Message dispatch completed: {summary['sent']} sent, {summary['failed']} failed")
        return summary

    def get_status(self) -> dict:
        return {
            "last_reminder_run": self._last_reminder_run.isoformat() if self._last_reminder_run else None,
            "last_dispatch_run": self._last_dispatch_run.isoformat() if self._last_dispatch_run else None,
        }


# Singleton instance for use across the application
early_alert_scheduler = EarlyAlertReminderScheduler()


def setup_apscheduler(scheduler, job_runner: Optional[EarlyAlertReminderScheduler] = None):
    """
    Configure APScheduler with the early alert jobs.

    Usage:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        scheduler = AsyncIOScheduler()
        setup_apscheduler(scheduler)
        scheduler.start()

    Args:
        scheduler: APScheduler instance (AsyncIOScheduler)
        job_runner: defaults to the module singleton
    """
    runner = job_runner or early_alert_scheduler

    scheduler.add_job(
        runner.run_reminders,
        'cron',
        hour=settings.EARLY_ALERT_REMINDER_HOUR,
        minute=0,
        id='early_alert_reminders',
        name='Early Alert Reminder Run',
        replace_existing=True,
    )

    scheduler.add_job(
        runner.dispatch_messages,
        'interval',
        minutes=settings.MESSAGE_DISPATCH_INTERVAL_MINUTES,
        id='message_dispatch',
        name='Queued Message Dispatch',
        replace_existing=True,
    )

    logger.info("Early alert scheduler jobs configured")


def create_scheduler():
    """Build an AsyncIOScheduler with the early alert jobs registered."""
    from apscheduler.schedulers.asyncio import AsyncIOScheduler

    scheduler = AsyncIOScheduler()
    setup_apscheduler(scheduler)
    return scheduler
