"""
Message Dispatcher

Delivers queued messages through the configured email provider and records
the outcome on each message.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from advising.config import settings
from advising.models import Message, MessageStatus
from .email_provider import EmailMessage, EmailProvider, get_email_provider
from .sender import split_addresses

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Drains the outbound queue.

    Each message is delivered independently; a failed delivery is marked
    FAILED with the provider error and does not stop the batch.
    """

    def __init__(self, db: AsyncSession, email_provider: Optional[EmailProvider] = None):
        self.db = db
        self.email_provider = email_provider or get_email_provider(
            resend_api_key=settings.RESEND_API_KEY,
            smtp_config=_smtp_config(),
            console_mode=settings.EMAIL_CONSOLE_MODE,
            from_email=settings.EMAIL_FROM,
        )

    async def dispatch_queued(self, batch_size: Optional[int] = None) -> dict:
        """
        Send up to batch_size queued messages, oldest first.

        Returns counts of sent and failed messages.
        """
        limit = batch_size or settings.MESSAGE_DISPATCH_BATCH_SIZE
        result = await self.db.execute(
            select(Message)
            .where(Message.status == MessageStatus.QUEUED)
            .order_by(Message.created_date)
            .limit(limit)
        )
        messages = result.scalars().all()

        summary = {"sent": 0, "failed": 0}
        for message in messages:
            send_result = await self.email_provider.send(EmailMessage(
                to=message.recipient_email_address,
                cc=split_addresses(message.carbon_copy),
                subject=message.subject,
                html_body=message.body,
                plain_text_body=message.plain_text_body or "",
            ))
            if send_result.success:
                message.status = MessageStatus.SENT
                message.sent_date = datetime.now(timezone.utc)
                message.external_id = send_result.message_id
                summary["sent"] += 1
            else:
                message.status = MessageStatus.FAILED
                message.error_message = send_result.error
                summary["failed"] += 1
                logger.error(f"Delivery of message {message.id} failed: {send_result.error}")

        await self.db.flush()
        return summary


def _smtp_config() -> Optional[dict]:
    if not settings.SMTP_HOST:
        return None
    return {
        "host": settings.SMTP_HOST,
        "port": settings.SMTP_PORT,
        "username": settings.SMTP_USERNAME,
        "password": settings.SMTP_PASSWORD,
        "use_tls": settings.SMTP_USE_TLS,
    }
