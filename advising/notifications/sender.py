"""
Message Sender

Queues outbound messages in the caller's session. A message only exists if
the surrounding transaction commits, so a rolled-back early alert leaves no
notifications behind.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from advising.exceptions import MessageSendError
from advising.models import Message, MessageStatus, Person, generate_id
from .templates import SubjectAndBody

logger = logging.getLogger(__name__)

_ADDRESS_PATTERN = re.compile(r"^[^@\s;,]+@[^@\s;,]+\.[^@\s;,]+$")


def normalize_address(address: Optional[str]) -> str:
    return (address or "").strip().lower()


def split_addresses(addresses: Optional[str]) -> List[str]:
    """Split a semicolon or comma separated address list, dropping blanks."""
    if not addresses:
        return []
    return [part.strip() for part in re.split(r"[;,]", addresses) if part.strip()]


def join_addresses(addresses: Iterable[str]) -> Optional[str]:
    """Join addresses with ';', dropping duplicates case-insensitively."""
    seen = set()
    unique = []
    for address in addresses:
        key = normalize_address(address)
        if key and key not in seen:
            seen.add(key)
            unique.append(address.strip())
    return ";".join(unique) or None


class MessageSender(ABC):
    """Hands a rendered message to the outbound channel."""

    @abstractmethod
    async def send(
        self,
        to: Union[Person, str],
        cc: Optional[str],
        content: SubjectAndBody,
    ) -> Message:
        """Send to a person or raw address; raise MessageSendError on failure."""


class QueuedMessageSender(MessageSender):
    """Writes queued Message rows for the dispatcher to deliver."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def send(
        self,
        to: Union[Person, str],
        cc: Optional[str],
        content: SubjectAndBody,
    ) -> Message:
        recipient = to if isinstance(to, Person) else None
        address = to.primary_email_address if recipient is not None else to

        if not address or not _ADDRESS_PATTERN.match(address.strip()):
            who = recipient.id if recipient is not None else address
            raise MessageSendError(f"Recipient {who} has no valid email address")

        for cc_address in split_addresses(cc):
            if not _ADDRESS_PATTERN.match(cc_address):
                raise MessageSendError(f"Invalid carbon copy address: {cc_address}")

        message = Message(
            id=generate_id("msg"),
            recipient=recipient,
            recipient_email_address=address.strip(),
            carbon_copy=join_addresses(split_addresses(cc)),
            subject=content.subject,
            body=content.body,
            plain_text_body=content.plain_text_body,
            status=MessageStatus.QUEUED,
        )
        self.db.add(message)
        logger.debug(f"Queued message '{content.subject}' for {address}")
        return message
