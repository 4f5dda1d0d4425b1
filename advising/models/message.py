"""
Message Models

Outbound messages are queued in the same transaction as the change that
produced them and delivered later by the dispatcher.
"""

from enum import Enum

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from advising.database import Base
from advising.models.base import generate_id


class MessageStatus(str, Enum):
    """Delivery state of a queued message."""
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"


class Message(Base):
    """An email waiting for, or past, delivery."""

    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=lambda: generate_id("msg"))

    # Null for group mailboxes and other raw addresses
    recipient_id = Column(String, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True)
    recipient_email_address = Column(String, nullable=False)
    carbon_copy = Column(String, nullable=True)  # semicolon separated

    subject = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    plain_text_body = Column(Text, nullable=True)

    status = Column(SQLEnum(MessageStatus), nullable=False, default=MessageStatus.QUEUED)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    sent_date = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(String, nullable=True)

    # External reference (e.g., email provider message ID)
    external_id = Column(String, nullable=True)

    recipient = relationship("Person")

    def __repr__(self) -> str:
        return f"<Message {self.id} to {self.recipient_email_address}>"
