"""
Notifications Module

Renders early alert messages, queues them with the current transaction and
delivers them through an email provider.
"""

from .templates import TemplateKey, TemplateRenderer, SubjectAndBody
from .sender import MessageSender, QueuedMessageSender, normalize_address
from .service import MessageDispatcher
from .email_provider import (
    EmailProvider,
    EmailMessage,
    SendResult,
    get_email_provider,
)

__all__ = [
    "TemplateKey",
    "TemplateRenderer",
    "SubjectAndBody",
    "MessageSender",
    "QueuedMessageSender",
    "normalize_address",
    "MessageDispatcher",
    "EmailProvider",
    "EmailMessage",
    "SendResult",
    "get_email_provider",
]
