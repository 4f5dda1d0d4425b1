"""Errors raised by the early alert engine and its collaborators."""
from typing import Optional


class NotFoundError(ValueError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, entity_id: Optional[str] = None, message: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} {entity_id} not found")


class EarlyAlertValidationError(ValueError):
    """A required association is missing or an operation could not complete."""


class MessageSendError(RuntimeError):
    """A message could not be handed to the outbound queue."""
