"""
Consolidated models package.

IMPORTANT: Explicit imports only - no wildcards to prevent circular imports.
Use string-based forward references in relationships: relationship("Person", ...)
"""

# Base utilities
from advising.models.base import generate_id, ObjectStatus

# People and reference data
from advising.models.person import (
    Person,
    Campus,
    WatchStudent,
    ProgramStatus,
    PersonProgramStatus,
    StudentType,
    EnrollmentStatus,
)

# Early alerts
from advising.models.early_alert import (
    EarlyAlert,
    EarlyAlertReason,
    EarlyAlertSuggestion,
    EarlyAlertRouting,
)

# Catalog
from advising.models.catalog import Term, FacultyCourse

# Configuration
from advising.models.config import ConfigEntry

# Messages
from advising.models.message import Message, MessageStatus

__all__ = [
    "generate_id",
    "ObjectStatus",
    "Person",
    "Campus",
    "WatchStudent",
    "ProgramStatus",
    "PersonProgramStatus",
    "StudentType",
    "EnrollmentStatus",
    "EarlyAlert",
    "EarlyAlertReason",
    "EarlyAlertSuggestion",
    "EarlyAlertRouting",
    "Term",
    "FacultyCourse",
    "ConfigEntry",
    "Message",
    "MessageStatus",
]
