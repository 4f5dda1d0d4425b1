"""
Persistence-access interfaces.

Engine components receive these instead of a session so that each one only
sees the reads and writes it needs. SQLAlchemy implementations live in
advising.stores.sql.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from advising.models import (
    Campus,
    EarlyAlert,
    EarlyAlertReason,
    EarlyAlertRouting,
    EarlyAlertSuggestion,
    EnrollmentStatus,
    FacultyCourse,
    Person,
    PersonProgramStatus,
    ProgramStatus,
    StudentType,
    Term,
)

_TRUE_VALUES = {"true", "yes", "y", "1", "on"}


class EarlyAlertStore(ABC):
    """Early alert records and the unit of work they are written in."""

    @abstractmethod
    async def get(self, early_alert_id: str) -> EarlyAlert:
        """Return the alert or raise NotFoundError."""

    @abstractmethod
    async def add(self, early_alert: EarlyAlert) -> EarlyAlert:
        """Persist a new alert so that it has an id."""

    @abstractmethod
    async def save(self, early_alert: EarlyAlert) -> EarlyAlert:
        """Flush changes to an existing alert."""

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass

    @abstractmethod
    async def list_response_due(self, cutoff: datetime) -> List[EarlyAlert]:
        """Open alerts whose last response (or creation) is older than cutoff."""

    @abstractmethod
    async def count_open_for_people(self, person_ids: Iterable[str]) -> Dict[str, int]:
        pass

    @abstractmethod
    async def count_closed_for_people(self, person_ids: Iterable[str]) -> Dict[str, int]:
        pass

    @abstractmethod
    async def count_response_due_for_people(
        self, person_ids: Iterable[str], cutoff: datetime
    ) -> Dict[str, int]:
        pass


class PersonStore(ABC):

    @abstractmethod
    async def get(self, person_id: str) -> Person:
        """Return the person or raise NotFoundError."""


class RoutingStore(ABC):

    @abstractmethod
    async def list_active(self, campus: Campus) -> List[EarlyAlertRouting]:
        """Active routing rules for a campus, in store order."""


class WatcherStore(ABC):

    @abstractmethod
    async def list_watchers(self, student: Person) -> List[Person]:
        """People watching the student."""


class ReferenceStore(ABC):
    """Reference data the engine resolves ids and codes against."""

    @abstractmethod
    async def get_campus(self, campus_id: str) -> Campus:
        pass

    @abstractmethod
    async def load_reason(self, reason_id: str) -> EarlyAlertReason:
        pass

    @abstractmethod
    async def load_suggestion(self, suggestion_id: str) -> EarlyAlertSuggestion:
        pass

    @abstractmethod
    async def get_active_program_status(self) -> Optional[ProgramStatus]:
        pass

    @abstractmethod
    async def add_program_status(
        self, person: Person, program_status: ProgramStatus, effective_date: datetime
    ) -> PersonProgramStatus:
        pass

    @abstractmethod
    async def get_student_type_by_code(self, code: str) -> Optional[StudentType]:
        pass

    @abstractmethod
    async def get_enrollment_status_by_code(self, code: str) -> Optional[EnrollmentStatus]:
        pass


class CourseCatalog(ABC):

    @abstractmethod
    async def find_course(
        self, faculty_school_id: str, course_name: str, term_code: Optional[str] = None
    ) -> Optional[FacultyCourse]:
        pass

    @abstractmethod
    async def find_term(self, code: str) -> Optional[Term]:
        pass


class ConfigStore(ABC):
    """Named configuration values. Typed accessors parse get_string."""

    @abstractmethod
    async def get_string(self, name: str, default: Optional[str] = None) -> Optional[str]:
        pass

    async def get_bool(self, name: str, default: bool = False) -> bool:
        value = await self.get_string(name)
        if value is None or not value.strip():
            return default
        return value.strip().lower() in _TRUE_VALUES

    async def get_int(self, name: str, default: Optional[int] = None) -> Optional[int]:
        value = await self.get_string(name)
        if value is None or not value.strip():
            return default
        return int(value.strip())


@dataclass
class Stores:
    """Bundle of stores sharing one unit of work."""
    alerts: EarlyAlertStore
    people: PersonStore
    routing: RoutingStore
    watchers: WatcherStore
    reference: ReferenceStore
    catalog: CourseCatalog
    config: ConfigStore
