"""SQLAlchemy implementations of the persistence-access interfaces."""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from advising.exceptions import NotFoundError
from advising.models import (
    Campus,
    ConfigEntry,
    EarlyAlert,
    EarlyAlertReason,
    EarlyAlertRouting,
    EarlyAlertSuggestion,
    EnrollmentStatus,
    FacultyCourse,
    ObjectStatus,
    Person,
    PersonProgramStatus,
    ProgramStatus,
    StudentType,
    Term,
    WatchStudent,
)
from .base import (
    ConfigStore,
    CourseCatalog,
    EarlyAlertStore,
    PersonStore,
    ReferenceStore,
    RoutingStore,
    Stores,
    WatcherStore,
)

logger = logging.getLogger(__name__)

# Self-referential coach is not reached by the default selectin depth from an alert
_STUDENT_WITH_COACH = selectinload(EarlyAlert.person).selectinload(Person.coach)


class SqlEarlyAlertStore(EarlyAlertStore):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, early_alert_id: str) -> EarlyAlert:
        alert = await self.db.get(EarlyAlert, early_alert_id, options=[_STUDENT_WITH_COACH])
        if alert is None:
            raise NotFoundError("EarlyAlert", early_alert_id)
        return alert

    async def add(self, early_alert: EarlyAlert) -> EarlyAlert:
        self.db.add(early_alert)
        await self.db.flush()
        # Server defaults and collections the caller never set would otherwise
        # lazy load on first access
        await self.db.refresh(early_alert, attribute_names=["created_date", "reasons", "suggestions"])
        return early_alert

    async def save(self, early_alert: EarlyAlert) -> EarlyAlert:
        self.db.add(early_alert)
        await self.db.flush()
        return early_alert

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    def _response_due_clause(self, cutoff: datetime):
        return and_(
            EarlyAlert.closed_date.is_(None),
            func.coalesce(EarlyAlert.last_response_date, EarlyAlert.created_date) < cutoff,
        )

    async def list_response_due(self, cutoff: datetime) -> List[EarlyAlert]:
        result = await self.db.execute(
            select(EarlyAlert)
            .options(_STUDENT_WITH_COACH)
            .where(self._response_due_clause(cutoff))
            .order_by(EarlyAlert.created_date)
        )
        return list(result.scalars().all())

    async def _count_by_person(self, person_ids: Iterable[str], *criteria) -> Dict[str, int]:
        ids = list(person_ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(EarlyAlert.person_id, func.count(EarlyAlert.id))
            .where(EarlyAlert.person_id.in_(ids), *criteria)
            .group_by(EarlyAlert.person_id)
        )
        return {person_id: count for person_id, count in result.all()}

    async def count_open_for_people(self, person_ids: Iterable[str]) -> Dict[str, int]:
        return await self._count_by_person(person_ids, EarlyAlert.closed_date.is_(None))

    async def count_closed_for_people(self, person_ids: Iterable[str]) -> Dict[str, int]:
        return await self._count_by_person(person_ids, EarlyAlert.closed_date.is_not(None))

    async def count_response_due_for_people(
        self, person_ids: Iterable[str], cutoff: datetime
    ) -> Dict[str, int]:
        return await self._count_by_person(person_ids, self._response_due_clause(cutoff))


class SqlPersonStore(PersonStore):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, person_id: str) -> Person:
        person = await self.db.get(Person, person_id) if person_id else None
        if person is None:
            raise NotFoundError("Person", person_id)
        return person


class SqlRoutingStore(RoutingStore):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(self, campus: Campus) -> List[EarlyAlertRouting]:
        result = await self.db.execute(
            select(EarlyAlertRouting)
            .where(EarlyAlertRouting.campus_id == campus.id)
            .where(EarlyAlertRouting.object_status == ObjectStatus.ACTIVE)
            .order_by(EarlyAlertRouting.created_date, EarlyAlertRouting.id)
        )
        return list(result.scalars().all())


class SqlWatcherStore(WatcherStore):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_watchers(self, student: Person) -> List[Person]:
        result = await self.db.execute(
            select(WatchStudent)
            .where(WatchStudent.student_id == student.id)
            .where(WatchStudent.object_status == ObjectStatus.ACTIVE)
        )
        return [watch.person for watch in result.scalars().all()]


class SqlReferenceStore(ReferenceStore):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, model, entity_id: str):
        row = await self.db.get(model, entity_id) if entity_id else None
        if row is None:
            raise NotFoundError(model.__name__, entity_id)
        return row

    async def get_campus(self, campus_id: str) -> Campus:
        return await self._load(Campus, campus_id)

    async def load_reason(self, reason_id: str) -> EarlyAlertReason:
        return await self._load(EarlyAlertReason, reason_id)

    async def load_suggestion(self, suggestion_id: str) -> EarlyAlertSuggestion:
        return await self._load(EarlyAlertSuggestion, suggestion_id)

    async def get_active_program_status(self) -> Optional[ProgramStatus]:
        result = await self.db.execute(
            select(ProgramStatus)
            .where(ProgramStatus.code == ProgramStatus.ACTIVE_CODE)
            .where(ProgramStatus.object_status == ObjectStatus.ACTIVE)
        )
        return result.scalar_one_or_none()

    async def add_program_status(
        self, person: Person, program_status: ProgramStatus, effective_date: datetime
    ) -> PersonProgramStatus:
        record = PersonProgramStatus(program_status=program_status, effective_date=effective_date)
        person.program_statuses.append(record)
        self.db.add(record)
        return record

    async def get_student_type_by_code(self, code: str) -> Optional[StudentType]:
        result = await self.db.execute(select(StudentType).where(StudentType.code == code))
        return result.scalar_one_or_none()

    async def get_enrollment_status_by_code(self, code: str) -> Optional[EnrollmentStatus]:
        result = await self.db.execute(
            select(EnrollmentStatus).where(EnrollmentStatus.code == code)
        )
        return result.scalar_one_or_none()


class SqlCourseCatalog(CourseCatalog):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_course(
        self, faculty_school_id: str, course_name: str, term_code: Optional[str] = None
    ) -> Optional[FacultyCourse]:
        query = (
            select(FacultyCourse)
            .where(FacultyCourse.faculty_school_id == faculty_school_id)
            .where(FacultyCourse.formatted_course == course_name)
        )
        if term_code:
            query = query.where(FacultyCourse.term_code == term_code)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def find_term(self, code: str) -> Optional[Term]:
        result = await self.db.execute(select(Term).where(Term.code == code))
        return result.scalar_one_or_none()


class SqlConfigStore(ConfigStore):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_string(self, name: str, default: Optional[str] = None) -> Optional[str]:
        result = await self.db.execute(select(ConfigEntry).where(ConfigEntry.name == name))
        entry = result.scalar_one_or_none()
        if entry is None:
            logger.debug(f"Config {name} not found, using default")
            return default
        value = entry.effective_value
        return value if value is not None else default


def build_sql_stores(db: AsyncSession) -> Stores:
    """Wire every store onto one session."""
    return Stores(
        alerts=SqlEarlyAlertStore(db),
        people=SqlPersonStore(db),
        routing=SqlRoutingStore(db),
        watchers=SqlWatcherStore(db),
        reference=SqlReferenceStore(db),
        catalog=SqlCourseCatalog(db),
        config=SqlConfigStore(db),
    )
