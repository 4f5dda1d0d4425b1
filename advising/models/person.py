"""
Person Models

People (students, coaches, faculty), campuses, watchers and the reference
records that decide whether a student shows up in caseloads.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from advising.database import Base
from advising.models.base import generate_id, ObjectStatus


class Person(Base):
    """A student or staff member."""

    __tablename__ = "persons"

    id = Column(String, primary_key=True, default=lambda: generate_id("person"))
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    school_id = Column(String, nullable=True, index=True)
    primary_email_address = Column(String, nullable=True)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)

    # Assigned coach (advisor); null until one is assigned
    coach_id = Column(String, ForeignKey("persons.id"), nullable=True, index=True)
    student_type_id = Column(String, ForeignKey("student_types.id"), nullable=True)

    coach = relationship("Person", remote_side="Person.id", lazy="selectin", join_depth=1)
    student_type = relationship("StudentType", lazy="selectin")
    program_statuses = relationship(
        "PersonProgramStatus",
        back_populates="person",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Person {self.id} {self.full_name}>"


class Campus(Base):
    """A campus; carries the fallback early alert coordinator."""

    __tablename__ = "campuses"

    id = Column(String, primary_key=True, default=lambda: generate_id("campus"))
    name = Column(String, nullable=False)
    early_alert_coordinator_id = Column(String, ForeignKey("persons.id"), nullable=True)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)


class WatchStudent(Base):
    """A person who is copied on a student's communications."""

    __tablename__ = "watch_students"

    id = Column(String, primary_key=True, default=lambda: generate_id("watch"))
    person_id = Column(String, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)

    person = relationship("Person", foreign_keys=[person_id], lazy="selectin")
    student = relationship("Person", foreign_keys=[student_id])


class ProgramStatus(Base):
    """Reference data: a student's program status (active, inactive, ...)."""

    __tablename__ = "program_statuses"

    ACTIVE_CODE = "active"

    id = Column(String, primary_key=True, default=lambda: generate_id("pstatus"))
    code = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)


class PersonProgramStatus(Base):
    """A dated program status held by a person."""

    __tablename__ = "person_program_statuses"

    id = Column(String, primary_key=True, default=lambda: generate_id("ppstatus"))
    person_id = Column(String, ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True)
    program_status_id = Column(String, ForeignKey("program_statuses.id"), nullable=False)
    effective_date = Column(DateTime(timezone=True), nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=True)

    person = relationship("Person", back_populates="program_statuses")
    program_status = relationship("ProgramStatus", lazy="selectin")

    def is_current(self, as_of) -> bool:
        return self.expiration_date is None or self.expiration_date > as_of


class StudentType(Base):
    """Reference data: student type."""

    __tablename__ = "student_types"

    # Assigned to students who only exist in the system because of an early alert
    EARLY_ALERT_ASSIGNED_CODE = "EAL"

    id = Column(String, primary_key=True, default=lambda: generate_id("stype"))
    code = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)


class EnrollmentStatus(Base):
    """Reference data: enrollment status, looked up by code."""

    __tablename__ = "enrollment_statuses"

    id = Column(String, primary_key=True, default=lambda: generate_id("estatus"))
    code = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
