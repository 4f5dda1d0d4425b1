"""Course catalog records used to enrich early alert messages."""

from sqlalchemy import Column, String, Date

from advising.database import Base
from advising.models.base import generate_id


class Term(Base):
    """An academic term, looked up by code."""

    __tablename__ = "terms"

    id = Column(String, primary_key=True, default=lambda: generate_id("term"))
    code = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)


class FacultyCourse(Base):
    """A course section taught by a faculty member in a term."""

    __tablename__ = "faculty_courses"

    id = Column(String, primary_key=True, default=lambda: generate_id("fcourse"))
    faculty_school_id = Column(String, nullable=False, index=True)
    formatted_course = Column(String, nullable=False)
    title = Column(String, nullable=True)
    term_code = Column(String, nullable=True)
