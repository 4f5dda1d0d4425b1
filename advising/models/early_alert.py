"""
Early Alert Models

An early alert is a concern raised by faculty about a student. Routing rules
copy additional recipients on the advisor notification for a campus/reason.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Table, CheckConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from advising.database import Base
from advising.models.base import generate_id, ObjectStatus


early_alert_early_alert_reasons = Table(
    "early_alert_early_alert_reasons",
    Base.metadata,
    Column("early_alert_id", String, ForeignKey("early_alerts.id", ondelete="CASCADE"), primary_key=True),
    Column("early_alert_reason_id", String, ForeignKey("early_alert_reasons.id"), primary_key=True),
)

early_alert_early_alert_suggestions = Table(
    "early_alert_early_alert_suggestions",
    Base.metadata,
    Column("early_alert_id", String, ForeignKey("early_alerts.id", ondelete="CASCADE"), primary_key=True),
    Column("early_alert_suggestion_id", String, ForeignKey("early_alert_suggestions.id"), primary_key=True),
)


class EarlyAlertReason(Base):
    """Reference data: why an alert was raised."""

    __tablename__ = "early_alert_reasons"

    id = Column(String, primary_key=True, default=lambda: generate_id("eareason"))
    name = Column(String, nullable=False)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)


class EarlyAlertSuggestion(Base):
    """Reference data: a suggested intervention."""

    __tablename__ = "early_alert_suggestions"

    id = Column(String, primary_key=True, default=lambda: generate_id("easuggest"))
    name = Column(String, nullable=False)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)


class EarlyAlert(Base):
    """
    A reported concern about a student.

    Open while closed_date and closed_by are both null, closed while both are
    set. Never hard-deleted.
    """

    __tablename__ = "early_alerts"

    id = Column(String, primary_key=True, default=lambda: generate_id("ea"))

    person_id = Column(String, ForeignKey("persons.id"), nullable=False, index=True)
    campus_id = Column(String, ForeignKey("campuses.id"), nullable=False)
    created_by_id = Column(String, ForeignKey("persons.id"), nullable=False)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Course context
    course_name = Column(String, nullable=True)
    course_title = Column(String, nullable=True)
    course_term_code = Column(String, nullable=True)
    enrollment_status = Column(String, nullable=True)  # enrollment status code

    comment = Column(Text, nullable=True)
    email_cc = Column(String, nullable=True)
    early_alert_reason_other_description = Column(String, nullable=True)

    # Latest advisor response, maintained by the response workflow
    last_response_date = Column(DateTime(timezone=True), nullable=True)

    closed_date = Column(DateTime(timezone=True), nullable=True)
    closed_by_id = Column(String, ForeignKey("persons.id"), nullable=True)

    person = relationship("Person", foreign_keys=[person_id], lazy="selectin")
    campus = relationship("Campus", lazy="selectin")
    created_by = relationship("Person", foreign_keys=[created_by_id], lazy="selectin")
    closed_by = relationship("Person", foreign_keys=[closed_by_id], lazy="selectin")
    reasons = relationship(
        "EarlyAlertReason",
        secondary=early_alert_early_alert_reasons,
        collection_class=set,
        lazy="selectin",
    )
    suggestions = relationship(
        "EarlyAlertSuggestion",
        secondary=early_alert_early_alert_suggestions,
        collection_class=set,
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "(closed_date IS NULL) = (closed_by_id IS NULL)",
            name="ck_early_alerts_closed_pair",
        ),
    )

    @property
    def is_closed(self) -> bool:
        return self.closed_date is not None

    @property
    def effective_date(self) -> Optional[datetime]:
        """Last response date, or the created date when nobody has responded."""
        return self.last_response_date or self.created_date

    def close(self, closed_by, when: datetime) -> None:
        self.closed_date = when
        self.closed_by = closed_by

    def reopen(self) -> None:
        self.closed_date = None
        self.closed_by = None

    def __repr__(self) -> str:
        return f"<EarlyAlert {self.id}>"


class EarlyAlertRouting(Base):
    """
    Standing rule: for a campus, when a reason applies, also notify a person
    and/or a group mailbox.
    """

    __tablename__ = "early_alert_routings"

    id = Column(String, primary_key=True, default=lambda: generate_id("earoute"))
    campus_id = Column(String, ForeignKey("campuses.id", ondelete="CASCADE"), nullable=False, index=True)
    # Nullable so that a rule whose reason was removed can still be loaded and rejected
    early_alert_reason_id = Column(String, ForeignKey("early_alert_reasons.id"), nullable=True)
    person_id = Column(String, ForeignKey("persons.id"), nullable=True)
    group_name = Column(String, nullable=True)
    group_email = Column(String, nullable=True)
    object_status = Column(SQLEnum(ObjectStatus), nullable=False, default=ObjectStatus.ACTIVE)
    created_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    campus = relationship("Campus")
    early_alert_reason = relationship("EarlyAlertReason", lazy="selectin")
    person = relationship("Person", lazy="selectin")

    @property
    def person_email_address(self) -> Optional[str]:
        return self.person.primary_email_address if self.person is not None else None
