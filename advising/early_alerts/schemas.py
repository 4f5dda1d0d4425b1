"""
Early Alert Schemas

Pydantic schemas for updates submitted to the lifecycle manager.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class EarlyAlertUpdate(BaseModel):
    """
    Full replacement of an alert's editable fields.

    Reasons and suggestions are submitted as ids and re-resolved against
    reference data on save.
    """
    id: str
    person_id: str
    campus_id: str
    course_name: Optional[str] = None
    course_title: Optional[str] = None
    course_term_code: Optional[str] = None
    enrollment_status: Optional[str] = None
    email_cc: Optional[str] = None
    comment: Optional[str] = None
    early_alert_reason_other_description: Optional[str] = None
    closed_date: Optional[datetime] = None
    closed_by_id: Optional[str] = None
    reason_ids: List[str] = Field(min_length=1)
    suggestion_ids: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_closed_pair(self) -> "EarlyAlertUpdate":
        if (self.closed_date is None) != (self.closed_by_id is None):
            raise ValueError("closed_date and closed_by_id must both be set or both be empty")
        return self
