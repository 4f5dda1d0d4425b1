"""
Early alert configuration snapshot.

Read once from the configuration store at the start of an operation so that
every step of one create or sweep sees the same values.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from advising.stores import ConfigStore

logger = logging.getLogger(__name__)

SEND_FACULTY_MAIL = "send_faculty_mail"
MAX_DAYS_BEFORE_RESPONSE = "maximum_days_before_early_alert_response"
REMINDER_INCLUDE_COACH = "early_alert_reminder_include_coach"
REMINDER_INCLUDE_COORDINATOR = "early_alert_reminder_include_coordinator"
REMINDER_INCLUDE_COORDINATOR_IF_NO_COACH = "early_alert_reminder_include_coordinator_if_no_coach"
INSTITUTION_NAME = "inst_name"
APPLICATION_TITLE = "app_title"
EXTERNAL_LINK = "server_external_path"
TERM_TO_REPRESENT_EARLY_ALERT = "term_to_represent_early_alert"


@dataclass(frozen=True)
class EarlyAlertSettings:
    send_faculty_mail: bool = True
    # None disables reminders entirely
    max_days_before_response: Optional[int] = None
    reminder_include_coach: bool = True
    reminder_include_coordinator: bool = False
    reminder_include_coordinator_if_no_coach: bool = True
    institution_name: str = ""
    application_title: str = ""
    external_link: str = ""
    term_to_represent_early_alert: str = ""

    @classmethod
    async def load(cls, config: ConfigStore) -> "EarlyAlertSettings":
        return cls(
            send_faculty_mail=await config.get_bool(SEND_FACULTY_MAIL, True),
            max_days_before_response=await _max_days(config),
            reminder_include_coach=await config.get_bool(REMINDER_INCLUDE_COACH, True),
            reminder_include_coordinator=await config.get_bool(REMINDER_INCLUDE_COORDINATOR, False),
            reminder_include_coordinator_if_no_coach=await config.get_bool(
                REMINDER_INCLUDE_COORDINATOR_IF_NO_COACH, True
            ),
            institution_name=await config.get_string(INSTITUTION_NAME) or "",
            application_title=await config.get_string(APPLICATION_TITLE) or "",
            external_link=await config.get_string(EXTERNAL_LINK) or "",
            term_to_represent_early_alert=await config.get_string(TERM_TO_REPRESENT_EARLY_ALERT) or "",
        )


async def _max_days(config: ConfigStore) -> Optional[int]:
    try:
        days = await config.get_int(MAX_DAYS_BEFORE_RESPONSE)
    except ValueError:
        days = None
        value = await config.get_string(MAX_DAYS_BEFORE_RESPONSE)
        logger.error(f"Config {MAX_DAYS_BEFORE_RESPONSE} is not an integer ({value!r}); reminders disabled")
    if days is not None and days < 0:
        logger.error(f"Config {MAX_DAYS_BEFORE_RESPONSE} is negative ({days}); reminders disabled")
        return None
    return days
