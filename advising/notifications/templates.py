"""
Email Templates

HTML and plain text templates for early alert messages. Each builder takes
the parameter bag assembled by the early alert engine and returns the
subject and both bodies.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class TemplateKey(str, Enum):
    """Named templates the engine can ask for."""
    ADVISOR_NOTIFICATION = "early_alert_advisor_notification"
    FACULTY_CONFIRMATION = "early_alert_faculty_confirmation"
    STUDENT_NOTIFICATION = "early_alert_student_notification"
    RESPONSE_REQUIRED = "early_alert_response_required"


@dataclass
class SubjectAndBody:
    """Rendered message content."""
    subject: str
    body: str
    plain_text_body: str


def _text(value: Any) -> str:
    """Escape a value for HTML, rendering None as an empty string."""
    return html.escape(str(value)) if value is not None else ""


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%B %d, %Y") if value else ""


# =============================================================================
# BASE TEMPLATE
# =============================================================================

BASE_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{subject}</title>
    <style>
        body {{ margin: 0; background: #F5F5F4; color: #1C1917; font-family: Georgia, "Times New Roman", serif; line-height: 1.5; }}
        .container {{ max-width: 640px; margin: 0 auto; padding: 16px; }}
        .header {{ padding: 16px 0; border-bottom: 3px solid #7C2D12; }}
        .logo {{ font-size: 20px; font-weight: bold; color: #7C2D12; }}
        .card {{ background: #FFFFFF; padding: 20px; margin: 16px 0; border: 1px solid #D6D3D1; }}
        .context-item {{ padding: 6px 0; border-bottom: 1px dotted #D6D3D1; }}
        .context-label {{ display: inline-block; min-width: 160px; color: #57534E; }}
        .context-value {{ font-weight: bold; }}
        .button {{ display: inline-block; margin-top: 12px; padding: 10px 18px; background: #7C2D12; color: #FFFFFF; text-decoration: none; }}
        .footer {{ padding: 12px 0; color: #78716C; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <div class="logo">{application_title}</div>
        </div>
        {content}
        <div class="footer">
            <p>{institution_name}</p>
        </div>
    </div>
</body>
</html>
"""


def _wrap(subject: str, content: str, params: Dict[str, Any]) -> str:
    return BASE_HTML_TEMPLATE.format(
        subject=_text(subject),
        content=content,
        application_title=_text(params.get("application_title")),
        institution_name=_text(params.get("institution_name")),
    )


def _context_rows(rows: List[tuple]) -> str:
    items = []
    for label, value in rows:
        if value in (None, ""):
            continue
        items.append(f"""
        <div class="context-item">
            <span class="context-label">{_text(label)}</span>
            <span class="context-value">{_text(value)}</span>
        </div>
        """)
    return "".join(items)


def _plain_rows(rows: List[tuple]) -> List[str]:
    return [f"{label}: {value}" for label, value in rows if value not in (None, "")]


def _alert_rows(params: Dict[str, Any]) -> List[tuple]:
    """Detail rows shared by the alert templates."""
    alert = params["early_alert"]
    term = params.get("term")
    course = params.get("course")
    enrollment = params.get("enrollment")
    coach = alert.coach
    return [
        ("Student", alert.student_name),
        ("Student ID", alert.student_school_id),
        ("Course", alert.course_name),
        ("Course Title", alert.course_title or (course.title if course is not None else None)),
        ("Term", term.name if term is not None else alert.course_term_code),
        ("Enrollment Status", enrollment.name if enrollment is not None else None),
        ("Campus", alert.campus_name),
        ("Reasons", ", ".join(alert.reasons)),
        ("Suggestions", ", ".join(alert.suggestions)),
        ("Reported By", alert.creator_name),
        ("Coach", coach.full_name if coach is not None else None),
        ("Comment", alert.comment),
    ]


def _link_html(params: Dict[str, Any], label: str) -> str:
    link = params.get("external_link")
    if not link:
        return ""
    return f'<a href="{_text(link)}" class="button">{_text(label)}</a>'


# =============================================================================
# EARLY ALERT TEMPLATES
# =============================================================================

def build_advisor_notification(params: Dict[str, Any]) -> SubjectAndBody:
    """Notification to the advisor and routed recipients that an alert was raised."""
    alert = params["early_alert"]
    label = params.get("term_to_represent_early_alert") or "Early Alert"
    subject = f"{label}: {alert.student_name}"
    rows = _alert_rows(params)

    content = f"""
    <div class="card">
        <h2>{_text(label)} for {_text(alert.student_name)}</h2>
        <p>An {_text(label)} has been raised for a student you advise or are routed on.</p>
        {_context_rows(rows)}
        {_link_html(params, "Review the alert")}
    </div>
    """

    plain = [f"{label} for {alert.student_name}", ""] + _plain_rows(rows)
    if params.get("external_link"):
        plain += ["", f"Review the alert: {params['external_link']}"]

    return SubjectAndBody(subject, _wrap(subject, content, params), "\n".join(plain))


def build_faculty_confirmation(params: Dict[str, Any]) -> SubjectAndBody:
    """Confirmation to the reporting faculty member."""
    alert = params["early_alert"]
    label = params.get("term_to_represent_early_alert") or "Early Alert"
    subject = f"{label} Confirmation: {alert.student_name}"
    rows = _alert_rows(params)

    content = f"""
    <div class="card">
        <h2>Thank you, {_text(alert.creator_name)}</h2>
        <p>Your {_text(label)} for {_text(alert.student_name)} has been received and routed.</p>
        {_context_rows(rows)}
    </div>
    """

    plain = [
        f"Thank you, {alert.creator_name}",
        "",
        f"Your {label} for {alert.student_name} has been received and routed.",
        "",
    ] + _plain_rows(rows)

    return SubjectAndBody(subject, _wrap(subject, content, params), "\n".join(plain))


def build_student_notification(params: Dict[str, Any]) -> SubjectAndBody:
    """Message to the student about the concern raised."""
    alert = params["early_alert"]
    label = params.get("term_to_represent_early_alert") or "Early Alert"
    institution = params.get("institution_name") or ""
    subject = f"{label}: {alert.course_name}" if alert.course_name else label
    coach = alert.coach
    coach_line = f"Please contact {coach.full_name}" if coach is not None else "Please contact your advisor"
    if coach is not None and coach.primary_email_address:
        coach_line += f" at {coach.primary_email_address}"

    content = f"""
    <div class="card">
        <h2>Hello {_text(params.get("first_name"))},</h2>
        <p>Your instructor has raised a concern about your progress{' in ' + _text(alert.course_name) if alert.course_name else ''}.</p>
        <p>{_text(coach_line)}.</p>
    </div>
    """

    plain = [
        f"Hello {params.get('first_name')},",
        "",
        "Your instructor has raised a concern about your progress"
        + (f" in {alert.course_name}." if alert.course_name else "."),
        f"{coach_line}.",
        "",
        institution,
    ]

    return SubjectAndBody(subject, _wrap(subject, content, params), "\n".join(plain))


def build_response_required_reminder(params: Dict[str, Any]) -> SubjectAndBody:
    """Aggregated reminder listing alerts that are past the response window."""
    coach = params["coach"]
    pairs = params["early_alert_pairs"]
    label = params.get("term_to_represent_early_alert") or "Early Alert"
    subject = f"{label} Response Required: {len(pairs)} overdue"

    rows_html = []
    plain_rows = []
    for alert, days in pairs:
        rows_html.append(f"""
        <div class="context-item">
            <span class="context-label">{_text(alert.student_name)} ({_text(alert.course_name or "no course")}),
                created {_text(format_date(alert.created_date))}</span>
            <span class="context-value">{days} day(s) out of compliance</span>
        </div>
        """)
        plain_rows.append(
            f"- {alert.student_name} ({alert.course_name or 'no course'}), "
            f"created {format_date(alert.created_date)}: {days} day(s) out of compliance"
        )

    content = f"""
    <div class="card">
        <h2>Hello {_text(coach.full_name)},</h2>
        <p>The following {_text(label)}s have not received a timely response.</p>
        {''.join(rows_html)}
        {_link_html(params, "Respond now")}
    </div>
    """

    plain = [
        f"Hello {coach.full_name},",
        "",
        f"The following {label}s have not received a timely response.",
        "",
    ] + plain_rows

    return SubjectAndBody(subject, _wrap(subject, content, params), "\n".join(plain))


TEMPLATE_BUILDERS: Dict[TemplateKey, Callable[[Dict[str, Any]], SubjectAndBody]] = {
    TemplateKey.ADVISOR_NOTIFICATION: build_advisor_notification,
    TemplateKey.FACULTY_CONFIRMATION: build_faculty_confirmation,
    TemplateKey.STUDENT_NOTIFICATION: build_student_notification,
    TemplateKey.RESPONSE_REQUIRED: build_response_required_reminder,
}


class TemplateRenderer:
    """Renders a named template from a parameter bag."""

    def __init__(self, builders: Optional[Dict[TemplateKey, Callable]] = None):
        self.builders = TEMPLATE_BUILDERS if builders is None else builders

    def render(self, key: TemplateKey, params: Dict[str, Any]) -> SubjectAndBody:
        builder = self.builders.get(key)
        if builder is None:
            raise KeyError(f"No template registered for {key}")
        return builder(params)
