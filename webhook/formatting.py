"""
Typeform Submission Formatting

PURE CONVERSION - NO I/O

Turns a Typeform "form_response" event into one human-readable
notification, bounded to the gateway's maximum message length.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from api.schemas import MAX_MESSAGE_LENGTH

from .schemas import TypeformEvent

_TRUNCATION_MARK = "…"

# Answer types whose value sits under a key with the same name
_SCALAR_ANSWER_TYPES = ("text", "email", "number", "url", "phone_number", "date")


def truncate_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut text to at most `limit` characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[: limit - len(_TRUNCATION_MARK)] + _TRUNCATION_MARK


def format_submitted_at(raw: Any) -> str:
    """ISO-8601 event time -> 'YYYY-MM-DD HH:MM:SS UTC'. Unparseable input is echoed."""
    if not raw:
        return "Unknown time"
    if not isinstance(raw, str):
        return str(raw)
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    if parsed.tzinfo is None:
        # No offset given; printed as-is
        return parsed.strftime("%Y-%m-%d %H:%M:%S")
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S") + " UTC"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def format_answer_value(answer: Dict[str, Any]) -> Optional[str]:
    """Readable value of one answer, or None when it is empty, malformed or unsupported."""
    answer_type = answer.get("type")

    if answer_type in _SCALAR_ANSWER_TYPES:
        value = answer.get(answer_type)
        if value is None or value == "" or isinstance(value, (dict, list)):
            return None
        return str(value)

    if answer_type == "boolean":
        value = answer.get("boolean")
        if not isinstance(value, bool):
            return None
        return "Yes" if value else "No"

    if answer_type == "choice":
        choice = _as_dict(answer.get("choice"))
        value = choice.get("label") or choice.get("other")
        return value if isinstance(value, str) and value else None

    if answer_type == "choices":
        choices = _as_dict(answer.get("choices"))
        labels = choices.get("labels")
        parts: List[str] = [
            label for label in (labels if isinstance(labels, list) else [])
            if isinstance(label, str) and label
        ]
        other = choices.get("other")
        if isinstance(other, str) and other:
            parts.append(other)
        return ", ".join(parts) or None

    return None


def _question_titles(form_response: Dict[str, Any]) -> Dict[str, str]:
    fields = _as_dict(form_response.get("definition")).get("fields")
    if not isinstance(fields, list):
        return {}
    return {
        field["id"]: field["title"]
        for field in fields
        if isinstance(field, dict)
        and isinstance(field.get("id"), str)
        and isinstance(field.get("title"), str)
        and field["title"]
    }


def _question_title(answer: Dict[str, Any], titles: Dict[str, str]) -> str:
    field = _as_dict(answer.get("field"))
    field_id = field.get("id")
    for candidate in (
        field.get("title"),
        titles.get(field_id) if isinstance(field_id, str) else None,
        field.get("ref"),
    ):
        if isinstance(candidate, str) and candidate:
            return candidate
    return "Question"


def format_typeform_submission(event: TypeformEvent) -> str:
    """
    Build the notification text for a form submission.

    Only non-empty answers of supported types are listed; a malformed
    answer is skipped without affecting the others.
    """
    form_response = event.form_response or {}
    form_title = _as_dict(form_response.get("definition")).get("title")
    if not isinstance(form_title, str) or not form_title:
        form_title = "Unknown Form"
    submitted_at = format_submitted_at(form_response.get("submitted_at") or event.event_time)

    titles = _question_titles(form_response)
    answers = form_response.get("answers")
    details: List[str] = []
    for answer in answers if isinstance(answers, list) else []:
        if not isinstance(answer, dict):
            continue
        value = format_answer_value(answer)
        if value:
            details.append(f"- {_question_title(answer, titles)}: {value}")

    submission_id = (event.event_id or "unknown")[:8]

    lines = [
        "🔔 New Typeform Submission Received! 🔔",
        "",
        f"Form: {form_title}",
        f"Time: {submitted_at}",
        "",
        "--- Details ---",
        *(details or ["(no answers)"]),
        "-----------------",
        f"Submission ID: {submission_id}...",
    ]
    return truncate_message("\n".join(lines))
