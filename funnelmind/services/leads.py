"""Lead capture — validate, persist, count, start the email sequence."""

import logging
import re

from funnelmind.config import LEAD_SOURCE
from funnelmind.storage import build_lead

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email")

# local@domain, no whitespace
_EMAIL_RE = re.compile(r"^[^@\s]{1,64}@[^@\s]{1,255}$")
_MAX_NAME_LEN = 200
_MAX_PHONE_LEN = 40

# Client-side analytics events -> analytics counters
EVENT_COUNTERS = {
    "page_view": "page_views",
    "assessment_started": "assessment_starts",
    "assessment_completed": "assessment_completions",
}


class LeadValidationError(ValueError):
    """Capture input is missing a required field or is malformed."""


def validate_lead_input(data: dict) -> dict:
    """Normalize capture input. Raises LeadValidationError."""
    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise LeadValidationError(f"{field} is required")

    email = data["email"].strip().lower()
    if not _EMAIL_RE.match(email):
        raise LeadValidationError("Invalid email format")

    answers = data.get("assessment_answers") or {}
    if not isinstance(answers, dict):
        raise LeadValidationError("assessmentAnswers must be an object")

    phone = data.get("phone")
    return {
        "name": data["name"].strip()[:_MAX_NAME_LEN],
        "email": email,
        "phone": str(phone).strip()[:_MAX_PHONE_LEN] if phone else None,
        "assessment_answers": answers,
    }


async def capture_lead(storage, sequences, data: dict, source: str = LEAD_SOURCE) -> dict:
    """Capture one lead.

    Validation and duplicate-email errors propagate. Once the lead is saved,
    counter and email failures are logged and swallowed so the capture still
    succeeds.
    """
    lead = build_lead(validate_lead_input(data), source=source)
    saved = storage.save_lead(lead)
    logger.info("New lead: %s (%s)", saved["name"], saved["email"])

    try:
        storage.increment_analytics("lead_captures")
    except Exception:
        logger.exception("Failed to count lead capture for %s", saved["email"])

    try:
        await sequences.start_sequence(saved)
    except Exception:
        logger.exception("Failed to start email sequence for %s", saved["email"])

    return saved


def track_event(storage, event) -> str | None:
    """Increment the counter mapped to an event. Unknown events are a no-op."""
    field = EVENT_COUNTERS.get(event) if isinstance(event, str) else None
    if field:
        storage.increment_analytics(field)
    logger.info("Analytics event: %s", event)
    return field


async def trigger_email(sequences, email: str, name: str = "",
                        assessment_data: dict | None = None,
                        sequence_type: str = "welcome") -> dict | None:
    """Render and send one stage directly, bypassing the scheduler."""
    logger.info("Triggering %s email for %s", sequence_type, email)
    contact = {
        "lead_id": "",
        "name": name,
        "email": email.strip().lower(),
        "assessment_answers": assessment_data or {},
    }
    return await sequences.send_stage(contact, sequence_type)
