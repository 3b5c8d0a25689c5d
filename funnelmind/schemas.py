"""Wire (camelCase JSON) views of internal records, and request body helpers."""

from fastapi import Request
from fastapi.responses import JSONResponse


def lead_to_json(lead: dict) -> dict:
    return {
        "leadId": lead.get("lead_id"),
        "name": lead.get("name"),
        "email": lead.get("email"),
        "phone": lead.get("phone"),
        "assessmentAnswers": lead.get("assessment_answers") or {},
        "status": lead.get("status", "new"),
        "source": lead.get("source"),
        "createdAt": lead.get("created_at"),
        "timestamp": lead.get("timestamp"),
    }


def recent_lead_to_json(lead: dict) -> dict:
    answers = lead.get("assessment_answers") or {}
    return {
        "name": lead.get("name"),
        "email": lead.get("email"),
        "phone": lead.get("phone"),
        "createdAt": lead.get("created_at"),
        "source": answers.get("context") or "unknown",
    }


def analytics_to_json(analytics: dict) -> dict:
    return {
        "pageViews": analytics.get("page_views", 0),
        "assessmentStarts": analytics.get("assessment_starts", 0),
        "assessmentCompletions": analytics.get("assessment_completions", 0),
        "leadCaptures": analytics.get("lead_captures", 0),
        "conversionRate": analytics.get("conversion_rate", 0),
    }


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def read_json(request: Request) -> dict | None:
    """Parsed JSON object body, or None if the body is not a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
