"""Leads API — capture, list, and admin status changes."""

import logging

from fastapi import APIRouter, Query, Request

from funnelmind.schemas import error_response, lead_to_json, read_json
from funnelmind.services.leads import LeadValidationError, capture_lead
from funnelmind.state import get_state
from funnelmind.storage import DuplicateLeadError, LeadNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads")

_DEFAULT_LIMIT = 100
_MAX_LIMIT = 500


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@router.post("", status_code=201)
async def create_lead(request: Request):
    """Capture a lead from the landing page assessment."""
    body = await read_json(request)
    if body is None:
        return error_response("Invalid JSON body", 400)

    state = get_state(request)
    data = {
        "name": body.get("name"),
        "email": body.get("email"),
        "phone": body.get("phone"),
        "assessment_answers": body.get("assessmentAnswers"),
    }

    try:
        lead = await capture_lead(state.storage, state.sequences, data)
    except LeadValidationError as e:
        return error_response(str(e), 400)
    except DuplicateLeadError:
        return error_response("Email already exists", 400)
    except Exception:
        logger.exception("Lead creation failed")
        return error_response("Failed to process lead", 500)

    return {
        "success": True,
        "leadId": lead["lead_id"],
        "message": "Lead captured successfully",
    }


@router.get("")
async def list_leads(
    request: Request,
    page: str | None = Query(None, description="1-based page number"),
    limit: str | None = Query(None, description="Page size (max 500)"),
    q: str | None = Query(None, description="Case-insensitive search over name and email"),
):
    """Paginated lead list for the admin dashboard."""
    page_number = max(_parse_int(page, 1), 1)
    page_size = min(max(_parse_int(limit, _DEFAULT_LIMIT), 1), _MAX_LIMIT)
    storage = get_state(request).storage

    try:
        leads, total = storage.list_leads(q or None, page_number, page_size)
    except Exception:
        logger.exception("Leads fetch failed")
        return error_response("Failed to fetch leads", 500)

    return {
        "total": total,
        "page": page_number,
        "limit": page_size,
        "leads": [lead_to_json(lead) for lead in leads],
        "storage": storage.storage_label(),
    }


@router.patch("/{lead_id}/status")
async def update_status(request: Request, lead_id: str):
    """Administrative lifecycle change (contacted, qualified, ...)."""
    body = await read_json(request)
    if body is None or not body.get("status"):
        return error_response("status is required", 400)

    try:
        lead = get_state(request).storage.update_lead_status(lead_id, body["status"])
    except ValueError as e:
        return error_response(str(e), 400)
    except LeadNotFoundError:
        return error_response(f"Lead {lead_id} not found", 404)

    return {"success": True, "lead": lead_to_json(lead)}
