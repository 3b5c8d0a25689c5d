"""Email router — manual sequence-stage trigger for testing templates."""

import logging

from fastapi import APIRouter, Request

from funnelmind.schemas import error_response, read_json
from funnelmind.services.leads import trigger_email
from funnelmind.state import get_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email")


@router.post("/trigger")
async def email_trigger(request: Request):
    """Render and send one stage immediately, without scheduling."""
    body = await read_json(request)
    if body is None:
        return error_response("Invalid JSON body", 400)
    if not body.get("email"):
        return error_response("email is required", 400)

    result = await trigger_email(
        get_state(request).sequences,
        email=body["email"],
        name=body.get("name") or "",
        assessment_data=body.get("assessmentData"),
        sequence_type=body.get("sequenceType") or "welcome",
    )
    if result is None:
        return error_response("Failed to trigger email", 500)

    return {
        "success": True,
        "emailId": result["message_id"],
        "provider": result["provider"],
        "message": "Email sequence triggered",
    }
