"""AI router — prompt-driven content generation for the landing page."""

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool

from funnelmind.schemas import error_response, read_json
from funnelmind.services.ai_content import generate_content

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai")


@router.post("")
async def ai_generate(request: Request):
    """Generate CTA / recommendation / email / popup copy, with canned fallbacks."""
    body = await read_json(request)
    if body is None or not body.get("prompt"):
        return error_response("Prompt is required", 400)

    content_type = body.get("type") or "general"
    user_context = body.get("userContext")
    profile = user_context.get("profile") if isinstance(user_context, dict) else None
    if not isinstance(profile, dict):
        profile = {}
    logger.info("AI request type=%s career_goal=%s", content_type, profile.get("careerGoal", "unknown"))

    return await run_in_threadpool(generate_content, body["prompt"], content_type)
