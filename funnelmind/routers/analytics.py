"""Analytics router — dashboard data and client event tracking."""

import logging

from fastapi import APIRouter, Request

from funnelmind.schemas import error_response, read_json
from funnelmind.services.leads import track_event
from funnelmind.services.stats import dashboard_stats
from funnelmind.state import get_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics")


@router.get("")
async def analytics_index(request: Request):
    """Counters, recent leads, leads by source and funnel rates."""
    try:
        return dashboard_stats(get_state(request).storage)
    except Exception:
        logger.exception("Analytics fetch failed")
        return error_response("Failed to fetch analytics", 500)


@router.post("/track")
async def analytics_track(request: Request):
    """Record a client-side funnel event."""
    body = await read_json(request) or {}
    try:
        track_event(get_state(request).storage, body.get("event"))
    except Exception:
        logger.exception("Analytics tracking failed")
        return error_response("Failed to track event", 500)
    return {"success": True}
