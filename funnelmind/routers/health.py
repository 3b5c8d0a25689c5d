"""Health and liveness routes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from funnelmind.services.stats import health_report
from funnelmind.state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    state = get_state(request)
    try:
        return health_report(state.storage, state.dispatcher, state.started_at)
    except Exception as e:
        logger.exception("Health check failed")
        return JSONResponse(
            {
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
            },
            status_code=500,
        )


@router.get("/test")
async def test():
    return {
        "message": "FunnelMind server is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
