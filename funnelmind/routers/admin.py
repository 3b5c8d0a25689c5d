"""Admin router — dashboard page and status API."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.templating import Jinja2Templates

from funnelmind.config import ENVIRONMENT, WEB_TEMPLATES_DIR
from funnelmind.services.stats import dashboard_stats
from funnelmind.state import get_state

router = APIRouter(prefix="/admin")
templates = Jinja2Templates(directory=str(WEB_TEMPLATES_DIR))


@router.get("")
async def admin_index(request: Request):
    """Lead funnel dashboard."""
    state = get_state(request)
    stats = dashboard_stats(state.storage)
    leads, total = state.storage.list_leads(None, 1, 50)
    return templates.TemplateResponse(request, "admin.html", {
        "active_page": "admin",
        "stats": stats,
        "leads": leads,
        "total": total,
        "jobs": state.sequences.scheduled_jobs(),
        "email": state.dispatcher.status(),
        "environment": ENVIRONMENT,
    })


@router.get("/api/status")
async def admin_status(request: Request):
    state = get_state(request)
    return {
        "status": "ok",
        "database": state.storage.connection_status(),
        "scheduler": {
            "running": bool(state.scheduler.running),
            "pendingEmails": len(state.sequences.scheduled_jobs()),
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
