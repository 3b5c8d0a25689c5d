"""Dashboard aggregation over whichever storage backend is active."""

import time
from datetime import datetime, timezone

from funnelmind.schemas import analytics_to_json, recent_lead_to_json


def _percent(part: int, whole: int) -> str:
    return f"{part / whole * 100:.2f}" if whole else "0.00"


def funnel_data(analytics: dict) -> dict:
    """Assessment funnel: started -> completed -> converted."""
    started = analytics.get("assessment_starts", 0)
    return {
        "started": started,
        "completed": analytics.get("assessment_completions", 0),
        "converted": analytics.get("lead_captures", 0),
        "completionRate": _percent(analytics.get("assessment_completions", 0), started),
        "conversionRate": f"{float(analytics.get('conversion_rate') or 0):.2f}",
    }


def dashboard_stats(storage) -> dict:
    """Return the payload for GET /api/analytics."""
    analytics = storage.get_analytics_snapshot()
    return {
        **analytics_to_json(analytics),
        "totalLeads": storage.count_leads(),
        "recentLeads": [recent_lead_to_json(lead) for lead in storage.recent_leads(5)],
        "leadsBySource": storage.leads_by_source(),
        "assessmentFunnelData": funnel_data(analytics),
        "storage": storage.storage_label(),
    }


def health_report(storage, dispatcher, started_at: float) -> dict:
    """Return the payload for GET /health. Raises on storage failure."""
    database = storage.connection_status()
    analytics = storage.get_analytics_snapshot()
    return {
        "status": "healthy" if database["connected"] else "healthy-fallback",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - started_at, 3),
        "database": database,
        "storage": "persistent" if database["connected"] else "in-memory",
        "totalLeads": storage.count_leads(),
        "analytics": analytics_to_json(analytics),
        "email": dispatcher.status(),
    }
