"""FastAPI application factory."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from funnelmind.routers import admin, ai, analytics, email, health, leads
from funnelmind.scheduler import register_connection_watch
from funnelmind.services import ai_content
from funnelmind.state import AppState, build_state

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    state: AppState = app.state.funnel

    database = await asyncio.to_thread(state.storage.connection_status)
    if database["connected"]:
        logger.info("Storage: Supabase connected")
    else:
        logger.warning("Storage: in-memory fallback (%s)", database.get("error", database["state"]))
    logger.info("Email: %s", "Resend configured" if state.dispatcher.configured else "mock mode")
    logger.info("AI: %s", "Anthropic configured" if ai_content.is_configured() else "fallback content only")

    try:
        register_connection_watch(state.scheduler, state.storage)
        state.scheduler.start()
        logger.info("Scheduler started — follow-up emails and connection watch")
    except Exception as e:
        logger.warning("Scheduler failed to start: %s", e)

    yield

    if state.scheduler.running:
        state.scheduler.shutdown(wait=False)


def create_app(state: AppState | None = None) -> FastAPI:
    app = FastAPI(
        title="FunnelMind",
        description="Lead capture, assessment recommendations and email nurture sequences.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.funnel = state or build_state()

    for r in [leads, analytics, email, ai, health]:
        app.include_router(r.router)

    # Admin dashboard, hidden from API docs
    app.include_router(admin.router, include_in_schema=False)

    return app
