"""Process-wide application state, built once by the app factory."""

import time
from dataclasses import dataclass, field

from fastapi import Request

from funnelmind.scheduler import build_scheduler
from funnelmind.services.email_content import EmailRenderer
from funnelmind.services.email_sender import EmailDispatcher
from funnelmind.services.recommendations import build_recommender
from funnelmind.services.sequence_engine import SequenceScheduler
from funnelmind.storage import FallbackStorage


@dataclass
class AppState:
    storage: FallbackStorage
    scheduler: object
    renderer: EmailRenderer
    dispatcher: EmailDispatcher
    sequences: SequenceScheduler
    started_at: float = field(default_factory=time.monotonic)


def build_state(storage: FallbackStorage | None = None, scheduler=None,
                renderer: EmailRenderer | None = None,
                dispatcher: EmailDispatcher | None = None) -> AppState:
    """Wire the default collaborators; any of them can be injected."""
    storage = storage or FallbackStorage()
    scheduler = scheduler or build_scheduler()
    renderer = renderer or EmailRenderer(recommender=build_recommender())
    dispatcher = dispatcher or EmailDispatcher()
    sequences = SequenceScheduler(scheduler, renderer, dispatcher)
    return AppState(
        storage=storage,
        scheduler=scheduler,
        renderer=renderer,
        dispatcher=dispatcher,
        sequences=sequences,
    )


def get_state(request: Request) -> AppState:
    return request.app.state.funnel
