"""Shared fixtures for FunnelMind tests.

Provides:
- fake_db: patches supabase_client with an in-memory fake (persistent backend "up")
- state: AppState wired to in-memory storage, mock email and a stopped scheduler
- client: sync TestClient for the FastAPI app with a no-op lifespan
- sample data factories for leads and assessment answers
"""

import os
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

# Set env vars before any funnelmind imports; load_dotenv never overrides these
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""


# ---------------------------------------------------------------------------
# In-memory fake Supabase
# ---------------------------------------------------------------------------

class FakeQueryResult:
    def __init__(self, data=None, count=None):
        self.data = data or []
        self.count = count


class FakeQueryBuilder:
    """Mimics the supabase-py query builder chain."""

    def __init__(self, store, table_name):
        self._store = store
        self._table = table_name
        self._filters = []
        self._or_terms = []
        self._order_col = None
        self._order_desc = False
        self._limit_val = None
        self._range_start = None
        self._range_end = None
        self._columns = "*"
        self._count_mode = None
        self._upsert_data = None
        self._upsert_conflict = None
        self._update_data = None
        self._insert_data = None

    def select(self, columns="*", count=None):
        self._columns = columns
        self._count_mode = count
        return self

    def insert(self, data):
        self._insert_data = data
        return self

    def upsert(self, data, on_conflict=None):
        self._upsert_data = data
        self._upsert_conflict = on_conflict
        return self

    def update(self, data):
        self._update_data = data
        return self

    def eq(self, col, val):
        self._filters.append(("eq", col, val))
        return self

    def or_(self, expr):
        # Only col.ilike."%needle%" terms are supported
        for term in expr.split(","):
            col, op, pattern = term.split(".", 2)
            if op == "ilike":
                self._or_terms.append((col, pattern.strip('"').strip("%").lower()))
        return self

    def order(self, col, desc=False):
        self._order_col = col
        self._order_desc = desc
        return self

    def limit(self, n):
        self._limit_val = n
        return self

    def range(self, start, end):
        self._range_start = start
        self._range_end = end
        return self

    def _match(self, row):
        for op, col, val in self._filters:
            if op == "eq" and row.get(col) != val:
                return False
        if self._or_terms:
            return any(
                needle in str(row.get(col) or "").lower()
                for col, needle in self._or_terms
            )
        return True

    def execute(self):
        table = self._store[self._table]

        if self._insert_data is not None:
            row = dict(self._insert_data)
            row.setdefault("id", str(uuid.uuid4()))
            table.append(row)
            return FakeQueryResult(data=[dict(row)])

        if self._upsert_data is not None:
            row = dict(self._upsert_data)
            row.setdefault("id", str(uuid.uuid4()))
            if self._upsert_conflict:
                conflict_cols = [c.strip() for c in self._upsert_conflict.split(",")]
                for existing in table:
                    if all(existing.get(c) == row.get(c) for c in conflict_cols):
                        existing.update(row)
                        return FakeQueryResult(data=[dict(existing)])
            table.append(row)
            return FakeQueryResult(data=[dict(row)])

        if self._update_data is not None:
            updated = []
            for row in table:
                if self._match(row):
                    row.update(self._update_data)
                    updated.append(dict(row))
            return FakeQueryResult(data=updated)

        # SELECT
        rows = [dict(r) for r in table if self._match(r)]

        if self._order_col:
            rows.sort(
                key=lambda r: r.get(self._order_col) or "",
                reverse=self._order_desc,
            )

        total = len(rows)

        if self._range_start is not None:
            rows = rows[self._range_start:self._range_end + 1]
        elif self._limit_val is not None:
            rows = rows[:self._limit_val]

        return FakeQueryResult(
            data=rows,
            count=total if self._count_mode else None,
        )


class FakeDB:
    """In-memory store keyed by table name."""

    def __init__(self):
        self.store = defaultdict(list)

    def table(self, name):
        return FakeQueryBuilder(self.store, name)

    def clear(self):
        self.store.clear()


@pytest.fixture
def fake_db():
    """Provides a clean in-memory DB and patches supabase_client so it looks connected."""
    db = FakeDB()

    def fake_table(name):
        return FakeQueryBuilder(db.store, name)

    with patch("funnelmind.supabase_client._table", side_effect=fake_table):
        with patch("funnelmind.supabase_client.get_client", return_value=MagicMock()):
            with patch("funnelmind.supabase_client.is_configured", return_value=True):
                yield db


@pytest.fixture
def storage():
    """FallbackStorage with no Supabase credentials, i.e. the in-memory mirror."""
    from funnelmind.storage import FallbackStorage

    return FallbackStorage()


@pytest.fixture
def state(storage):
    """AppState with in-memory storage, mock email and an unstarted scheduler."""
    from funnelmind.scheduler import build_scheduler
    from funnelmind.services.email_content import EmailRenderer
    from funnelmind.services.email_sender import EmailDispatcher
    from funnelmind.state import build_state

    return build_state(
        storage=storage,
        scheduler=build_scheduler(),
        renderer=EmailRenderer(),
        dispatcher=EmailDispatcher(api_key=""),
    )


@pytest.fixture
def client(state):
    """Sync test client for FastAPI app with in-memory state."""
    from contextlib import asynccontextmanager

    from fastapi.testclient import TestClient

    from funnelmind.app import create_app

    @asynccontextmanager
    async def noop_lifespan(app):
        yield

    app = create_app(state)
    # Scheduler stays stopped; jobs remain inspectable as pending
    app.router.lifespan_context = noop_lifespan

    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------

def make_answers(**overrides):
    defaults = {
        "career_goal": "switch_to_ai",
        "experience": "intermediate",
        "interest": "data_science",
        "background": "software_engineer",
        "context": "landing_page",
    }
    defaults.update(overrides)
    return defaults


def make_lead(**overrides):
    now = datetime.now(timezone.utc).isoformat()
    defaults = {
        "lead_id": f"lead_{uuid.uuid4().hex[:12]}",
        "name": "Test Lead",
        "email": f"lead-{uuid.uuid4().hex[:8]}@example.com",
        "phone": None,
        "assessment_answers": make_answers(),
        "status": "new",
        "source": "funnelmind",
        "created_at": now,
        "timestamp": now,
    }
    defaults.update(overrides)
    return defaults


def make_capture(**overrides):
    """Raw capture input as the lead service receives it."""
    defaults = {
        "name": "Test Lead",
        "email": "capture@example.com",
        "phone": "+91 98765 43210",
        "assessment_answers": make_answers(),
    }
    defaults.update(overrides)
    return defaults
