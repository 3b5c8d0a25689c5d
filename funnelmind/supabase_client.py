"""Supabase connection and query helpers for the fm_* tables."""

import re
import threading
from datetime import datetime, timezone

from supabase import Client, create_client

from funnelmind.config import (
    ANALYTICS_TABLE, LEADS_TABLE, SUPABASE_SERVICE_KEY, SUPABASE_URL,
)

ANALYTICS_ROW_ID = "global_analytics"

# Postgres unique_violation, surfaced by PostgREST as APIError.code
UNIQUE_VIOLATION = "23505"

_client: Client | None = None
_client_lock = threading.Lock()


def is_configured() -> bool:
    """True when Supabase credentials are present."""
    return bool(SUPABASE_URL and SUPABASE_SERVICE_KEY)


def get_client() -> Client:
    """Return the Supabase client singleton (thread-safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                if not is_configured():
                    raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
                _client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _client


def is_unique_violation(exc: Exception) -> bool:
    """True when a PostgREST error is a unique-index violation."""
    return str(getattr(exc, "code", "")) == UNIQUE_VIOLATION


# ---------------------------------------------------------------------------
# Generic helpers
# ---------------------------------------------------------------------------

def _table(name: str):
    """Return a table query builder."""
    return get_client().table(name)


def insert(table: str, data: dict) -> dict:
    """Insert a row and return it."""
    result = _table(table).insert(data).execute()
    return result.data[0] if result.data else {}


def upsert(table: str, data: dict, on_conflict: str = "") -> dict:
    """Upsert a row and return it."""
    if on_conflict:
        q = _table(table).upsert(data, on_conflict=on_conflict)
    else:
        q = _table(table).upsert(data)
    result = q.execute()
    return result.data[0] if result.data else {}


def update(table: str, data: dict, match: dict) -> dict:
    """Update rows matching conditions."""
    q = _table(table).update(data)
    for k, v in match.items():
        q = q.eq(k, v)
    result = q.execute()
    return result.data[0] if result.data else {}


def select(table: str, columns: str = "*", match: dict | None = None,
           order: str | None = None, order_desc: bool = False,
           limit: int | None = None) -> list[dict]:
    """Select rows with optional filtering and ordering."""
    q = _table(table).select(columns)
    if match:
        for k, v in match.items():
            q = q.eq(k, v)
    if order:
        q = q.order(order, desc=order_desc)
    if limit:
        q = q.limit(limit)
    result = q.execute()
    return result.data or []


def select_one(table: str, columns: str = "*", match: dict | None = None) -> dict | None:
    """Select a single row."""
    rows = select(table, columns, match, limit=1)
    return rows[0] if rows else None


def count(table: str, match: dict | None = None) -> int:
    """Count rows matching conditions."""
    q = _table(table).select("*", count="exact")
    if match:
        for k, v in match.items():
            q = q.eq(k, v)
    result = q.execute()
    return result.count or 0


def ping() -> bool:
    """Cheap round-trip used as the connectivity probe."""
    select(ANALYTICS_TABLE, columns="id", limit=1)
    return True


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------

def insert_lead(data: dict) -> dict:
    """Insert a lead row."""
    return insert(LEADS_TABLE, data)


def get_lead(lead_id: str) -> dict | None:
    """Get a single lead by its public lead_id."""
    return select_one(LEADS_TABLE, match={"lead_id": lead_id})


def get_lead_by_email(email: str) -> dict | None:
    """Get a single lead by (normalized) email."""
    return select_one(LEADS_TABLE, match={"email": email})


def search_leads(search: str | None = None, limit: int = 100,
                 offset: int = 0) -> tuple[list[dict], int]:
    """Newest-first page of leads plus the total matching count."""
    q = _table(LEADS_TABLE).select("*", count="exact")
    if search:
        # Quoted values: dots and @ match literally
        safe = re.sub(r'[%,()"\\]', "", search)[:100]
        q = q.or_(f'name.ilike."%{safe}%",email.ilike."%{safe}%"')
    q = q.order("created_at", desc=True).range(offset, offset + limit - 1)
    result = q.execute()
    return result.data or [], result.count or 0


def recent_leads(limit: int = 5) -> list[dict]:
    """Most recently created leads."""
    return select(LEADS_TABLE, order="created_at", order_desc=True, limit=limit)


def count_leads() -> int:
    """Total number of leads."""
    return count(LEADS_TABLE)


def lead_contexts() -> list[dict]:
    """Assessment answers of every lead (for grouping by source)."""
    return select(LEADS_TABLE, columns="assessment_answers")


def update_lead(lead_id: str, data: dict) -> dict:
    """Update a lead by lead_id."""
    data["updated_at"] = datetime.now(timezone.utc).isoformat()
    return update(LEADS_TABLE, data, {"lead_id": lead_id})


# ---------------------------------------------------------------------------
# Analytics (singleton row)
# ---------------------------------------------------------------------------

def get_analytics_row() -> dict | None:
    """Get the global analytics row, if it exists."""
    return select_one(ANALYTICS_TABLE, match={"id": ANALYTICS_ROW_ID})


def save_analytics_row(data: dict) -> dict:
    """Upsert the global analytics row."""
    row = dict(data, id=ANALYTICS_ROW_ID)
    return upsert(ANALYTICS_TABLE, row, on_conflict="id")
