"""Lead and analytics storage.

Two interchangeable backends sit behind ``FallbackStorage``:

- ``SupabaseLeadStore`` persists to the fm_leads / fm_analytics tables.
- ``MemoryLeadStore`` is an in-process mirror with the same record shape.

Callers only ever talk to ``FallbackStorage``. While the persistent backend
reports a live connection every operation goes there; otherwise (or when a
persistent call blows up) the operation is served by the mirror. Mirror data
is lost when the process exits.
"""

import logging
import threading
import time
import uuid
from datetime import datetime, timezone

from funnelmind import supabase_client as db
from funnelmind.config import CONNECTION_RECHECK_SECONDS, LEAD_SOURCE

logger = logging.getLogger(__name__)

LEAD_STATUSES = ["new", "contacted", "qualified", "converted", "inactive"]

ANALYTICS_COUNTERS = (
    "page_views",
    "assessment_starts",
    "assessment_completions",
    "lead_captures",
)

# Counters whose change triggers a conversion_rate recompute
_RATE_TRIGGERS = {"lead_captures", "assessment_completions"}


class DuplicateLeadError(Exception):
    """A lead with this email already exists in the active backend."""

    def __init__(self, email: str):
        super().__init__(f"Email already exists: {email}")
        self.email = email


class LeadNotFoundError(LookupError):
    """No lead with the given lead_id."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def generate_lead_id() -> str:
    """lead_<epoch ms>_<9 random chars>."""
    return f"lead_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def build_lead(data: dict, source: str = LEAD_SOURCE) -> dict:
    """Build a new lead record from capture input."""
    now = _now_iso()
    return {
        "lead_id": generate_lead_id(),
        "name": (data.get("name") or "").strip(),
        "email": normalize_email(data.get("email", "")),
        "phone": (data.get("phone") or "").strip() or None,
        "assessment_answers": dict(data.get("assessment_answers") or {}),
        "status": "new",
        "source": source,
        "created_at": now,
        "timestamp": now,
    }


def empty_analytics() -> dict:
    analytics = {field: 0 for field in ANALYTICS_COUNTERS}
    analytics["conversion_rate"] = 0
    analytics["last_updated"] = _now_iso()
    return analytics


def apply_increment(analytics: dict, field: str) -> dict:
    """Bump one counter in place and recompute the derived rate."""
    if field not in ANALYTICS_COUNTERS:
        raise ValueError(f"Unknown analytics counter: {field}")
    analytics[field] = int(analytics.get(field) or 0) + 1
    starts = int(analytics.get("assessment_starts") or 0)
    if field in _RATE_TRIGGERS and starts > 0:
        analytics["conversion_rate"] = int(analytics.get("lead_captures") or 0) / starts * 100
    analytics["last_updated"] = _now_iso()
    return analytics


def lead_context(lead: dict) -> str:
    """Capture context tag used to group leads by source."""
    answers = lead.get("assessment_answers") or {}
    return answers.get("context") or "direct"


def _analytics_view(row: dict) -> dict:
    view = {field: int(row.get(field) or 0) for field in ANALYTICS_COUNTERS}
    view["conversion_rate"] = float(row.get("conversion_rate") or 0)
    view["last_updated"] = row.get("last_updated")
    return view


# ---------------------------------------------------------------------------
# In-memory mirror
# ---------------------------------------------------------------------------

class MemoryLeadStore:
    """Process-local lead list and analytics counters."""

    backend = "memory"

    def __init__(self):
        self.leads: list[dict] = []
        self.analytics: dict = empty_analytics()
        self._lock = threading.Lock()

    def connection_status(self) -> dict:
        return {"connected": True, "state": "in-memory"}

    def save_lead(self, lead: dict) -> dict:
        with self._lock:
            email = normalize_email(lead.get("email", ""))
            if any(existing["email"] == email for existing in self.leads):
                raise DuplicateLeadError(email)
            record = dict(lead, email=email)
            self.leads.append(record)
            return dict(record)

    def increment_analytics(self, field: str) -> None:
        with self._lock:
            apply_increment(self.analytics, field)

    def get_analytics_snapshot(self) -> dict:
        with self._lock:
            return _analytics_view(self.analytics)

    def _newest_first(self) -> list[dict]:
        leads = list(reversed(self.leads))
        leads.sort(key=lambda lead: lead.get("created_at") or "", reverse=True)
        return leads

    def list_leads(self, search: str | None = None, page: int = 1,
                   page_size: int = 100) -> tuple[list[dict], int]:
        with self._lock:
            leads = self._newest_first()
        if search:
            needle = search.lower()
            leads = [
                lead for lead in leads
                if needle in (lead.get("name") or "").lower()
                or needle in (lead.get("email") or "").lower()
            ]
        start = (page - 1) * page_size
        return [dict(lead) for lead in leads[start:start + page_size]], len(leads)

    def count_leads(self) -> int:
        return len(self.leads)

    def recent_leads(self, limit: int = 5) -> list[dict]:
        with self._lock:
            return [dict(lead) for lead in self._newest_first()[:limit]]

    def leads_by_source(self) -> dict[str, int]:
        sources: dict[str, int] = {}
        with self._lock:
            for lead in self.leads:
                key = lead_context(lead)
                sources[key] = sources.get(key, 0) + 1
        return sources

    def update_lead_status(self, lead_id: str, status: str) -> dict:
        with self._lock:
            for lead in self.leads:
                if lead["lead_id"] == lead_id:
                    lead["status"] = status
                    lead["updated_at"] = _now_iso()
                    return dict(lead)
        raise LeadNotFoundError(lead_id)


# ---------------------------------------------------------------------------
# Persistent backend
# ---------------------------------------------------------------------------

class SupabaseLeadStore:
    """fm_leads / fm_analytics tables via supabase-py."""

    backend = "supabase"

    def __init__(self, recheck_seconds: int = CONNECTION_RECHECK_SECONDS,
                 clock=time.monotonic):
        self.recheck_seconds = recheck_seconds
        self._clock = clock
        self._connected: bool | None = None
        self._checked_at = 0.0
        self._last_error = ""

    def connection_status(self) -> dict:
        if not db.is_configured():
            return {"connected": False, "state": "unconfigured"}
        stale = self._clock() - self._checked_at >= self.recheck_seconds
        if self._connected is None or stale:
            self._probe()
        status = {
            "connected": bool(self._connected),
            "state": "connected" if self._connected else "disconnected",
        }
        if not self._connected and self._last_error:
            status["error"] = self._last_error
        return status

    def _probe(self) -> None:
        was_connected = self._connected
        try:
            db.ping()
        except Exception as e:
            self._connected = False
            self._last_error = str(e)
            if was_connected is not False:
                logger.warning("Supabase unreachable, using in-memory storage: %s", e)
        else:
            self._connected = True
            self._last_error = ""
            if was_connected is False:
                logger.info("Supabase connection restored")
        self._checked_at = self._clock()

    def mark_unavailable(self, error: Exception) -> None:
        self._connected = False
        self._last_error = str(error)
        self._checked_at = self._clock()

    def save_lead(self, lead: dict) -> dict:
        email = normalize_email(lead.get("email", ""))
        if db.get_lead_by_email(email):
            raise DuplicateLeadError(email)
        try:
            return db.insert_lead(dict(lead, email=email))
        except Exception as e:
            if db.is_unique_violation(e):
                raise DuplicateLeadError(email) from e
            raise

    def get_analytics_snapshot(self) -> dict:
        row = db.get_analytics_row()
        if not row:
            row = db.save_analytics_row(empty_analytics())
        return _analytics_view(row)

    def increment_analytics(self, field: str) -> None:
        analytics = self.get_analytics_snapshot()
        apply_increment(analytics, field)
        db.save_analytics_row(analytics)

    def list_leads(self, search: str | None = None, page: int = 1,
                   page_size: int = 100) -> tuple[list[dict], int]:
        return db.search_leads(search, limit=page_size, offset=(page - 1) * page_size)

    def count_leads(self) -> int:
        return db.count_leads()

    def recent_leads(self, limit: int = 5) -> list[dict]:
        return db.recent_leads(limit)

    def leads_by_source(self) -> dict[str, int]:
        sources: dict[str, int] = {}
        for lead in db.lead_contexts():
            key = lead_context(lead)
            sources[key] = sources.get(key, 0) + 1
        return sources

    def update_lead_status(self, lead_id: str, status: str) -> dict:
        if not db.get_lead(lead_id):
            raise LeadNotFoundError(lead_id)
        return db.update_lead(lead_id, {"status": status})


# ---------------------------------------------------------------------------
# Routing facade
# ---------------------------------------------------------------------------

_DOMAIN_ERRORS = (DuplicateLeadError, LeadNotFoundError)


class FallbackStorage:
    """Routes each operation to Supabase when connected, else to the mirror."""

    def __init__(self, persistent: SupabaseLeadStore | None = None,
                 memory: MemoryLeadStore | None = None):
        self.persistent = persistent or SupabaseLeadStore()
        self.memory = memory or MemoryLeadStore()

    def connection_status(self) -> dict:
        status = dict(self.persistent.connection_status())
        active = self.persistent if status["connected"] else self.memory
        status["backend"] = active.backend
        return status

    def storage_label(self) -> str:
        return "persistent" if self.connection_status()["connected"] else "in-memory"

    def _call(self, operation: str, *args):
        if self.persistent.connection_status()["connected"]:
            try:
                return getattr(self.persistent, operation)(*args)
            except _DOMAIN_ERRORS:
                raise
            except Exception as e:
                logger.exception("Persistent %s failed, falling back to memory", operation)
                self.persistent.mark_unavailable(e)
        return getattr(self.memory, operation)(*args)

    def save_lead(self, lead: dict) -> dict:
        return self._call("save_lead", lead)

    def increment_analytics(self, field: str) -> None:
        if field not in ANALYTICS_COUNTERS:
            raise ValueError(f"Unknown analytics counter: {field}")
        self._call("increment_analytics", field)

    def get_analytics_snapshot(self) -> dict:
        return self._call("get_analytics_snapshot")

    def list_leads(self, search: str | None = None, page: int = 1,
                   page_size: int = 100) -> tuple[list[dict], int]:
        return self._call("list_leads", search, page, page_size)

    def count_leads(self) -> int:
        return self._call("count_leads")

    def recent_leads(self, limit: int = 5) -> list[dict]:
        return self._call("recent_leads", limit)

    def leads_by_source(self) -> dict[str, int]:
        return self._call("leads_by_source")

    def update_lead_status(self, lead_id: str, status: str) -> dict:
        if status not in LEAD_STATUSES:
            raise ValueError(f"Unknown lead status: {status}")
        return self._call("update_lead_status", lead_id, status)
