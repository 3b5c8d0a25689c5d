"""FunnelMind configuration — loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Root of the repo
REPO_ROOT = Path(__file__).resolve().parent.parent

# Static email template store (stage key -> subject/template)
EMAIL_TEMPLATES_PATH = Path(
    os.environ.get(
        "EMAIL_TEMPLATES_PATH",
        str(Path(__file__).resolve().parent / "data" / "email_templates.yaml"),
    )
)

# Jinja2 templates for the admin page and the email layout
WEB_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Supabase (persistent backend)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")
LEADS_TABLE = os.environ.get("LEADS_TABLE", "fm_leads")
ANALYTICS_TABLE = os.environ.get("ANALYTICS_TABLE", "fm_analytics")

# Seconds a cached connectivity result is trusted before the persistent backend is pinged again
CONNECTION_RECHECK_SECONDS = int(os.environ.get("CONNECTION_RECHECK_SECONDS", "30"))

# Resend (email sending)
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
RESEND_FROM_EMAIL = os.environ.get("RESEND_FROM_EMAIL", "careers@funnelmind.dev")
RESEND_FROM_NAME = os.environ.get("RESEND_FROM_NAME", "Scaler AI Career Coach")

# Anthropic (optional AI-backed personalization)
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
ANTHROPIC_MODEL = os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")

# Email personalization
CTA_LINK = os.environ.get("CTA_LINK", "https://calendly.com/scaler-ai/consultation")
ADVISOR_NAME = os.environ.get("ADVISOR_NAME", "Sarah Chen")

# Funnel identifier stamped on every captured lead
LEAD_SOURCE = os.environ.get("LEAD_SOURCE", "funnelmind")

# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
