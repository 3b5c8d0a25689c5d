#!/usr/bin/env python3
"""FunnelMind — lead funnel API and email sequences.

Launch: python3 run_server.py
Serves at http://0.0.0.0:3000 (or PORT env var)
"""

import logging

import uvicorn

from funnelmind.config import (
    ANTHROPIC_API_KEY, ENVIRONMENT, HOST, LOG_LEVEL, PORT, RESEND_API_KEY, SUPABASE_URL,
)


def main():
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("  FunnelMind — Lead Funnel Server")
    print("=" * 60)

    if not SUPABASE_URL:
        print("\n  WARNING: SUPABASE_URL not set. Leads will be kept in memory only.")
        print("    Set SUPABASE_URL, SUPABASE_SERVICE_KEY for persistent storage.\n")
    if not RESEND_API_KEY:
        print("  NOTE: RESEND_API_KEY not set. Emails will be logged, not sent.")
    if not ANTHROPIC_API_KEY:
        print("  NOTE: ANTHROPIC_API_KEY not set. AI content uses fallback copy.")

    url = f"http://{HOST}:{PORT}"
    print(f"\n  Environment: {ENVIRONMENT}")
    print(f"  API:         {url}/api/leads")
    print(f"  Admin:       {url}/admin")
    print(f"  Health:      {url}/health")
    print("  Press Ctrl+C to stop\n")

    from funnelmind.app import create_app
    app = create_app()
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
