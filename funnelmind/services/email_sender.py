"""Email dispatcher — wrap rendered content, send via Resend, mock when unavailable."""

import asyncio
import logging
import re
import time
import uuid
from datetime import datetime, timezone

from jinja2 import Environment, FileSystemLoader, select_autoescape

from funnelmind.config import (
    CTA_LINK, RESEND_API_KEY, RESEND_FROM_EMAIL, RESEND_FROM_NAME, WEB_TEMPLATES_DIR,
)

logger = logging.getLogger(__name__)

_env = Environment(
    loader=FileSystemLoader(str(WEB_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)

_TAG_RE = re.compile(r"<[^>]*>")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def render_html(message: dict, cta_link: str = CTA_LINK) -> str:
    """Full HTML document for a rendered email."""
    return _env.get_template("emails/layout.html").render(
        subject=message.get("subject", ""),
        name=message.get("name"),
        content=message.get("content", ""),
        cta=message.get("cta"),
        cta_link=cta_link,
    )


def plain_text(content: str) -> str:
    """Plain-text alternative of the rendered content."""
    text = _BR_RE.sub("\n", content or "")
    text = _TAG_RE.sub("", text)
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def _resend_send(api_key: str, payload: dict) -> dict:
    """Send via the Resend SDK. Blocking; called through asyncio.to_thread."""
    import resend

    resend.api_key = api_key
    return resend.Emails.send(payload)


class EmailDispatcher:
    """Sends one email per call and always returns the same result shape."""

    provider = "resend"

    def __init__(self, api_key: str = RESEND_API_KEY, from_email: str = RESEND_FROM_EMAIL,
                 from_name: str = RESEND_FROM_NAME, transport=None):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self._transport = transport or _resend_send

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def status(self) -> dict:
        return {
            "service": "Resend",
            "configured": self.configured,
            "provider": self.provider if self.configured else "mock",
        }

    async def send(self, message: dict) -> dict:
        """Send ``{to, name, subject, content, type, cta?}``.

        Missing credentials or a transport error produce a mock result, so the
        caller never has to branch on delivery.
        """
        if not self.configured:
            logger.info("Resend not configured - using mock email service")
            return self._mock_result(message)

        payload = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [message["to"]],
            "subject": message.get("subject", ""),
            "html": render_html(message),
            "text": plain_text(message.get("content", "")),
            "tags": [{"name": "sequence_stage", "value": message.get("type") or "manual"}],
        }

        try:
            result = await asyncio.to_thread(self._transport, self.api_key, payload)
        except Exception as e:
            logger.error("Resend send to %s failed, falling back to mock: %s", message.get("to"), e)
            return self._mock_result(message)

        message_id = (result or {}).get("id") or ""
        logger.info("Email sent to %s (%s), id=%s", message.get("to"), message.get("type"), message_id)
        return {
            "success": True,
            "provider": self.provider,
            "message_id": message_id,
            "to": message.get("to"),
            "subject": message.get("subject", ""),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def _mock_result(self, message: dict) -> dict:
        mock_id = f"mock_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        logger.info(
            "MOCK EMAIL to=%s subject=%r content=%r",
            message.get("to"), message.get("subject"), (message.get("content") or "")[:100],
        )
        return {
            "success": True,
            "provider": "mock",
            "mock": True,
            "message_id": mock_id,
            "to": message.get("to"),
            "subject": message.get("subject", ""),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
