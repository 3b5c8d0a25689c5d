"""Tests for the email dispatcher — Resend path, mock path, HTML layout."""

import asyncio
from unittest.mock import MagicMock

MESSAGE = {
    "to": "priya@example.com",
    "name": "Priya",
    "subject": "Welcome!",
    "content": "Hi <strong>Priya</strong>,<br><br>Your roadmap.",
    "cta": "Book Your Free Consultation",
    "type": "welcome",
}


class TestMockMode:
    """No API key: mock result, zero transport calls."""

    def test_unconfigured_returns_mock(self):
        from funnelmind.services.email_sender import EmailDispatcher

        transport = MagicMock()
        dispatcher = EmailDispatcher(api_key="", transport=transport)
        result = asyncio.run(dispatcher.send(MESSAGE))

        transport.assert_not_called()
        assert result["success"] is True
        assert result["provider"] == "mock"
        assert result["mock"] is True
        assert result["message_id"].startswith("mock_")
        assert result["to"] == "priya@example.com"
        assert result["subject"] == "Welcome!"

    def test_status(self):
        from funnelmind.services.email_sender import EmailDispatcher

        assert EmailDispatcher(api_key="").status()["provider"] == "mock"
        assert EmailDispatcher(api_key="re_123").status() == {
            "service": "Resend", "configured": True, "provider": "resend",
        }


class TestResendMode:
    """Configured: exactly one transport call, mock on failure."""

    def test_success(self):
        from funnelmind.services.email_sender import EmailDispatcher

        transport = MagicMock(return_value={"id": "re_abc"})
        dispatcher = EmailDispatcher(
            api_key="re_123", from_email="coach@example.com", from_name="Coach",
            transport=transport,
        )
        result = asyncio.run(dispatcher.send(MESSAGE))

        assert result["success"] is True
        assert result["provider"] == "resend"
        assert result["message_id"] == "re_abc"
        assert "mock" not in result

        transport.assert_called_once()
        api_key, payload = transport.call_args[0]
        assert api_key == "re_123"
        assert payload["from"] == "Coach <coach@example.com>"
        assert payload["to"] == ["priya@example.com"]
        assert "<strong>Priya</strong>" in payload["html"]
        assert "<strong>" not in payload["text"]
        assert payload["tags"] == [{"name": "sequence_stage", "value": "welcome"}]

    def test_transport_error_returns_mock(self):
        from funnelmind.services.email_sender import EmailDispatcher

        transport = MagicMock(side_effect=RuntimeError("rate limited"))
        result = asyncio.run(EmailDispatcher(api_key="re_123", transport=transport).send(MESSAGE))

        assert transport.call_count == 1
        assert result["success"] is True
        assert result["provider"] == "mock"
        assert result["mock"] is True


class TestLayout:

    def test_html_wraps_content_and_cta(self):
        from funnelmind.services.email_sender import render_html

        html = render_html(MESSAGE, cta_link="https://cal.example.com/book")
        assert "<title>Welcome!</title>" in html
        assert "Hi <strong>Priya</strong>" in html
        assert 'href="https://cal.example.com/book"' in html
        assert "Book Your Free Consultation" in html

    def test_html_escapes_name(self):
        from funnelmind.services.email_sender import render_html

        html = render_html(dict(MESSAGE, name="<b>x</b>"))
        assert "Hi &lt;b&gt;x&lt;/b&gt;!" in html

    def test_plain_text(self):
        from funnelmind.services.email_sender import plain_text

        assert plain_text("Hi <strong>Priya</strong>,<br><br><br>Bye") == "Hi Priya,\n\nBye"
