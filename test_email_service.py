import asyncio
import base64
import json

import aiosmtplib
import httpx
import pytest

from app.config import SMTPConfig
from app.schemas.notification import MailAttachment, Notification
from app.services.email_service import (
    EmailService,
    ResendDispatcher,
    SmtpDispatcher,
    create_dispatcher,
)
from app.utils.exceptions import DispatchError

RESUME = MailAttachment(filename="ann.pdf", content=b"%PDF-1.4 resume", content_type="application/pdf")


@pytest.fixture
def smtp_config(make_config):
    return make_config(
        mail={
            "provider": "smtp",
            "smtp": SMTPConfig(
                host="smtp.example.com", port=465, secure=True, user="mailer", password="secret"
            ),
        }
    )


def test_deliver_uses_configured_sender_and_recipient(config, dispatcher):
    notification = Notification(subject="New Job Application", html="<p>hi</p>", reply_to="ann@x.com")

    asyncio.run(EmailService(config, dispatcher).deliver(notification))

    assert len(dispatcher.sent) == 1
    sent = dispatcher.sent[0]
    assert sent["sender"] == "careers@example.com"
    assert sent["recipient"] == "hr@example.com"
    assert sent["reply_to"] == "ann@x.com"
    assert sent["subject"] == "New Job Application"


def test_deliver_timeout_is_dispatch_error(make_config, dispatcher):
    config = make_config(mail={"timeout": 0.05})
    dispatcher.delay = 1.0

    with pytest.raises(DispatchError, match="timed out"):
        asyncio.run(EmailService(config, dispatcher).deliver(Notification(subject="s", html="h")))

    assert dispatcher.sent == []


def test_deliver_wraps_unexpected_errors(config, dispatcher):
    dispatcher.error = RuntimeError("connection reset")

    with pytest.raises(DispatchError, match="connection reset"):
        asyncio.run(EmailService(config, dispatcher).deliver(Notification(subject="s", html="h")))


def test_create_dispatcher_follows_provider(config, smtp_config):
    assert isinstance(create_dispatcher(smtp_config), SmtpDispatcher)
    assert isinstance(create_dispatcher(config), ResendDispatcher)


def test_smtp_message_contains_html_and_attachment(smtp_config):
    message = SmtpDispatcher(smtp_config).build_message(
        sender="careers@example.com",
        recipient="hr@example.com",
        subject="📩 New Contact Message from Bob",
        html="<p>Hello</p>",
        reply_to="bob@x.com",
        attachments=[RESUME],
    )

    assert str(message["Subject"]) == "📩 New Contact Message from Bob"
    assert message["To"] == "hr@example.com"
    assert message["Reply-To"] == "bob@x.com"
    html_part, attachment_part = message.get_payload()
    assert html_part.get_content_type() == "text/html"
    assert "<p>Hello</p>" in html_part.get_payload(decode=True).decode("utf-8")
    assert attachment_part.get_content_type() == "application/pdf"
    assert attachment_part.get_filename() == "ann.pdf"
    assert attachment_part.get_payload(decode=True) == b"%PDF-1.4 resume"


def test_smtp_send_uses_tls_settings(smtp_config, monkeypatch):
    calls = []

    async def fake_send(message, **kwargs):
        calls.append((message, kwargs))

    monkeypatch.setattr(aiosmtplib, "send", fake_send)

    asyncio.run(
        SmtpDispatcher(smtp_config).send("careers@example.com", "hr@example.com", "s", "<p>h</p>")
    )

    assert len(calls) == 1
    _, kwargs = calls[0]
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 465
    assert kwargs["use_tls"] is True
    assert kwargs["start_tls"] is False
    assert kwargs["username"] == "mailer"
    assert kwargs["password"] == "secret"


def test_smtp_failure_is_dispatch_error(smtp_config, monkeypatch):
    async def failing_send(message, **kwargs):
        raise aiosmtplib.SMTPException("authentication failed")

    monkeypatch.setattr(aiosmtplib, "send", failing_send)

    with pytest.raises(DispatchError, match="authentication failed"):
        asyncio.run(
            SmtpDispatcher(smtp_config).send("careers@example.com", "hr@example.com", "s", "h")
        )


def _send_with_transport(config, handler, **kwargs):
    async def run():
        dispatcher = ResendDispatcher(config, transport=httpx.MockTransport(handler))
        try:
            await dispatcher.send("careers@example.com", "hr@example.com", "s", "<p>h</p>", **kwargs)
        finally:
            await dispatcher.aclose()

    asyncio.run(run())


def test_resend_request_payload(config):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    _send_with_transport(config, handler, reply_to="ann@x.com", attachments=[RESUME])

    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == "https://api.resend.com/emails"
    assert request.headers["authorization"] == "Bearer re_test_key"
    payload = json.loads(request.content)
    assert payload["from"] == "careers@example.com"
    assert payload["to"] == ["hr@example.com"]
    assert payload["reply_to"] == "ann@x.com"
    assert payload["attachments"] == [
        {"filename": "ann.pdf", "content": base64.b64encode(b"%PDF-1.4 resume").decode("ascii")}
    ]


def test_resend_error_status_is_dispatch_error(config):
    def handler(request):
        return httpx.Response(422, json={"message": "Invalid from address"})

    with pytest.raises(DispatchError, match="422"):
        _send_with_transport(config, handler)


def test_resend_transport_error_is_dispatch_error(config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DispatchError, match="connection refused"):
        _send_with_transport(config, handler)
