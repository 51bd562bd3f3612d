import asyncio
import dataclasses
from io import BytesIO

import pytest
from docx import Document
from fastapi.testclient import TestClient

from app.api.main import create_app
from app.config import Config, IntakeConfig, MailConfig, ResendConfig, ServerConfig
from app.services.container import build_container
from app.services.email_service import MailDispatcher


class RecordingDispatcher(MailDispatcher):
    """Mail provider stand-in that records every message it is asked to send."""

    def __init__(self):
        self.sent = []
        self.error = None
        self.delay = 0.0
        self.closed = False

    async def send(self, sender, recipient, subject, html, reply_to=None, attachments=()):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "sender": sender,
                "recipient": recipient,
                "subject": subject,
                "html": html,
                "reply_to": reply_to,
                "attachments": list(attachments),
            }
        )

    async def aclose(self):
        self.closed = True


def build_pdf(pages):
    """Build a minimal valid PDF with one line of Helvetica text per page."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for page_id, text in zip(page_ids, pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_offset,
    )
    return bytes(out)


def build_docx(paragraphs, table_rows=None):
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row, values in zip(table.rows, table_rows):
            for cell, value in zip(row.cells, values):
                cell.text = value
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_config():
    def _make(mail=None, **intake_overrides):
        server_overrides = intake_overrides.pop("server", {})
        mail_config = MailConfig(
            provider="resend",
            from_email="careers@example.com",
            to_email="hr@example.com",
            timeout=5.0,
            resend=ResendConfig(api_key="re_test_key"),
        )
        if mail:
            mail_config = dataclasses.replace(mail_config, **mail)
        return Config(
            mail=mail_config,
            intake=IntakeConfig(**intake_overrides),
            server=ServerConfig(**{"rate_limit_enabled": False, **server_overrides}),
        )

    return _make


@pytest.fixture
def config(make_config):
    return make_config()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def make_client(dispatcher):
    clients = []

    def _make(config):
        client = TestClient(create_app(services=build_container(config, dispatcher=dispatcher)))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, config):
    return make_client(config)


@pytest.fixture
def pdf_resume():
    return build_pdf(["Ann Lee Senior Python Engineer"])


@pytest.fixture
def docx_resume():
    return build_docx(["Hello World", "Five years of backend work"])


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_docx():
    return build_docx
