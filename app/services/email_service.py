"""
Email Service

Sends notification emails through the configured mail provider: an SMTP
relay (aiosmtplib) or a transactional email HTTP API (httpx). One delivery
attempt per request, bounded by the mail timeout; every failure surfaces
as DispatchError.
"""

import asyncio
import base64
from abc import ABC, abstractmethod
from email import encoders
from email.header import Header
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Sequence

import aiosmtplib
import httpx

from app.config import Config
from app.schemas.notification import MailAttachment, Notification
from app.utils.exceptions import DispatchError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class MailDispatcher(ABC):
    """Mail provider interface"""

    @abstractmethod
    async def send(
        self,
        sender: str,
        recipient: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        attachments: Sequence[MailAttachment] = (),
    ) -> None:
        """Send one message. Raises DispatchError on failure."""

    async def aclose(self) -> None:
        """Release provider resources at shutdown."""


class SmtpDispatcher(MailDispatcher):
    """Sends mail through an SMTP relay"""

    def __init__(self, config: Config):
        self.config = config

    def build_message(
        self,
        sender: str,
        recipient: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        attachments: Sequence[MailAttachment] = (),
    ) -> MIMEMultipart:
        message = MIMEMultipart("mixed")
        message["Subject"] = Header(subject, "utf-8")
        message["From"] = sender
        message["To"] = recipient
        if reply_to:
            message["Reply-To"] = reply_to

        message.attach(MIMEText(html, "html", "utf-8"))

        for attachment in attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            part = MIMEBase(maintype or "application", subtype or "octet-stream")
            part.set_payload(attachment.content)
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
            message.attach(part)

        return message

    async def send(
        self,
        sender: str,
        recipient: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        attachments: Sequence[MailAttachment] = (),
    ) -> None:
        message = self.build_message(sender, recipient, subject, html, reply_to, attachments)

        smtp = self.config.mail.smtp
        # SMTP_SECURE=true (or port 465) means direct TLS, otherwise STARTTLS
        try:
            await aiosmtplib.send(
                message,
                hostname=smtp.host,
                port=smtp.port,
                use_tls=smtp.secure,
                start_tls=not smtp.secure,
                username=smtp.user,
                password=smtp.password,
                timeout=self.config.mail.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise DispatchError(f"SMTP delivery failed: {e}") from e


class ResendDispatcher(MailDispatcher):
    """Sends mail through the Resend transactional email API"""

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.client = httpx.AsyncClient(
            base_url=config.mail.resend.api_url,
            headers={"Authorization": f"Bearer {config.mail.resend.api_key}"},
            timeout=config.mail.timeout,
            transport=transport,
        )

    def build_payload(
        self,
        sender: str,
        recipient: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        attachments: Sequence[MailAttachment] = (),
    ) -> dict:
        payload = {
            "from": sender,
            "to": [recipient],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to
        if attachments:
            payload["attachments"] = [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                }
                for a in attachments
            ]
        return payload

    async def send(
        self,
        sender: str,
        recipient: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        attachments: Sequence[MailAttachment] = (),
    ) -> None:
        payload = self.build_payload(sender, recipient, subject, html, reply_to, attachments)
        try:
            response = await self.client.post("/emails", json=payload)
        except httpx.HTTPError as e:
            raise DispatchError(f"Email API request failed: {e}") from e

        if response.status_code >= 400:
            raise DispatchError(
                f"Email API returned {response.status_code}: {response.text[:200]}"
            )

    async def aclose(self) -> None:
        await self.client.aclose()


def create_dispatcher(config: Config) -> MailDispatcher:
    """Build the dispatcher for the configured provider."""
    if config.mail.provider == "smtp":
        return SmtpDispatcher(config)
    return ResendDispatcher(config)


class EmailService:
    """Service for sending notification emails"""

    def __init__(self, config: Config, dispatcher: Optional[MailDispatcher] = None):
        self.config = config
        self.dispatcher = dispatcher or create_dispatcher(config)

    async def deliver(self, notification: Notification) -> None:
        """
        Send a notification to the configured recipient.

        Args:
            notification: Rendered notification

        Raises:
            DispatchError: If the provider fails or the mail timeout expires
        """
        mail = self.config.mail
        try:
            await asyncio.wait_for(
                self.dispatcher.send(
                    sender=mail.from_email,
                    recipient=mail.to_email,
                    subject=notification.subject,
                    html=notification.html,
                    reply_to=notification.reply_to,
                    attachments=notification.attachments,
                ),
                timeout=mail.timeout,
            )
        except asyncio.TimeoutError as e:
            raise DispatchError(f"Mail provider timed out after {mail.timeout}s") from e
        except DispatchError:
            raise
        except Exception as e:
            raise DispatchError(f"Unexpected mail provider error: {e}") from e

        logger.info(
            f"[EmailService] ✅ Email sent via {mail.provider}: {notification.subject!r}"
            f" ({len(notification.attachments)} attachment(s))"
        )

    async def aclose(self) -> None:
        await self.dispatcher.aclose()
