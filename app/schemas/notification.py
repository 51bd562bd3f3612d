"""
Outgoing notification email schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class MailAttachment(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class Notification(BaseModel):
    subject: str
    html: str
    reply_to: Optional[str] = None
    attachments: List[MailAttachment] = Field(default_factory=list)


__all__ = ["MailAttachment", "Notification"]
