"""
Submitted form entities.

Built by the intake service from one request and discarded once the
notification email has been dispatched.
"""

from typing import Optional

from pydantic import BaseModel


class ResumeUpload(BaseModel):
    filename: str
    content_type: Optional[str] = None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class JobApplication(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    experience: str = ""
    resume: ResumeUpload

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ContactMessage(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    message: str


__all__ = ["ResumeUpload", "JobApplication", "ContactMessage"]
