"""
Intake Service

Validates submitted form fields and the uploaded resume, and builds the
JobApplication / ContactMessage entities consumed by the notification
formatter. All checks run before any side effect.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from app.config import Config
from app.schemas.intake import ContactMessage, JobApplication, ResumeUpload
from app.utils.exceptions import ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Types some browsers send when they cannot identify the file
_GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

_EXTENSION_KINDS = {".pdf": "pdf", ".docx": "docx"}
_MIME_KINDS = {PDF_MIME_TYPE: "pdf", DOCX_MIME_TYPE: "docx"}

# Coarse shape check: something@domain.tld
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class FileAccepted:
    kind: str  # "pdf" or "docx"


@dataclass(frozen=True)
class FileRejected:
    reason: str


FileCheck = Union[FileAccepted, FileRejected]


def check_resume_file(filename: Optional[str], content_type: Optional[str]) -> FileCheck:
    """
    Classify an upload by its declared media type.

    The filename extension is only consulted when the client sent no
    media type or a generic binary one.
    """
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in _MIME_KINDS:
        return FileAccepted(_MIME_KINDS[mime])
    if mime in _GENERIC_MIME_TYPES and filename:
        kind = _EXTENSION_KINDS.get(Path(filename).suffix.lower())
        if kind:
            return FileAccepted(kind)
    return FileRejected("unsupported file type")


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def _field(fields: Mapping[str, Any], name: str) -> str:
    value = fields.get(name)
    if value is None:
        return ""
    return str(value).strip()


class IntakeService:
    """Builds validated submission entities from raw form data"""

    def __init__(self, config: Config):
        self.config = config

    def build_job_application(
        self,
        fields: Mapping[str, Any],
        upload: Optional[ResumeUpload],
    ) -> JobApplication:
        """
        Validate a job application submission.

        Args:
            fields: Submitted form fields (firstName, lastName, email, phone, experience)
            upload: Uploaded resume, if any

        Returns:
            JobApplication entity

        Raises:
            ValidationError: If the resume is missing, too large or of an unsupported type
        """
        if upload is None or not upload.filename or not upload.content:
            raise ValidationError("Resume not uploaded")

        limits = self.config.intake
        if upload.size > limits.max_upload_bytes:
            logger.info(f"[Intake] Rejected resume {upload.filename!r}: {upload.size} bytes")
            raise ValidationError(f"Resume exceeds the {limits.max_upload_mb} MB limit")

        check = check_resume_file(upload.filename, upload.content_type)
        if isinstance(check, FileRejected) and limits.strict_resume_types:
            logger.info(
                f"[Intake] Rejected resume {upload.filename!r} ({upload.content_type}): {check.reason}"
            )
            raise ValidationError("Unsupported file type. Upload a PDF or DOCX resume")

        return JobApplication(
            first_name=_field(fields, "firstName"),
            last_name=_field(fields, "lastName"),
            email=_field(fields, "email"),
            phone=_field(fields, "phone"),
            experience=_field(fields, "experience"),
            resume=upload,
        )

    def build_contact_message(self, fields: Mapping[str, Any]) -> ContactMessage:
        """
        Validate a contact form submission.

        Raises:
            ValidationError: If name, email or message is empty, or the email is malformed
        """
        name = _field(fields, "name")
        email = _field(fields, "email")
        message = _field(fields, "message")
        phone = _field(fields, "phone")

        if not name or not email or not message:
            raise ValidationError("All required fields missing")

        if self.config.intake.validate_contact_email and not is_valid_email(email):
            raise ValidationError("Invalid email address")

        return ContactMessage(name=name, email=email, phone=phone or None, message=message)
