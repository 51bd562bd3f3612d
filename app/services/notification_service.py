"""
Notification Formatter

Renders validated submissions into the HTML emails sent to the site owner.
Every user-supplied value is HTML-escaped before it is embedded.
"""

from html import escape
from typing import Optional

from app.schemas.intake import ContactMessage, JobApplication
from app.schemas.notification import MailAttachment, Notification
from app.services.intake_service import is_valid_email
from app.services.resume_service import PLACEHOLDER_TEXT, Extracted, ExtractionResult

JOB_APPLICATION_SUBJECT = "New Job Application"
CONTACT_SUBJECT_TEMPLATE = "📩 New Contact Message from {name}"

_STYLE = """
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 640px; margin: 0 auto; padding: 20px; }
        .label { font-weight: bold; }
        pre { white-space: pre-wrap; background: #f9fafb; padding: 12px; border-radius: 4px; }
"""


def _subject_safe(value: str) -> str:
    # Header values must stay on one line
    return " ".join(value.splitlines()).strip()


def _reply_to(email: str) -> Optional[str]:
    return email if email and is_valid_email(email) else None


def resume_text(extraction: ExtractionResult) -> str:
    """Text shown in the resume section: extracted text or the placeholder."""
    if isinstance(extraction, Extracted) and extraction.text:
        return extraction.text
    return PLACEHOLDER_TEXT


def format_job_application(
    application: JobApplication,
    extraction: ExtractionResult,
    forward_attachment: bool = True,
) -> Notification:
    """
    Build the job application notification.

    Args:
        application: Validated job application
        extraction: Result of resume text extraction
        forward_attachment: Attach the original resume file

    Returns:
        Notification with subject, HTML body, reply-to and attachments
    """
    name = escape(application.full_name)
    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <h3>New Job Application</h3>
        <p><span class="label">Name:</span> {name}</p>
        <p><span class="label">Email:</span> {escape(application.email)}</p>
        <p><span class="label">Phone:</span> {escape(application.phone)}</p>
        <p><span class="label">Experience:</span> {escape(application.experience)}</p>
        <p><span class="label">Resume file:</span> {escape(application.resume.filename)}</p>
        <h4>Resume text</h4>
        <pre>{escape(resume_text(extraction))}</pre>
    </div>
</body>
</html>
"""

    attachments = []
    if forward_attachment:
        resume = application.resume
        attachments.append(
            MailAttachment(
                filename=resume.filename,
                content=resume.content,
                content_type=resume.content_type or "application/octet-stream",
            )
        )

    return Notification(
        subject=JOB_APPLICATION_SUBJECT,
        html=html,
        reply_to=_reply_to(application.email),
        attachments=attachments,
    )


def format_contact_message(message: ContactMessage) -> Notification:
    """Build the contact form notification."""
    body = "<br>".join(escape(line) for line in message.message.splitlines())
    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <h2>New Contact Request</h2>
        <p><span class="label">Name:</span> {escape(message.name)}</p>
        <p><span class="label">Email:</span> {escape(message.email)}</p>
        <p><span class="label">Phone:</span> {escape(message.phone or "N/A")}</p>
        <p>{body}</p>
    </div>
</body>
</html>
"""
    return Notification(
        subject=CONTACT_SUBJECT_TEMPLATE.format(name=_subject_safe(message.name)),
        html=html,
        reply_to=_reply_to(message.email),
    )
