from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse
from slowapi import Limiter

from app.config import Config
from app.schemas.intake import ResumeUpload
from app.schemas.responses import ApplyJobResponse
from app.services.container import ServiceContainer, get_services
from app.services.notification_service import format_job_application
from app.utils.exceptions import DispatchError, ValidationError
from app.utils.limiter import limit_route
from app.utils.logger import get_logger
from app.utils.metrics import record_submission

logger = get_logger(__name__)


async def apply_job(
    request: Request,
    first_name: str = Form("", alias="firstName"),
    last_name: str = Form("", alias="lastName"),
    email: str = Form(""),
    phone: str = Form(""),
    experience: str = Form(""),
    resume: Optional[UploadFile] = File(None),
    services: ServiceContainer = Depends(get_services),
):
    """
    Submit a job application with a PDF or DOCX resume.

    The resume text is extracted (best effort) into the notification email
    and the original file is forwarded as an attachment.
    """
    upload = None
    if resume is not None:
        # The body is already spooled by the form parser; read at most one byte past the limit
        content = await resume.read(services.config.intake.max_upload_bytes + 1)
        upload = ResumeUpload(
            filename=resume.filename or "",
            content_type=resume.content_type,
            content=content,
        )
        logger.info(
            f"[API] Received job application with resume {upload.filename!r}"
            f" ({upload.content_type}, {upload.size} bytes)"
        )

    fields = {
        "firstName": first_name,
        "lastName": last_name,
        "email": email,
        "phone": phone,
        "experience": experience,
    }
    try:
        application = services.intake.build_job_application(fields, upload)
    except ValidationError as e:
        logger.info(f"[API] Job application rejected: {e.message}")
        record_submission("apply-job", "rejected")
        raise

    extraction = await services.resume.extract_async(application.resume)
    notification = format_job_application(
        application,
        extraction,
        forward_attachment=services.config.intake.forward_resume_attachment,
    )

    try:
        await services.email.deliver(notification)
    except DispatchError as e:
        logger.error(f"[API] ❌ Apply Job Error: {e.message}", exc_info=True)
        record_submission("apply-job", "failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Email sending failed"},
        )

    record_submission("apply-job", "sent")
    return ApplyJobResponse()


def create_router(limiter: Limiter, config: Config) -> APIRouter:
    """Job application form routes, rate limited per client IP."""
    router = APIRouter(tags=["Applications"])
    router.post("/apply-job", response_model=ApplyJobResponse)(
        limit_route(limiter, config)(apply_job)
    )
    return router
