import json
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter

from app.config import Config
from app.schemas.responses import MessageResponse
from app.services.container import ServiceContainer, get_services
from app.services.notification_service import format_contact_message
from app.utils.exceptions import DispatchError, ValidationError
from app.utils.limiter import limit_route
from app.utils.logger import get_logger
from app.utils.metrics import record_submission

logger = get_logger(__name__)


async def read_submitted_fields(request: Request) -> Dict[str, Any]:
    """
    Read form fields from a JSON, URL-encoded or multipart body.

    Raises:
        ValidationError: If a JSON body is malformed, not an object, or has non-string values
    """
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid JSON body")
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON body")
        # null is treated as an omitted field
        if any(value is not None and not isinstance(value, str) for value in body.values()):
            raise ValidationError("Invalid JSON body")
        return body

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


async def contact(request: Request, services: ServiceContainer = Depends(get_services)):
    """Relay a contact form message to the site owner."""
    try:
        fields = await read_submitted_fields(request)
        message = services.intake.build_contact_message(fields)
    except ValidationError as e:
        logger.info(f"[API] Contact message rejected: {e.message}")
        record_submission("contact", "rejected")
        raise

    try:
        await services.email.deliver(format_contact_message(message))
    except DispatchError as e:
        logger.error(f"[API] ❌ Contact Error: {e.message}", exc_info=True)
        record_submission("contact", "failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Failed to send message"},
        )

    record_submission("contact", "sent")
    return MessageResponse(message="Message sent successfully")


def create_router(limiter: Limiter, config: Config) -> APIRouter:
    """Contact form routes, rate limited per client IP."""
    router = APIRouter(tags=["Contact"])
    router.post("/contact", response_model=MessageResponse)(limit_route(limiter, config)(contact))
    return router
