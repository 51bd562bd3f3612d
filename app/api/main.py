"""
FastAPI Application

HTTP API that relays job applications and contact messages as email.
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import applications as applications_api
from app.api import contact as contact_api
from app.config import Config, get_config
from app.services.container import ServiceContainer, build_container
from app.utils.exceptions import IntakeError
from app.utils.logger import get_logger

logger = get_logger(__name__)

FORM_FIELDS_ALLOWANCE = 256 * 1024


def create_app(
    config: Optional[Config] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Application configuration (read from the environment when omitted)
        services: Prebuilt service container (built from config when omitted)

    Returns:
        Configured FastAPI app
    """
    if services is None:
        services = build_container(config or get_config())
    config = services.config

    app = FastAPI(
        title="Careers Intake API",
        description="Job application and contact form relay",
        version="1.0.0",
    )
    app.state.services = services

    limiter = services.limiter
    app.state.limiter = limiter

    # Reject oversized bodies before the form parser spools them; allows room for the text fields
    max_body_bytes = config.intake.max_upload_bytes + FORM_FIELDS_ALLOWANCE

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        content_length = request.headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > max_body_bytes:
            logger.info(f"[API] Rejected {content_length}-byte body on {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"message": f"Request exceeds the {config.intake.max_upload_mb} MB upload limit"},
            )
        return await call_next(request)

    # With allow_credentials=True, origins cannot be "*"
    allow_any = "*" in config.server.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_any else config.server.cors_origins,
        allow_credentials=not allow_any,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IntakeError)
    async def intake_error_handler(request: Request, exc: IntakeError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"[API] Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid form data"},
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"[API] Rate limit exceeded for {request.client.host if request.client else '?'}")
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"message": "Too many requests, please try again later"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"[API] Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )

    @app.on_event("startup")
    async def startup_log_config():
        logger.info(
            f"[API] Mail provider: {config.mail.provider}, recipient: {config.mail.to_email},"
            f" upload limit: {config.intake.max_upload_mb} MB"
        )

    @app.on_event("shutdown")
    async def shutdown_services():
        await services.aclose()

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        """Liveness string for the hosting platform."""
        return "Server is running"

    @app.get("/health")
    async def health():
        """Liveness probe: returns 200 if the process is running."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics for monitoring."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(applications_api.create_router(limiter, config))
    app.include_router(contact_api.create_router(limiter, config))

    return app
