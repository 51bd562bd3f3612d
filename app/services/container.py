"""
Service container.

Built once at startup from the Config and attached to the FastAPI app;
handlers receive it through get_services(). Read-only after creation.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from slowapi import Limiter

from app.config import Config
from app.services.email_service import EmailService, MailDispatcher
from app.services.intake_service import IntakeService
from app.services.resume_service import ResumeService
from app.utils.limiter import build_limiter


@dataclass(frozen=True)
class ServiceContainer:
    config: Config
    intake: IntakeService
    resume: ResumeService
    email: EmailService
    limiter: Limiter

    async def aclose(self) -> None:
        await self.email.aclose()


def build_container(config: Config, dispatcher: Optional[MailDispatcher] = None) -> ServiceContainer:
    # Initialize services
    return ServiceContainer(
        config=config,
        intake=IntakeService(config),
        resume=ResumeService(config),
        email=EmailService(config, dispatcher=dispatcher),
        limiter=build_limiter(config),
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the app's service container."""
    return request.app.state.services
