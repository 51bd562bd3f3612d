"""
Configuration Management

Centralized configuration management using environment variables
with proper validation and type safety. A Config instance is built once
at process start and treated as read-only afterwards.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from app.utils.exceptions import StartupConfigError


# Load environment variables from .env in backend directory (resolve to absolute path)
_backend_root = Path(__file__).resolve().parent.parent
_env_path = _backend_root / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=str(_env_path))
else:
    # Also load from current working directory so "python backend_server.py" picks up .env
    load_dotenv()


MAIL_PROVIDERS = ("resend", "smtp")

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class SMTPConfig:
    """SMTP email configuration"""
    host: Optional[str] = None
    port: int = 587
    secure: bool = False
    user: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class ResendConfig:
    """Transactional email API configuration"""
    api_key: Optional[str] = None
    api_url: str = "https://api.resend.com"


@dataclass(frozen=True)
class MailConfig:
    """Mail dispatch configuration"""
    provider: str
    from_email: str
    to_email: str
    timeout: float = 30.0
    smtp: SMTPConfig = field(default_factory=SMTPConfig)
    resend: ResendConfig = field(default_factory=ResendConfig)


@dataclass(frozen=True)
class IntakeConfig:
    """Form intake and resume processing configuration"""
    max_upload_mb: int = 5
    strict_resume_types: bool = True
    forward_resume_attachment: bool = True
    validate_contact_email: bool = True
    resume_text_max_chars: int = 7000
    extraction_timeout: float = 15.0

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    rate_limit: str = "30/minute"
    rate_limit_enabled: bool = True


@dataclass(frozen=True)
class Config:
    """Main application configuration"""

    # Mail provider, sender and recipient
    mail: MailConfig

    # Upload limits and resume handling
    intake: IntakeConfig = field(default_factory=IntakeConfig)

    # Server configuration
    server: ServerConfig = field(default_factory=ServerConfig)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = DEFAULT_LOG_FORMAT

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Configured Config instance

        Raises:
            StartupConfigError: If required environment variables are missing
        """
        provider = os.getenv("MAIL_PROVIDER", "resend").strip().lower()
        if provider not in MAIL_PROVIDERS:
            raise StartupConfigError(
                f"MAIL_PROVIDER must be one of {', '.join(MAIL_PROVIDERS)} (got {provider!r})"
            )

        resend_api_key = os.getenv("RESEND_API_KEY")
        smtp_host = os.getenv("SMTP_HOST")
        smtp_user = os.getenv("SMTP_USER")
        smtp_password = os.getenv("SMTP_PASSWORD")

        # Provider credentials are mandatory: refuse to start without them
        if provider == "resend" and not resend_api_key:
            raise StartupConfigError("RESEND_API_KEY environment variable is required")
        if provider == "smtp":
            if not smtp_host:
                raise StartupConfigError("SMTP_HOST environment variable is required")
            if not smtp_user:
                raise StartupConfigError("SMTP_USER environment variable is required")
            if not smtp_password:
                raise StartupConfigError("SMTP_PASSWORD environment variable is required")

        from_email = (
            os.getenv("MAIL_FROM")
            or os.getenv("RESEND_EMAIL")
            or os.getenv("SMTP_FROM_EMAIL")
            or smtp_user
        )
        if not from_email:
            raise StartupConfigError("MAIL_FROM (or RESEND_EMAIL) environment variable is required")

        smtp_port = _env_int("SMTP_PORT", 587)
        smtp_secure = _env_bool("SMTP_SECURE", False) or smtp_port == 465

        max_upload_mb = _env_int("MAX_UPLOAD_MB", 5)
        if not 1 <= max_upload_mb <= 25:
            raise StartupConfigError("MAX_UPLOAD_MB must be between 1 and 25")

        resume_text_max_chars = _env_int("RESUME_TEXT_MAX_CHARS", 7000)
        if not 6000 <= resume_text_max_chars <= 8000:
            raise StartupConfigError("RESUME_TEXT_MAX_CHARS must be between 6000 and 8000")

        cors_origins = [
            o.strip().rstrip("/")
            for o in os.getenv("CORS_ORIGINS", "*").split(",")
            if o.strip()
        ] or ["*"]

        return cls(
            mail=MailConfig(
                provider=provider,
                from_email=from_email,
                to_email=os.getenv("MAIL_TO") or from_email,
                timeout=_env_float("MAIL_TIMEOUT_SECONDS", 30.0),
                smtp=SMTPConfig(
                    host=smtp_host,
                    port=smtp_port,
                    secure=smtp_secure,
                    user=smtp_user,
                    password=smtp_password,
                ),
                resend=ResendConfig(
                    api_key=resend_api_key,
                    api_url=os.getenv("RESEND_API_URL", "https://api.resend.com").rstrip("/"),
                ),
            ),
            intake=IntakeConfig(
                max_upload_mb=max_upload_mb,
                strict_resume_types=_env_bool("STRICT_RESUME_TYPES", True),
                forward_resume_attachment=_env_bool("FORWARD_RESUME_ATTACHMENT", True),
                validate_contact_email=_env_bool("VALIDATE_CONTACT_EMAIL", True),
                resume_text_max_chars=resume_text_max_chars,
                extraction_timeout=_env_float("EXTRACTION_TIMEOUT_SECONDS", 15.0),
            ),
            server=ServerConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                # Hosting platforms provide PORT; SERVER_PORT is the local fallback
                port=_env_int("PORT", _env_int("SERVER_PORT", 8080)),
                cors_origins=cors_origins,
                rate_limit=os.getenv("RATE_LIMIT", "30/minute"),
                rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            ),
            LOG_LEVEL=_env_log_level("LOG_LEVEL", "INFO"),
            LOG_FORMAT=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise StartupConfigError(f"{name} must be an integer (got {raw!r})")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise StartupConfigError(f"{name} must be a number (got {raw!r})")
    if value <= 0:
        raise StartupConfigError(f"{name} must be positive")
    return value


def _env_log_level(name: str, default: str) -> str:
    level = (os.getenv(name) or default).strip().upper()
    if level == "WARN":
        level = "WARNING"
    if level not in LOG_LEVELS:
        raise StartupConfigError(f"{name} must be one of {', '.join(LOG_LEVELS)} (got {level!r})")
    return level


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_config() -> Config:
    """
    Get configuration from environment variables.

    Returns:
        Configuration instance
    """
    return Config.from_env()
