from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import Config


def build_limiter(config: Config) -> Limiter:
    # Rate limiter for form endpoints (limit by IP)
    return Limiter(key_func=get_remote_address, enabled=config.server.rate_limit_enabled)


def limit_route(limiter: Limiter, config: Config):
    """Decorator applying the configured per-IP limit to a route (no-op when disabled)."""
    if not config.server.rate_limit_enabled:
        return lambda endpoint: endpoint
    return limiter.limit(config.server.rate_limit)
