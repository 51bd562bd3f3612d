"""
Run FastAPI HTTP Server

Starts the FastAPI server for the job application and contact forms.
Exits with status 1 before binding a socket when configuration is incomplete.
"""

import sys

import uvicorn

from app.api.main import create_app
from app.config import get_config
from app.utils.exceptions import StartupConfigError
from app.utils.logger import get_logger, setup_logging

logger = get_logger("backend_server")


def main() -> None:
    try:
        config = get_config()
    except StartupConfigError as e:
        setup_logging()
        logger.error(f"[Config] ❌ {e}")
        sys.exit(1)

    setup_logging(config)
    logger.info(f"[Server] 🚀 Starting on {config.server.host}:{config.server.port}")

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
