"""
Main entry point for running the application with `python -m registrar`.
"""
import uvicorn

from registrar.core.config import settings
from registrar.core.logging import logger


def main():
    """Run the application with uvicorn."""
    logger.info(f"Starting {settings.api.title} on {settings.host}:{settings.port}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log level: {settings.logging.level}")

    uvicorn.run(
        "registrar.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.logging.level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
