"""
Logging configuration for the application.

Sets up loguru sinks per environment: structured JSON lines in production,
colored human-readable output everywhere else, plus an optional rotating file.
"""

import sys

from loguru import logger

from .config import settings, Environment


def setup_logging() -> None:
    """Set up logging configuration based on the environment."""

    logger.remove()

    log_settings = settings.logging

    if settings.environment == Environment.PRODUCTION:
        logger.add(
            sys.stdout,
            format=log_settings.format,
            level=log_settings.level,
            colorize=False,
            serialize=True,
        )
    else:
        logger.add(
            sys.stdout,
            format=log_settings.format,
            level=log_settings.level,
            colorize=True,
            backtrace=True,
            diagnose=settings.environment != Environment.TESTING,
        )

    if log_settings.file_enabled:
        logger.add(
            log_settings.file_path,
            format=log_settings.format,
            level=log_settings.level,
            rotation="10 MB",
            retention="14 days",
            enqueue=True,
        )

    logger.info(f"Logging initialized for environment: {settings.environment.value}")


setup_logging()
