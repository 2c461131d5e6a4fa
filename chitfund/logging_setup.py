"""
Logging setup.

Configures loguru sinks from settings.
"""

import sys

from loguru import logger

from chitfund.config.settings import settings


def setup_logging() -> None:
    """Configure stderr sink and optional rotating file sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            level=settings.log_level,
            encoding="utf-8",
            enqueue=True,
        )

    logger.info(
        "Logging configured",
        extra={"environment": settings.environment, "level": settings.log_level},
    )
