"""
Logging setup for the API process and the scheduler.
"""

import sys

from loguru import logger

from debt_tracker.core.config import settings


def setup_logging(log_level: str | None = None, service_name: str = "debt-tracker") -> None:
    """
    Replace loguru's default sink with a single console sink.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR). Defaults to settings.LOG_LEVEL.
        service_name: Name shown in every line.
    """
    level = (log_level or settings.LOG_LEVEL).upper()

    logger.remove()
    logger.add(
        sys.stdout,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
            f"{service_name}:{{name}}:{{function}}:{{line}} - {{message}}"
        ),
        level=level,
        colorize=True,
        backtrace=settings.DEBUG,
        diagnose=settings.DEBUG,
    )

    logger.info(f"Logging configured for {service_name} at level: {level}")
