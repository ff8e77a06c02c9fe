"""Logging setup for command-line runs."""

import sys

from loguru import logger


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Replace loguru's default sink with one stderr sink at ``level``."""
    logger.remove()
    logger.enable("repograph")
    if json_format:
        logger.add(sys.stderr, level=level.upper(), serialize=True)
        return
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name} - {message}",
    )
