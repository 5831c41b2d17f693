"""Loguru sinks for the bot and the CLI."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <7} {name}:{line} - {message}"


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """
    Replace loguru's default sink with roombot's sinks.

    Args:
        level: Console level
        log_file: Where to keep a rotating debug log, if anywhere
        verbose: Force the console to DEBUG
    """
    logger.remove()

    console_level = "DEBUG" if verbose else level.upper()
    logger.add(sys.stderr, level=console_level, format=CONSOLE_FORMAT, diagnose=False)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="5 MB",
            retention=5,
            enqueue=True,
        )

    logger.debug(f"Console logging at {console_level}, log file {log_file or 'disabled'}")
