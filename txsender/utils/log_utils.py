"""
Logging setup for applications embedding the transaction sender.
"""

import logging
import sys
from typing import Optional

from loguru import logger

from txsender.config import LOG_LEVEL


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru."""
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: str = LOG_LEVEL, log_file: Optional[str] = None):
    """
    Configure structured logging with loguru.

    Args:
        level: Minimum log level
        log_file: Optional path for JSON logs, rotated daily
    """
    logger.remove()  # Remove default handler

    logger.add(
        sys.stdout,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}"
    )

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="14 days",
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}",
            serialize=True,  # JSON formatting for structured logs
        )

    # Redirect solana-py, aiohttp and other stdlib loggers to loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
