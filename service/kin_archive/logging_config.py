"""
Logging configuration for the archive service and Telegram bot.
"""

import logging
import sys


def setup_logging(name: str = "kin_archive", level: int = logging.DEBUG) -> logging.Logger:
    """Setup a named logger with proper format and handlers."""

    # Create logger
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # Create console handler with formatting
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


# Service-wide logger; modules log through children of this one
service_logger = setup_logging("kin_archive", logging.INFO)

# Bot logger keeps DEBUG output for update tracing
bot_logger = setup_logging("kin_archive.telegram_bot")
