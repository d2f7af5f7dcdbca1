"""
Configure logging for the application.

This module provides a consistent logging configuration across the probe,
ensuring log messages are formatted correctly and directed to the
appropriate outputs (console, file).
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from cbsim_probe.config.constants import LOGGER_NAME
from cbsim_probe.config.models import LoggingConfig


def configure_logging(
    name: str = LOGGER_NAME,
    config: Optional[LoggingConfig] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the application logger with console and file handlers.

    Args:
        name: Logger name to configure
        config: Logging settings; defaults are used when omitted
        level: Level name overriding ``config.level`` (e.g. from the CLI)

    Returns:
        logging.Logger: The configured logger instance
    """
    config = config or LoggingConfig()
    level_name = (level or config.level.value).upper()

    # Create logger
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Remove existing handlers if any
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # Create formatter
    formatter = logging.Formatter(config.format)

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        # Set encoding to utf-8 if possible
        if hasattr(console_handler.stream, "reconfigure"):
            try:
                console_handler.stream.reconfigure(encoding="utf-8")  # type: ignore
            except Exception as e:
                logger.warning(f"Could not reconfigure console stream encoding: {e}")
        logger.addHandler(console_handler)

    if config.file_output:
        try:
            config.log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                config.log_dir / config.log_filename,
                maxBytes=config.max_log_size,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging: {e}")

    # Prevent log propagation to root logger
    logger.propagate = False

    logger.debug("Logging configured")
    return logger
