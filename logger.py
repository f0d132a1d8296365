"""Logging configuration for Bankfolio.

Sets up logging to a dated file under the configured log directory and,
optionally, to the console.
"""

import logging
from datetime import date
from pathlib import Path
from config import Config

LOGGER_NAME = "bankfolio"


def get_log_file_path(config: Config, day: date = None) -> Path:
    """Get the log file for a given day (defaults to today).

    Args:
        config: Application configuration containing log settings.
        day: Day the log file belongs to.

    Returns:
        Path of the form {log_dir}/bankfolio-YYYY-MM-DD.log.
    """
    day = day or date.today()
    return config.log_dir / f"{LOGGER_NAME}-{day.isoformat()}.log"


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Set up application logging with file and console handlers.

    Args:
        config: Application configuration containing log settings.
        console: Also echo log records to stderr.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)

    # Calling this twice must not duplicate output
    logger.handlers.clear()

    file_handler = logging.FileHandler(get_log_file_path(config))
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger.

    Returns:
        The bankfolio logger instance.
    """
    return logging.getLogger(LOGGER_NAME)
