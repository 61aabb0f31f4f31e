"""
Logging configuration for doclinks.
"""

import logging
import sys
from pathlib import Path

try:
    from rich.logging import RichHandler

    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False

from .config import EngineConfig

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: EngineConfig) -> logging.Logger:
    """
    Configure the root logger from EngineConfig.

    Args:
        config: Engine configuration

    Returns:
        The root logger
    """
    log_level_str = config.logging.level
    log_level = getattr(logging, log_level_str, logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(_FORMAT)

    if RICH_AVAILABLE:
        console_handler = RichHandler(
            rich_tracebacks=True,
            markup=False,
            show_time=True,
            show_path=False,
            level=log_level,
        )
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    logger.addHandler(console_handler)

    if config.logging.file:
        _add_file_handler(logger, config.logging.file, formatter, log_level)

    if config.logging.error_log_file:
        # Only WARNING and higher
        _add_file_handler(
            logger, config.logging.error_log_file, formatter, logging.WARNING
        )

    logger.debug("Logging initialized with level: %s", log_level_str)
    return logger


def _add_file_handler(
    logger: logging.Logger, filename: str, formatter: logging.Formatter, level: int
) -> None:
    try:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(path), encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
        logger.info("Logging to file: %s", path)
    except OSError as e:
        # Console logging keeps working.
        logger.error("Error setting up log handler for %s: %s", filename, e)


def setup_basic_logging() -> logging.Logger:
    """
    Setup basic logging for early initialization.

    Returns:
        Basic logger instance
    """
    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.INFO)

    if RICH_AVAILABLE:
        console_handler = RichHandler(
            rich_tracebacks=True, markup=False, show_time=True, show_path=False
        )
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(_FORMAT))

    console_handler.setLevel(logging.INFO)
    root_logger.addHandler(console_handler)

    return logging.getLogger("doclinks")
