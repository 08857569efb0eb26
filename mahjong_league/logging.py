"""Logging configuration using Loguru.

This module provides centralized logging setup for the mahjong league
application. Supports console output plus a rotating file sink written
in structured JSON format.

Example:
    >>> from mahjong_league.logging import setup_logging, get_logger
    >>> setup_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.info("Recorded game {}", game_id)

Status Tags:
    >>> from mahjong_league.logging import SUCCESS, FAIL, WARN
    >>> logger.info(f"{SUCCESS} Imported 12 players")
    >>> logger.warning(f"{WARN} Score drift of 0.1 in game {game_id}")
    >>> logger.error(f"{FAIL} Import aborted at row 7")
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

# Color-coded status tags for terminal output
# ANSI codes; the stderr sink is added with colorize=True
SUCCESS = "\033[92m[SUCCESS]\033[0m"  # Green
FAIL = "\033[91m[FAIL]\033[0m"        # Red
WARN = "\033[93m[WARN]\033[0m"        # Yellow


class InterceptHandler(logging.Handler):
    """Handler to intercept stdlib logging and redirect to loguru.

    SQLAlchemy and the db module log through stdlib logging; this keeps
    their output in the same sinks as everything else.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record by forwarding to loguru."""
        try:
            # Map stdlib level names onto loguru levels, falling back to the number
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = sys._getframe(6), 6
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    level: str = "INFO",
    log_dir: str | Path = "logs",
    rotation: str = "1 day",
    retention: str = "30 days",
    serialize: bool = True,
) -> None:
    """Configure application logging.

    Sets up Loguru with console output and a rotating file handler.
    Also intercepts stdlib logging to route through loguru.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory for log files.
        rotation: When to rotate log files (e.g., "1 day", "100 MB").
        retention: How long to keep old log files.
        serialize: Whether to write JSON-formatted logs to file.

    Example:
        >>> settings = get_settings()
        >>> setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    """
    # Drop loguru's default stderr sink so records are not printed twice
    logger.remove()

    # Console: colored, human-readable
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    # File: one dated file per day, JSON lines unless serialize is off
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path / "mahjong_league_{time:YYYY-MM-DD}.log",
        level=level,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        ),
        rotation=rotation,
        retention=retention,
        serialize=serialize,
        enqueue=True,  # Thread-safe
    )

    # Route stdlib loggers (the db module, SQLAlchemy) into the sinks above
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def get_logger(name: str) -> Any:
    """Get a logger instance bound with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        Loguru logger bound with the given name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Created team {}", team.name)
    """
    return logger.bind(name=name)


# Export the base logger for direct use
__all__ = ["get_logger", "logger", "setup_logging", "SUCCESS", "FAIL", "WARN"]
