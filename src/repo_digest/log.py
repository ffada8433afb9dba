"""Logging setup with rich console output.

Modules get a logger with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once at startup.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# Diagnostics go to stderr so stdout stays clean for the digest itself
console = Console(stderr=True)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger. Handlers are attached by ``setup_logging``."""
    return logging.getLogger(name)


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure the ``repo_digest`` logger hierarchy.

    Args:
        level: Logging level name. Falls back to ``LOG_LEVEL`` or INFO.
        log_file: Optional path that also receives plain-text log records.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger("repo_digest")
    logger.setLevel(level)
    logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)
