"""
Centralized logging for the BioCopilot backend.

Usage:
    from services.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Calculated %d hunks for %s", len(hunks), file_path)
"""

import logging
import sys

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the backend.

    Call once at startup (main.py). Subsequent calls are no-ops.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (typically ``__name__``)."""
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Change the root log level of a running process"""
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))
