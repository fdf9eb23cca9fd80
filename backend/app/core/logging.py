"""
logging.py — Application-Wide Logging Configuration

Purpose:
- One log format for API requests, background pipeline runs and scripts.
- Level comes from settings (LOG_LEVEL) unless a caller overrides it.
- Keep HTTP library chatter out of pipeline logs.

Format: timestamp | level | module | message
"""

import logging
from typing import Optional

from app.core.config import settings

# -----------------------------------------------------------------------------
# Log Format
# -----------------------------------------------------------------------------

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)

# Third-party loggers that flood DEBUG output while a client polls
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore")

# -----------------------------------------------------------------------------
# Root Logger Initialization
# -----------------------------------------------------------------------------

def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging settings.

    Parameters:
        level (str | None): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL".
            Defaults to settings.LOG_LEVEL.

    Should be called ONCE, in `main.py` at app startup or at the top of a
    script's `main()`.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).info("Logging initialized with level %s", level_name)

# -----------------------------------------------------------------------------
# Logger Access Helper
# -----------------------------------------------------------------------------

def get_logger(name: str) -> logging.Logger:
    """
    Return a logger instance to be used in any module.

        from app.core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)
