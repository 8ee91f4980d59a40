"""Logging setup shared by every extraction stage.

One stdout handler on the root logger, plus a helper that trims raw
provider responses before they are written to the log.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
RAW_PREVIEW_CHARS = 500

# HTTP client libraries log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def setup_logging(level: str = "INFO") -> None:
    """Send log records to stdout in the standard format.

    Does nothing if the root logger already has a handler, so an
    embedding application keeps its own configuration.

    Args:
        level: Level name such as ``"DEBUG"``; unknown names mean INFO.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, usually called with ``__name__``."""
    return logging.getLogger(name)


def preview(text: str | None, limit: int = RAW_PREVIEW_CHARS) -> str:
    """Shorten raw OCR or model output for log lines.

    Args:
        text: Raw text, possibly ``None``.
        limit: Maximum number of characters kept.

    Returns:
        Single-line text, suffixed with ``...`` when cut.
    """
    if not text:
        return ""
    flat = text.replace("\r", " ").replace("\n", " | ")
    if len(flat) <= limit:
        return flat
    return flat[:limit] + "..."
