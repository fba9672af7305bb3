"""
Logging setup for cartstore.

The store logs hydration results, ignored mutations (DEBUG), failed
storage writes and failing subscribers. Importing this module installs a
stdout handler on the root logger unless the host application already
configured one.

Environment:
    LOG_LEVEL  level name, default INFO
    CART_ENV   "production" drops timestamps (the log collector adds them)

Usage:
    from cartstore.logging import get_logger, sanitize_id_for_logging
    logger = get_logger(__name__)

    logger.debug(f"Added {sanitize_id_for_logging(product_id)}")
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"


def _get_log_level() -> int:
    """Level from LOG_LEVEL; unknown names fall back to INFO."""
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _configure_root_logger() -> None:
    """Install the cartstore stdout handler on the root logger."""
    root = logging.getLogger()

    # Leave host applications' logging alone
    if root.handlers:
        return

    root.setLevel(_get_log_level())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_get_log_level())

    is_production = os.environ.get("CART_ENV") == "production"
    formatter = logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT)
    handler.setFormatter(formatter)

    root.addHandler(handler)

    # The Upstash REST client logs every request through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    """
    Logger for a cartstore module.

    Args:
        name: Module name (__name__), e.g. "cartstore.cart.service"

    Returns:
        Logger propagating to the handler installed above
    """
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """Escape control characters that could forge log entries (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None, max_length: int = 32) -> str:
    """
    Sanitize a product id for safe logging.

    Product ids come from the catalog collaborator, so they are escaped and
    truncated before they reach a log line.

    Args:
        id_value: ID value to sanitize (can be None)
        max_length: Maximum length to keep (default: 32)

    Returns:
        Sanitized ID string or "N/A" if empty
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "get_logger",
    "sanitize_id_for_logging",
]
