"""Observability module for ecdhkit.

Structured logging helpers and redaction of key material.

Example:
    >>> from ecdhkit.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.debug("ecdhkit.ecdh.secret_computed", curve="prime256v1")
"""

from ecdhkit.observability.logging import (
    configure_logging,
    get_logger,
    is_debug_mode,
    resolve_log_level,
    sanitize_for_logging,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "resolve_log_level",
    "sanitize_for_logging",
]
