"""Structured logging for ecdhkit.

Library modules only ever *obtain* loggers through ``get_logger``; nothing is
configured on import, so an embedding application keeps full control of its
own logging setup. Events flow through stdlib loggers under ``ecdhkit.*``
and are emitted by whatever handlers the application installs; the
``ecdhkit`` CLI calls ``configure_logging()`` for its own process.

``configure_logging`` touches the ``ecdhkit`` logger namespace only. The root
logger and any handlers the host installed are left as they are.

Environment Variables:
    ECDHKIT_LOG_FORMAT: "json" for JSON lines, anything else for console output
    ECDHKIT_LOG_LEVEL: Level name (DEBUG, INFO, WARNING, ERROR); unknown names fall back to INFO
    ECDHKIT_DEBUG: "true"/"1"/"yes"/"on" forces DEBUG

Example:
    >>> from ecdhkit.observability.logging import configure_logging, get_logger
    >>>
    >>> configure_logging(log_format="json", log_level="DEBUG")
    >>> logger = get_logger("ecdhkit.crypto.keys")
    >>> logger.debug("ecdhkit.keys.generated", curve="prime256v1")
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import Processor

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"

ENV_LOG_FORMAT = "ECDHKIT_LOG_FORMAT"
ENV_LOG_LEVEL = "ECDHKIT_LOG_LEVEL"
ENV_DEBUG = "ECDHKIT_DEBUG"

# Root of the stdlib logger namespace owned by this package
PACKAGE_LOGGER_NAME = "ecdhkit"

REDACTED_PLACEHOLDER = "***REDACTED***"

# Case-insensitive substrings marking key material
_SENSITIVE_KEY_PATTERNS = frozenset({"private", "secret", "scalar", "passphrase", "password"})

# JWK members carrying private material
_SENSITIVE_EXACT_KEYS = frozenset({"d"})


def _is_sensitive_key(key: str) -> bool:
    lower = key.lower()
    return lower in _SENSITIVE_EXACT_KEYS or any(p in lower for p in _SENSITIVE_KEY_PATTERNS)


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with key material replaced by REDACTED_PLACEHOLDER.

    Keys containing private, secret, scalar, passphrase or password
    (case-insensitive), and the JWK member ``d``, are redacted. Nested dicts
    and lists of dicts are walked recursively.

    Example:
        >>> sanitize_for_logging({"kty": "EC", "d": "c2VjcmV0"})
        {'kty': 'EC', 'd': '***REDACTED***'}
    """
    result: dict[str, Any] = {}
    for key, value in (data or {}).items():
        if _is_sensitive_key(key):
            result[key] = REDACTED_PLACEHOLDER
        elif isinstance(value, dict):
            result[key] = sanitize_for_logging(value)
        elif isinstance(value, list):
            result[key] = [
                sanitize_for_logging(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def is_debug_mode() -> bool:
    """True if ECDHKIT_DEBUG holds a truthy value."""
    return os.environ.get(ENV_DEBUG, "").strip().lower() in ("true", "1", "yes", "on")


def resolve_log_level(name: str | None) -> int:
    """Map a level name to its numeric value, falling back to INFO for unknown names."""
    candidate = (name or "").strip().upper()
    level = logging.getLevelName(candidate) if candidate else None
    if isinstance(level, int):
        return level
    return logging.getLevelName(DEFAULT_LOG_LEVEL)


# Processors run on every event before it reaches a stdlib handler
_SHARED_PROCESSORS: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=False,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """Route ecdhkit logs to stderr for a standalone process such as the CLI.

    Replaces any handler a previous call installed on the ``ecdhkit``
    logger and stops propagation to the root logger, so calling it again
    (for example once per CLI invocation) never stacks handlers. Global
    structlog configuration is left alone.

    Args:
        log_format: "json" or "console"; defaults to ECDHKIT_LOG_FORMAT, then "console".
        log_level: Level name; defaults to ECDHKIT_LOG_LEVEL, then INFO.
            ECDHKIT_DEBUG overrides it with DEBUG.
    """
    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)).lower()
    level = resolve_log_level(log_level or os.environ.get(ENV_LOG_LEVEL))
    if is_debug_mode():
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for ``name`` (usually ``__name__``).

    Events go through the stdlib logger of the same name, so the host's
    handlers and levels decide what is emitted.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
    )
