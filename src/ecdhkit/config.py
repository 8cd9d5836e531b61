"""Runtime settings for ecdhkit.

Settings are read from the environment once and cached. Tests and embedding
applications can call ``reset_settings()`` after changing the environment.

Environment Variables:
    ECDHKIT_MAX_BUFFER_SIZE: Largest input buffer (bytes) accepted by any operation
    ECDHKIT_MAX_THREADS: Worker threads for asynchronous jobs
    ECDHKIT_DEFAULT_CURVE: Curve used by the CLI when none is given
"""

from __future__ import annotations

import os
from threading import Lock
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ecdhkit.errors import InvalidSettingsError, OutOfRangeError

ENV_MAX_BUFFER_SIZE = "ECDHKIT_MAX_BUFFER_SIZE"
ENV_MAX_THREADS = "ECDHKIT_MAX_THREADS"
ENV_DEFAULT_CURVE = "ECDHKIT_DEFAULT_CURVE"

_ENV_BY_FIELD = {
    "max_buffer_size": ENV_MAX_BUFFER_SIZE,
    "max_threads": ENV_MAX_THREADS,
    "default_curve": ENV_DEFAULT_CURVE,
}

# Inputs must be addressable with a signed 32-bit length.
DEFAULT_MAX_BUFFER_SIZE = 2**31 - 1
DEFAULT_CURVE = "prime256v1"


def _default_max_threads() -> int:
    # Same default as concurrent.futures.ThreadPoolExecutor
    cpu_count = os.cpu_count() or 1
    return min(32, cpu_count + 4)


class Settings(BaseModel):
    """Process-wide configuration values."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_buffer_size: int = Field(default=DEFAULT_MAX_BUFFER_SIZE, ge=1)
    max_threads: int = Field(default_factory=_default_max_threads, ge=1)
    default_curve: str = Field(default=DEFAULT_CURVE, min_length=1)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ECDHKIT_* environment variables.

        Raises:
            pydantic.ValidationError: If a variable holds a non-integer or out-of-range value.
        """
        values: dict[str, Any] = {}
        raw_buffer = os.environ.get(ENV_MAX_BUFFER_SIZE, "").strip()
        if raw_buffer:
            values["max_buffer_size"] = raw_buffer
        raw_threads = os.environ.get(ENV_MAX_THREADS, "").strip()
        if raw_threads:
            values["max_threads"] = raw_threads
        raw_curve = os.environ.get(ENV_DEFAULT_CURVE, "").strip()
        if raw_curve:
            values["default_curve"] = raw_curve
        return cls.model_validate(values)


_settings: Settings | None = None
_settings_lock = Lock()


def get_settings() -> Settings:
    """Return the cached settings, reading the environment on first use.

    Raises:
        InvalidSettingsError: If an ECDHKIT_* variable fails validation.
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                try:
                    _settings = Settings.from_env()
                except ValidationError as e:
                    names = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
                    fields = sorted(_ENV_BY_FIELD.get(name, name) for name in names)
                    raise InvalidSettingsError(fields) from e
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next ``get_settings()`` re-reads the environment."""
    global _settings
    with _settings_lock:
        _settings = None


def check_buffer_size(data: bytes, what: str = "buffer") -> None:
    """Raise OutOfRangeError if ``data`` is larger than the configured limit."""
    limit = get_settings().max_buffer_size
    if len(data) > limit:
        raise OutOfRangeError(f"{what} is too big", limit=limit, details={"size": len(data)})
