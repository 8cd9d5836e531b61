"""ecdhkit Error Taxonomy.

This module defines the error hierarchy for ecdhkit, providing structured
error handling with specific error codes and context information.

Every error is recoverable: callers get a typed exception carrying a stable
code, a message and a details dict. Details never contain key material.
"""

from __future__ import annotations

from typing import Any


class ECDHKitError(Exception):
    """Base exception for all ecdhkit errors.

    Attributes:
        code: Error code following the ecdhkit:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidCurveError(ECDHKitError):
    """Raised when a curve name does not match any built-in curve.

    Attributes:
        curve_name: The name that failed to resolve
    """

    def __init__(self, curve_name: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="ecdhkit:curve/invalid",
            message=f"Invalid EC curve name: {curve_name!r}",
            details={"curve_name": curve_name, **(details or {})},
        )
        self.curve_name = curve_name


class InvalidPointError(ECDHKitError):
    """Raised when encoded point bytes are malformed or not on the curve."""

    def __init__(self, message: str = "Invalid EC point", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="ecdhkit:point/invalid", message=message, details=details or {})


class InvalidPrivateKeyError(ECDHKitError):
    """Raised when a private scalar is outside ``[1, order - 1]``."""

    def __init__(
        self,
        message: str = "Private key is not valid for specified curve.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code="ecdhkit:key/invalid_private", message=message, details=details or {})


class InvalidKeyTypeError(ECDHKitError):
    """Raised when a key has the wrong type for an operation.

    Covers private/public mismatches (e.g. exporting a private key as SPKI)
    and private scalars rejected by a mutating setter.
    """

    def __init__(self, message: str = "Invalid key type", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="ecdhkit:key/invalid_type", message=message, details=details or {})


class InvalidKeyPairError(ECDHKitError):
    """Raised when a key pair fails the full validity check."""

    def __init__(
        self, message: str = "Invalid key pair", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(code="ecdhkit:key/invalid_pair", message=message, details=details or {})


class InvalidJWKError(ECDHKitError):
    """Raised when a JWK is missing fields, has malformed fields, or describes an invalid key."""

    def __init__(
        self, message: str = "Invalid JWK EC key", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(code="ecdhkit:jwk/invalid", message=message, details=details or {})


class OperationFailedError(ECDHKitError):
    """Raised when the underlying primitive reports a failure not otherwise classified."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="ecdhkit:crypto/operation_failed", message=message, details=details or {}
        )


class OutOfRangeError(ECDHKitError):
    """Raised when an input exceeds a hard limit or an enum code is out of range.

    Attributes:
        limit: The limit that was exceeded, when there is one
    """

    def __init__(
        self,
        message: str,
        limit: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details_dict: dict[str, Any] = {}
        if limit is not None:
            details_dict["limit"] = limit
        if details:
            details_dict.update(details)
        super().__init__(code="ecdhkit:input/out_of_range", message=message, details=details_dict)
        self.limit = limit


class InvalidSettingsError(ECDHKitError):
    """Raised when an ECDHKIT_* environment variable holds an unusable value."""

    def __init__(self, fields: list[str], details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="ecdhkit:config/invalid",
            message=f"Invalid settings: {', '.join(fields)}",
            details={"fields": fields, **(details or {})},
        )
        self.fields = fields


class ThreadPoolExhaustedError(ECDHKitError):
    """Raised when the worker pool is full and cannot accept another job.

    Attributes:
        max_threads: Maximum number of threads in the pool
        active_threads: Current number of active threads
    """

    def __init__(
        self,
        max_threads: int,
        active_threads: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = (
            f"Thread pool exhausted: {active_threads}/{max_threads} threads in use. "
            "Retry the job later."
        )
        super().__init__(
            code="ecdhkit:jobs/thread_pool_exhausted",
            message=message,
            details={
                "max_threads": max_threads,
                "active_threads": active_threads,
                **(details or {}),
            },
        )
        self.max_threads = max_threads
        self.active_threads = active_threads
