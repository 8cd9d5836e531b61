"""Shared pytest fixtures for ecdhkit tests.

This module provides common fixtures used across multiple test modules:
fresh settings per test, a resolved default curve and generated key pairs.
"""

from __future__ import annotations

from collections.abc import Iterator

import logging

import pytest

from ecdhkit.config import reset_settings
from ecdhkit.crypto.curves import resolve_curve
from ecdhkit.crypto.keys import KeyMaterial, generate_key_pair
from ecdhkit.crypto.models import CurveParams
from ecdhkit.jobs.executors import shutdown_default_executor

DEFAULT_TEST_CURVE = "prime256v1"


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test from default settings and a fresh default executor."""
    for var in ("ECDHKIT_MAX_BUFFER_SIZE", "ECDHKIT_MAX_THREADS", "ECDHKIT_DEFAULT_CURVE"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    package_logger = logging.getLogger("ecdhkit")
    saved_logging = list(package_logger.handlers), package_logger.level, package_logger.propagate
    yield
    shutdown_default_executor()
    reset_settings()
    # CLI invocations install a handler bound to the runner's stderr
    package_logger.handlers[:] = saved_logging[0]
    package_logger.setLevel(saved_logging[1])
    package_logger.propagate = saved_logging[2]


@pytest.fixture
def p256() -> CurveParams:
    return resolve_curve(DEFAULT_TEST_CURVE)


@pytest.fixture
def alice(p256: CurveParams) -> KeyMaterial:
    return generate_key_pair(p256)


@pytest.fixture
def bob(p256: CurveParams) -> KeyMaterial:
    return generate_key_pair(p256)
