"""Synchronous and worker-thread execution of crypto jobs."""

from ecdhkit.jobs.crypto_jobs import (
    CryptoJob,
    CryptoJobMode,
    EcdhBitsJob,
    EcKeyExportJob,
    EcKeyPairGenJob,
)
from ecdhkit.jobs.executors import BoundedExecutor, get_default_executor, shutdown_default_executor

__all__ = [
    "BoundedExecutor",
    "CryptoJob",
    "CryptoJobMode",
    "EcKeyExportJob",
    "EcKeyPairGenJob",
    "EcdhBitsJob",
    "get_default_executor",
    "shutdown_default_executor",
]
