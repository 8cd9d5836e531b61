"""Crypto jobs that run inline or on a worker thread.

A job validates and copies its inputs when it is constructed, so the caller
may discard or mutate its own objects right after creating it. ``run()``
executes inline; ``schedule()`` hands the job to a worker thread and returns
a Future that completes exactly once with the result or the typed error.
Jobs are not cancellable.

Example:
    >>> job = EcKeyPairGenJob("prime256v1", mode=CryptoJobMode.ASYNC)
    >>> key = await job.run_async()
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future
from enum import IntEnum
from typing import ClassVar, Generic, TypeVar

from ecdhkit.crypto.curves import resolve_curve
from ecdhkit.crypto.ecdh import compute_secret
from ecdhkit.crypto.formats import export_key
from ecdhkit.crypto.keys import KeyMaterial, generate_key_pair, is_key_pair_valid
from ecdhkit.crypto.models import EncodedKey, KeyFormat, KeyType, ParamEncoding
from ecdhkit.errors import ECDHKitError, InvalidKeyPairError, InvalidKeyTypeError, OutOfRangeError
from ecdhkit.jobs.executors import get_default_executor
from ecdhkit.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CryptoJobMode(IntEnum):
    SYNC = 0
    ASYNC = 1


class CryptoJob(ABC, Generic[T]):
    """Base class for a unit of crypto work."""

    name: ClassVar[str] = "job"

    def __init__(self, mode: CryptoJobMode | int = CryptoJobMode.SYNC) -> None:
        try:
            self.mode = CryptoJobMode(mode)
        except ValueError as e:
            raise OutOfRangeError(f"Invalid job mode: {mode!r}") from e

    @abstractmethod
    def _execute(self) -> T:
        """Do the work; touches nothing but the job's own copied inputs."""

    def run(self) -> T:
        """Execute the job on the current thread."""
        try:
            result = self._execute()
        except ECDHKitError as e:
            logger.debug("ecdhkit.job.failed", job=self.name, code=e.code)
            raise
        logger.debug("ecdhkit.job.completed", job=self.name)
        return result

    def schedule(self, executor: Executor | None = None) -> Future[T]:
        """Run the job on a worker thread.

        Raises:
            ThreadPoolExhaustedError: If the default executor is saturated.
        """
        pool = executor if executor is not None else get_default_executor()
        return pool.submit(self.run)

    async def run_async(self, executor: Executor | None = None) -> T:
        """Await the job's completion on a worker thread."""
        return await asyncio.wrap_future(self.schedule(executor))

    def dispatch(self, executor: Executor | None = None) -> T | Future[T]:
        """Run inline in SYNC mode, otherwise schedule and return the Future."""
        if self.mode is CryptoJobMode.SYNC:
            return self.run()
        return self.schedule(executor)


class EcKeyPairGenJob(CryptoJob[KeyMaterial]):
    """Generate a key pair on a named curve."""

    name = "ec_keygen"

    def __init__(
        self,
        curve_name: str,
        param_encoding: ParamEncoding | int = ParamEncoding.NAMED,
        mode: CryptoJobMode | int = CryptoJobMode.SYNC,
    ) -> None:
        super().__init__(mode)
        self.curve = resolve_curve(curve_name)
        try:
            self.param_encoding = ParamEncoding(param_encoding)
        except ValueError as e:
            raise OutOfRangeError(
                "Invalid param_encoding specified", details={"param_encoding": param_encoding}
            ) from e

    def _execute(self) -> KeyMaterial:
        return generate_key_pair(self.curve, self.param_encoding)


class EcdhBitsJob(CryptoJob[bytes]):
    """Derive the ECDH shared secret from a private key and a peer public key."""

    name = "ecdh_bits"

    def __init__(
        self,
        curve_name: str,
        public_key: KeyMaterial,
        private_key: KeyMaterial,
        mode: CryptoJobMode | int = CryptoJobMode.SYNC,
    ) -> None:
        super().__init__(mode)
        self.curve = resolve_curve(curve_name)
        if private_key.key_type is not KeyType.PRIVATE or public_key.key_type is not KeyType.PUBLIC:
            raise InvalidKeyTypeError(
                "ECDH needs a private key and a public key",
                details={
                    "private_key_type": private_key.key_type.value,
                    "public_key_type": public_key.key_type.value,
                },
            )
        if private_key.curve.name != self.curve.name or public_key.curve.name != self.curve.name:
            raise InvalidKeyTypeError(
                "Keys are not on the requested curve", details={"curve": self.curve.name}
            )
        self.public_key = public_key.copy()
        self.private_key = private_key.copy()

    def _execute(self) -> bytes:
        if not is_key_pair_valid(self.public_key):
            raise InvalidKeyPairError("Invalid peer public key", details={"curve": self.curve.name})
        peer = self.public_key.public_point
        assert peer is not None
        return compute_secret(self.private_key, peer)


class EcKeyExportJob(CryptoJob[EncodedKey]):
    """Export a key in one of the supported formats."""

    name = "ec_key_export"

    def __init__(
        self,
        key: KeyMaterial,
        fmt: KeyFormat | str,
        mode: CryptoJobMode | int = CryptoJobMode.SYNC,
    ) -> None:
        super().__init__(mode)
        try:
            self.format = KeyFormat(fmt)
        except ValueError as e:
            raise OutOfRangeError(f"Invalid key format: {fmt!r}") from e
        self.key = key.copy()

    def _execute(self) -> EncodedKey:
        return export_key(self.key, self.format)
