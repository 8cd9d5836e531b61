"""EC key material, validity checks and key-pair generation."""

from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec

from ecdhkit.config import check_buffer_size
from ecdhkit.crypto.curves import get_curve_registry
from ecdhkit.crypto.models import CurveParams, KeyType, ParamEncoding, Point
from ecdhkit.crypto.points import decode_point
from ecdhkit.errors import (
    InvalidKeyTypeError,
    InvalidPointError,
    InvalidPrivateKeyError,
    OperationFailedError,
)
from ecdhkit.observability import get_logger

logger = get_logger(__name__)


def is_private_key_valid(order: int, scalar: int) -> bool:
    """Private keys must lie in ``[1, order - 1]`` (SEC1 section 3.2.1)."""
    if isinstance(scalar, bool) or not isinstance(scalar, int):
        return False
    return 1 <= scalar < order


class KeyMaterial:
    """A curve plus an optional public point and an optional private scalar.

    A key with only a point is a public key; with a scalar it is a private
    key. The object is owned by whoever created it and must not be mutated
    while another thread reads it.
    """

    __slots__ = ("_curve", "_public_point", "_private_scalar")

    def __init__(
        self,
        curve: CurveParams,
        public_point: Point | None = None,
        private_scalar: int | None = None,
    ) -> None:
        if public_point is not None and public_point.curve.name != curve.name:
            raise InvalidPointError(
                "Point belongs to a different curve",
                details={"curve": curve.name, "point_curve": public_point.curve.name},
            )
        if private_scalar is not None and not is_private_key_valid(curve.order, private_scalar):
            raise InvalidPrivateKeyError(details={"curve": curve.name})
        self._curve = curve
        self._public_point = public_point
        self._private_scalar = private_scalar

    @property
    def curve(self) -> CurveParams:
        return self._curve

    @property
    def public_point(self) -> Point | None:
        return self._public_point

    @property
    def private_scalar(self) -> int | None:
        return self._private_scalar

    @property
    def key_type(self) -> KeyType:
        return KeyType.PRIVATE if self._private_scalar is not None else KeyType.PUBLIC

    def copy(self) -> KeyMaterial:
        return KeyMaterial(self._curve, self._public_point, self._private_scalar)

    def public_only(self) -> KeyMaterial:
        """Public-only view of this key.

        Raises:
            OperationFailedError: If the key has no public point.
        """
        if self._public_point is None:
            raise OperationFailedError("Key has no public point", details={"curve": self._curve.name})
        return KeyMaterial(self._curve, self._public_point)

    def private_key(self) -> ec.EllipticCurvePrivateKey:
        """Primitive private key object for the scalar.

        Raises:
            InvalidKeyTypeError: If the key holds no private scalar.
            OperationFailedError: If the primitive rejects the scalar.
        """
        if self._private_scalar is None:
            raise InvalidKeyTypeError("Key has no private component")
        try:
            return ec.derive_private_key(
                self._private_scalar, get_curve_registry().ec_curve(self._curve)
            )
        except (ValueError, UnsupportedAlgorithm) as e:
            raise OperationFailedError(
                "Failed to load EC private key", details={"curve": self._curve.name}
            ) from e

    def set_public_key(self, encoded_point: bytes) -> None:
        """Replace the public point with a decoded SEC1 point.

        The private scalar is left as is, so a mismatching point makes the
        pair fail ``is_key_pair_valid``.

        Raises:
            OutOfRangeError: If the input exceeds the configured buffer limit.
            OperationFailedError: If the bytes are not a valid point; the key is unchanged.
        """
        try:
            point = decode_point(self._curve, encoded_point)
        except InvalidPointError as e:
            raise OperationFailedError(
                "Failed to set EC point as the public key", details={"curve": self._curve.name}
            ) from e
        self._public_point = point

    def set_private_key(self, scalar_bytes: bytes) -> None:
        """Replace the private scalar and re-derive the matching public point.

        All checks run before any state changes, so on failure the key is
        exactly as it was.

        Raises:
            OutOfRangeError: If the input exceeds the configured buffer limit.
            InvalidKeyTypeError: If the scalar is outside ``[1, order - 1]``.
            OperationFailedError: If the public point cannot be derived.
        """
        scalar_bytes = bytes(scalar_bytes)
        check_buffer_size(scalar_bytes, "key")
        scalar = int.from_bytes(scalar_bytes, "big")
        if not is_private_key_valid(self._curve.order, scalar):
            raise InvalidKeyTypeError(
                "Private key is not valid for specified curve.",
                details={"curve": self._curve.name},
            )
        try:
            derived = ec.derive_private_key(scalar, get_curve_registry().ec_curve(self._curve))
        except (ValueError, UnsupportedAlgorithm) as e:
            raise OperationFailedError(
                "Failed to generate ECDH public key", details={"curve": self._curve.name}
            ) from e
        point = Point(self._curve, derived.public_key())
        self._private_scalar = scalar
        self._public_point = point

    def __repr__(self) -> str:
        return f"KeyMaterial(curve={self._curve.name!r}, type={self.key_type.value!r})"


def is_key_pair_valid(key: KeyMaterial) -> bool:
    """Full key check: point present and on the curve, scalar in range and matching the point."""
    if key.public_point is None:
        return False
    ec_curve = get_curve_registry().ec_curve(key.curve)
    try:
        numbers = key.public_point.public_key.public_numbers()
        # Re-run the primitive's on-curve check on the stored coordinates
        ec.EllipticCurvePublicNumbers(numbers.x, numbers.y, ec_curve).public_key()
        if key.private_scalar is None:
            return True
        if not is_private_key_valid(key.curve.order, key.private_scalar):
            return False
        derived = ec.derive_private_key(key.private_scalar, ec_curve).public_key()
    except (ValueError, UnsupportedAlgorithm):
        return False
    return derived.public_numbers() == numbers


def generate_key_pair(
    curve: CurveParams, param_encoding: ParamEncoding | None = None
) -> KeyMaterial:
    """Fresh key pair on ``curve`` with a uniformly random scalar in ``[1, order - 1]``.

    ``param_encoding`` only affects how curve parameters are serialized by
    PKCS8/SPKI export; it defaults to the encoding carried by ``curve``.

    Raises:
        OperationFailedError: If the primitive fails to generate a key.
    """
    if param_encoding is not None:
        curve = curve.with_encoding(param_encoding)
    try:
        private_key = ec.generate_private_key(get_curve_registry().ec_curve(curve))
    except (ValueError, UnsupportedAlgorithm) as e:
        raise OperationFailedError("Failed to generate key", details={"curve": curve.name}) from e
    scalar = private_key.private_numbers().private_value
    key = KeyMaterial(curve, Point(curve, private_key.public_key()), scalar)
    logger.debug(
        "ecdhkit.keys.generated",
        curve=curve.name,
        param_encoding=curve.param_encoding.name.lower(),
    )
    return key
