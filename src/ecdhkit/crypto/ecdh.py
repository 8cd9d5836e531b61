"""ECDH key agreement.

``compute_secret`` is the stateless operation; ``ECDH`` is a stateful
wrapper holding one key pair that can be generated, inspected and replaced
piecewise.
"""

from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec

from ecdhkit.crypto.curves import resolve_curve
from ecdhkit.crypto.keys import KeyMaterial, generate_key_pair, is_key_pair_valid
from ecdhkit.crypto.models import CurveParams, Point, PointForm
from ecdhkit.crypto.points import decode_point, encode_point
from ecdhkit.errors import InvalidKeyPairError, InvalidPointError, OperationFailedError
from ecdhkit.observability import get_logger

logger = get_logger(__name__)


def compute_secret(self_key: KeyMaterial, peer: Point | bytes) -> bytes:
    """Shared secret: X coordinate of ``d * Q``, big-endian.

    The output is always ``ceil(degree_bits / 8)`` bytes, left-padded with
    zeros, whatever the numeric value of the secret.

    ``self_key`` is checked before ``peer`` is looked at, so a failure never
    reveals which side was at fault.

    Raises:
        InvalidKeyPairError: If ``self_key`` is not a valid private key pair.
        InvalidPointError: If ``peer`` does not decode to a point on the curve.
        OperationFailedError: If the primitive fails to compute the secret.
    """
    curve = self_key.curve
    if self_key.private_scalar is None or not is_key_pair_valid(self_key):
        raise InvalidKeyPairError(details={"curve": curve.name})

    if isinstance(peer, Point):
        if peer.curve.name != curve.name:
            raise InvalidPointError(
                "Peer point is on a different curve",
                details={"curve": curve.name, "peer_curve": peer.curve.name},
            )
        peer_point = peer
    else:
        peer_point = decode_point(curve, peer)

    size = curve.field_size_bytes
    try:
        secret = self_key.private_key().exchange(ec.ECDH(), peer_point.public_key)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise OperationFailedError("Failed to compute ECDH key", details={"curve": curve.name}) from e
    logger.debug("ecdhkit.ecdh.secret_computed", curve=curve.name, length=size)
    return secret.rjust(size, b"\x00")


class ECDH:
    """One ECDH key pair on a named curve.

    Example:
        >>> alice, bob = ECDH("prime256v1"), ECDH("prime256v1")
        >>> alice.generate_keys(); bob.generate_keys()
        >>> alice.compute_secret(bob.get_public_key()) == bob.compute_secret(alice.get_public_key())
        True
    """

    def __init__(self, curve_name: str) -> None:
        self._key = KeyMaterial(resolve_curve(curve_name))

    @property
    def curve(self) -> CurveParams:
        return self._key.curve

    @property
    def key(self) -> KeyMaterial:
        return self._key

    def generate_keys(self) -> None:
        """Replace the key pair with a freshly generated one."""
        self._key = generate_key_pair(self._key.curve)

    def compute_secret(self, peer_public_key: bytes) -> bytes:
        return compute_secret(self._key, peer_public_key)

    def get_public_key(self, form: PointForm | int = PointForm.UNCOMPRESSED) -> bytes:
        """Encoded public point.

        Raises:
            OperationFailedError: If no public key is set or ``form`` is unknown.
        """
        point = self._key.public_point
        if point is None:
            raise OperationFailedError("Failed to get ECDH public key")
        return encode_point(point, form)

    def get_private_key(self) -> bytes:
        """Private scalar as big-endian bytes with no leading zero bytes.

        Raises:
            OperationFailedError: If no private key is set.
        """
        scalar = self._key.private_scalar
        if scalar is None:
            raise OperationFailedError("Failed to get ECDH private key")
        return scalar.to_bytes((scalar.bit_length() + 7) // 8, "big")

    def set_public_key(self, encoded_point: bytes) -> None:
        self._key.set_public_key(encoded_point)

    def set_private_key(self, scalar_bytes: bytes) -> None:
        self._key.set_private_key(scalar_bytes)
