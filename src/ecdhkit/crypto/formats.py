"""Import and export of EC keys as raw points, PKCS8, SPKI and JWK.

Key type rules:
    raw   public keys only (uncompressed SEC1 point)
    pkcs8 private keys only
    spki  public keys only
    jwk   either; ``d`` is present only for private keys

PKCS8 and SPKI follow the curve's ``param_encoding``: named curves are
written by ``cryptography`` with the curve OID, explicit parameters by
``ecdsa``, which can also read them back.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Mapping
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from ecdsa import SigningKey, VerifyingKey
from ecdsa.curves import UnknownCurveError
from ecdsa.der import UnexpectedDER
from ecdsa.errors import MalformedPointError
from pydantic import ValidationError

from ecdhkit.crypto.curves import get_curve_registry, jwk_curve_name, resolve_curve
from ecdhkit.crypto.keys import KeyMaterial, is_key_pair_valid, is_private_key_valid
from ecdhkit.crypto.models import (
    EcJwk,
    EncodedKey,
    KeyFormat,
    KeyType,
    ParamEncoding,
    Point,
    PointForm,
)
from ecdhkit.crypto.points import decode_point, encode_point, point_from_coordinates
from ecdhkit.errors import (
    InvalidCurveError,
    InvalidJWKError,
    InvalidKeyPairError,
    InvalidKeyTypeError,
    InvalidPointError,
    OperationFailedError,
)
from ecdhkit.observability import get_logger, sanitize_for_logging

logger = get_logger(__name__)

_BASE64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")

_ECDSA_DER_ERRORS = (UnexpectedDER, MalformedPointError, UnknownCurveError, ValueError)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode_int(value: str, member: str) -> int:
    if not _BASE64URL_PATTERN.match(value):
        raise InvalidJWKError(f"JWK member {member!r} is not base64url", details={"member": member})
    try:
        raw = base64.b64decode(value + "=" * (-len(value) % 4), altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise InvalidJWKError(
            f"JWK member {member!r} is not base64url", details={"member": member}
        ) from e
    return int.from_bytes(raw, "big")


def _require_type(key: KeyMaterial, expected: KeyType, fmt: KeyFormat) -> None:
    if key.key_type is not expected:
        raise InvalidKeyTypeError(
            f"{fmt.value} export requires a {expected.value} key",
            details={"format": fmt.value, "key_type": key.key_type.value},
        )


def _require_point(key: KeyMaterial) -> Point:
    if key.public_point is None:
        raise OperationFailedError("Key has no public point", details={"curve": key.curve.name})
    return key.public_point


# --- export ---


def export_raw(key: KeyMaterial) -> bytes:
    """Uncompressed SEC1 encoding of a public key."""
    _require_type(key, KeyType.PUBLIC, KeyFormat.RAW)
    return encode_point(_require_point(key), PointForm.UNCOMPRESSED)


def export_pkcs8(key: KeyMaterial) -> bytes:
    """DER PrivateKeyInfo for a private key.

    Raises:
        InvalidKeyTypeError: If ``key`` is a public key.
        InvalidKeyPairError: If the scalar and point disagree.
    """
    _require_type(key, KeyType.PRIVATE, KeyFormat.PKCS8)
    if not is_key_pair_valid(key):
        raise InvalidKeyPairError(details={"curve": key.curve.name})
    if key.curve.param_encoding is ParamEncoding.EXPLICIT:
        signing_key = SigningKey.from_secret_exponent(
            key.private_scalar, curve=get_curve_registry().ecdsa_curve(key.curve)
        )
        return signing_key.to_der(format="pkcs8", curve_parameters_encoding="explicit")
    return key.private_key().private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def export_spki(key: KeyMaterial) -> bytes:
    """DER SubjectPublicKeyInfo for a public key.

    Raises:
        InvalidKeyTypeError: If ``key`` holds a private scalar.
    """
    _require_type(key, KeyType.PUBLIC, KeyFormat.SPKI)
    point = _require_point(key)
    if key.curve.param_encoding is ParamEncoding.EXPLICIT:
        verifying_key = VerifyingKey.from_string(
            encode_point(point, PointForm.UNCOMPRESSED),
            curve=get_curve_registry().ecdsa_curve(key.curve),
        )
        return verifying_key.to_der(curve_parameters_encoding="explicit")
    return point.public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def export_jwk(key: KeyMaterial) -> dict[str, str]:
    """RFC 7518 EC JWK members for ``key``.

    ``x``, ``y`` and ``d`` are each zero-padded to the field size before
    base64url encoding.

    Raises:
        OperationFailedError: If the affine coordinates cannot be retrieved.
    """
    point = _require_point(key)
    width = key.curve.field_size_bytes
    try:
        x, y = point.coordinates()
    except ValueError as e:
        raise OperationFailedError(
            "Failed to get EC public key coordinates", details={"curve": key.curve.name}
        ) from e
    jwk = {
        "kty": "EC",
        "crv": jwk_curve_name(key.curve),
        "x": _b64url_encode(x.to_bytes(width, "big")),
        "y": _b64url_encode(y.to_bytes(width, "big")),
    }
    if key.private_scalar is not None:
        jwk["d"] = _b64url_encode(key.private_scalar.to_bytes(width, "big"))
    return jwk


def export_key(key: KeyMaterial, fmt: KeyFormat) -> EncodedKey:
    """Export ``key`` in ``fmt``."""
    fmt = KeyFormat(fmt)
    if fmt is KeyFormat.RAW:
        return EncodedKey(format=fmt, data=export_raw(key))
    if fmt is KeyFormat.PKCS8:
        return EncodedKey(format=fmt, data=export_pkcs8(key))
    if fmt is KeyFormat.SPKI:
        return EncodedKey(format=fmt, data=export_spki(key))
    if fmt is KeyFormat.JWK:
        return EncodedKey(format=fmt, jwk=export_jwk(key))
    raise AssertionError(f"unhandled key format: {fmt!r}")


# --- import ---


def import_raw(curve_name: str, data: bytes) -> KeyMaterial:
    """Public key from a SEC1 point in any form."""
    curve = resolve_curve(curve_name)
    return KeyMaterial(curve, decode_point(curve, data))


def import_jwk(curve_name: str, jwk: Mapping[str, Any] | EcJwk) -> KeyMaterial:
    """Key from RFC 7518 EC JWK members.

    When ``d`` is present the public point is re-derived from it and must
    equal ``(x, y)``; a mismatched pair is rejected rather than imported.

    Raises:
        InvalidCurveError: If ``curve_name`` is unknown.
        InvalidJWKError: If members are missing or malformed, the point is
            not on the curve, ``d`` is out of range, or ``d`` does not match ``(x, y)``.
    """
    curve = resolve_curve(curve_name)
    if isinstance(jwk, EcJwk):
        model = jwk
    else:
        try:
            model = EcJwk.model_validate(dict(jwk))
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidJWKError(details={"curve": curve.name}) from e

    if model.crv is not None:
        try:
            crv_matches = resolve_curve(model.crv).name == curve.name
        except InvalidCurveError:
            crv_matches = False
        if not crv_matches:
            raise InvalidJWKError(
                "JWK crv does not match the requested curve",
                details={"curve": curve.name, "crv": model.crv},
            )

    x = _b64url_decode_int(model.x, "x")
    y = _b64url_decode_int(model.y, "y")
    try:
        point = point_from_coordinates(curve, x, y)
    except InvalidPointError as e:
        raise InvalidJWKError(details={"curve": curve.name}) from e

    if model.d is None:
        return KeyMaterial(curve, point)

    scalar = _b64url_decode_int(model.d, "d")
    if not is_private_key_valid(curve.order, scalar):
        raise InvalidJWKError(details={"curve": curve.name})
    key = KeyMaterial(curve, point, scalar)
    if not is_key_pair_valid(key):
        logger.warning(
            "ecdhkit.jwk.mismatched_private_key",
            curve=curve.name,
            jwk=sanitize_for_logging(model.model_dump(exclude_none=True)),
        )
        raise InvalidJWKError(
            "JWK private key does not match its public coordinates",
            details={"curve": curve.name},
        )
    return key


def import_spki(der: bytes) -> KeyMaterial:
    """Public key from DER SubjectPublicKeyInfo with named or explicit parameters.

    Raises:
        InvalidKeyTypeError: If ``der`` is not an EC public key on a built-in curve.
    """
    der = bytes(der)
    registry = get_curve_registry()
    try:
        loaded = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm):
        loaded = None
    if loaded is not None:
        if not isinstance(loaded, ec.EllipticCurvePublicKey):
            raise InvalidKeyTypeError("SPKI does not hold an EC public key")
        try:
            curve = registry.by_ec_curve(loaded.curve)
        except InvalidCurveError as e:
            raise InvalidKeyTypeError("SPKI key uses an unsupported curve") from e
        return KeyMaterial(curve, Point(curve, loaded))

    try:
        verifying_key = VerifyingKey.from_der(der)
        curve = registry.by_ecdsa_curve(verifying_key.curve).with_encoding(ParamEncoding.EXPLICIT)
        point = decode_point(curve, verifying_key.to_string("uncompressed"))
    except (*_ECDSA_DER_ERRORS, InvalidCurveError, InvalidPointError) as e:
        raise InvalidKeyTypeError("Invalid SPKI EC public key") from e
    return KeyMaterial(curve, point)


def import_pkcs8(der: bytes) -> KeyMaterial:
    """Private key from DER PrivateKeyInfo with named or explicit parameters.

    Raises:
        InvalidKeyTypeError: If ``der`` is not an EC private key on a built-in curve.
    """
    der = bytes(der)
    registry = get_curve_registry()
    try:
        loaded = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        loaded = None
    if loaded is not None:
        if not isinstance(loaded, ec.EllipticCurvePrivateKey):
            raise InvalidKeyTypeError("PKCS8 does not hold an EC private key")
        try:
            curve = registry.by_ec_curve(loaded.curve)
        except InvalidCurveError as e:
            raise InvalidKeyTypeError("PKCS8 key uses an unsupported curve") from e
        scalar = loaded.private_numbers().private_value
        return KeyMaterial(curve, Point(curve, loaded.public_key()), scalar)

    try:
        signing_key = SigningKey.from_der(der)
        curve = registry.by_ecdsa_curve(signing_key.curve).with_encoding(ParamEncoding.EXPLICIT)
    except (*_ECDSA_DER_ERRORS, InvalidCurveError) as e:
        raise InvalidKeyTypeError("Invalid PKCS8 EC private key") from e
    key = KeyMaterial(curve)
    key.set_private_key(signing_key.to_string())
    return key


def import_key(curve_name: str, encoded: EncodedKey) -> KeyMaterial:
    """Import an EncodedKey; ``curve_name`` applies to raw and JWK keys."""
    fmt = encoded.format
    if fmt is KeyFormat.RAW:
        return import_raw(curve_name, encoded.data or b"")
    if fmt is KeyFormat.PKCS8:
        return import_pkcs8(encoded.data or b"")
    if fmt is KeyFormat.SPKI:
        return import_spki(encoded.data or b"")
    if fmt is KeyFormat.JWK:
        return import_jwk(curve_name, encoded.jwk or {})
    raise AssertionError(f"unhandled key format: {fmt!r}")
