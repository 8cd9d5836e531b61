"""ecdhkit cryptographic layer.

This package provides ECDH key agreement and the key handling around it:
- Named curve lookup (NIST aliases and short names)
- Key-pair generation and validity checks
- SEC1 point encoding (compressed, uncompressed, hybrid)
- Key import/export as raw points, PKCS8, SPKI and JWK
- ECDSA signature conversion between DER and fixed-width ``r || s``

Public exports:
    curves: Curve registry submodule
    points: Point codec submodule
    keys: Key material, validation and generation submodule
    ecdh: Key agreement submodule
    formats: Key import/export submodule
    signatures: Signature conversion submodule
"""

from ecdhkit.crypto import curves, ecdh, formats, keys, points, signatures
from ecdhkit.crypto.curves import get_curve_registry, key_detail, list_curves, resolve_curve
from ecdhkit.crypto.ecdh import ECDH, compute_secret
from ecdhkit.crypto.formats import export_key, import_jwk, import_key
from ecdhkit.crypto.keys import (
    KeyMaterial,
    generate_key_pair,
    is_key_pair_valid,
    is_private_key_valid,
)
from ecdhkit.crypto.models import (
    CurveParams,
    EcJwk,
    EncodedKey,
    KeyFormat,
    KeyType,
    ParamEncoding,
    Point,
    PointForm,
)
from ecdhkit.crypto.points import convert_key, decode_point, encode_point
from ecdhkit.crypto.signatures import to_der, to_fixed_width

__all__ = [
    "curves",
    "ecdh",
    "formats",
    "keys",
    "points",
    "signatures",
    "CurveParams",
    "ECDH",
    "EcJwk",
    "EncodedKey",
    "KeyFormat",
    "KeyMaterial",
    "KeyType",
    "ParamEncoding",
    "Point",
    "PointForm",
    "compute_secret",
    "convert_key",
    "decode_point",
    "encode_point",
    "export_key",
    "generate_key_pair",
    "get_curve_registry",
    "import_jwk",
    "import_key",
    "is_key_pair_valid",
    "is_private_key_valid",
    "key_detail",
    "list_curves",
    "resolve_curve",
    "to_der",
    "to_fixed_width",
]
