"""Conversion of ECDSA signatures between DER and fixed-width ``r || s``.

OpenSSL produces and consumes ``SEQUENCE { INTEGER r, INTEGER s }``; Web
Crypto expects ``r`` and ``s`` concatenated, each big-endian and zero-padded
to the byte length of the curve order. Both directions return ``b""`` for
malformed input instead of raising.
"""

from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from ecdhkit.config import check_buffer_size
from ecdhkit.crypto.models import CurveParams


def group_order_size(curve: CurveParams) -> int:
    """Byte length of the curve order."""
    return curve.order_size_bytes


def to_fixed_width(order_size: int, der_signature: bytes) -> bytes:
    """DER signature to ``r || s``; ``b""`` if the DER is malformed or r/s do not fit."""
    der_signature = bytes(der_signature)
    check_buffer_size(der_signature, "signature")
    if order_size <= 0:
        return b""
    try:
        r, s = decode_dss_signature(der_signature)
        return r.to_bytes(order_size, "big") + s.to_bytes(order_size, "big")
    except (ValueError, OverflowError):
        return b""


def to_der(order_size: int, fixed_signature: bytes) -> bytes:
    """``r || s`` to a DER signature; ``b""`` unless the input is exactly ``2 * order_size`` bytes."""
    fixed_signature = bytes(fixed_signature)
    check_buffer_size(fixed_signature, "signature")
    if order_size <= 0 or len(fixed_signature) != 2 * order_size:
        return b""
    r = int.from_bytes(fixed_signature[:order_size], "big")
    s = int.from_bytes(fixed_signature[order_size:], "big")
    return encode_dss_signature(r, s)
