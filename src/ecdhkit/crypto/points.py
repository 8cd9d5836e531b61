"""SEC1 octet-string encoding of curve points.

Forms (``PointForm``):
    UNCOMPRESSED  04 || X || Y
    COMPRESSED    02|03 || X      (tag carries the parity of Y)
    HYBRID        06|07 || X || Y (tag carries the parity of Y)

Coordinates are big-endian and exactly ``ceil(degree_bits / 8)`` bytes wide.
"""

from __future__ import annotations

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ecdhkit.config import check_buffer_size
from ecdhkit.crypto.curves import get_curve_registry, resolve_curve
from ecdhkit.crypto.models import CurveParams, Point, PointForm
from ecdhkit.errors import InvalidPointError, OperationFailedError

_HYBRID_EVEN = 0x06
_HYBRID_ODD = 0x07
_UNCOMPRESSED_TAG = 0x04


def _coerce_form(form: PointForm | int) -> PointForm:
    try:
        return PointForm(form)
    except ValueError as e:
        raise OperationFailedError(
            f"Unsupported point conversion form: {form!r}", details={"form": form}
        ) from e


def encode_point(point: Point, form: PointForm | int = PointForm.UNCOMPRESSED) -> bytes:
    """Serialize ``point`` in the requested SEC1 form.

    Raises:
        OperationFailedError: If ``form`` is not a known conversion form.
    """
    form = _coerce_form(form)
    if form is PointForm.COMPRESSED:
        return point.public_key.public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
        )
    uncompressed = point.public_key.public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
    )
    if form is PointForm.HYBRID:
        tag = _HYBRID_ODD if point.y & 1 else _HYBRID_EVEN
        return bytes([tag]) + uncompressed[1:]
    return uncompressed


def _expected_length(curve: CurveParams, tag: int) -> int | None:
    width = curve.field_size_bytes
    if tag in (0x02, 0x03):
        return 1 + width
    if tag in (_UNCOMPRESSED_TAG, _HYBRID_EVEN, _HYBRID_ODD):
        return 1 + 2 * width
    return None


def decode_point(curve: CurveParams, data: bytes) -> Point:
    """Parse a SEC1 octet string into a validated point on ``curve``.

    The infinity encoding (a single zero byte) is rejected, as is anything
    whose length or tag does not fit the curve, a hybrid tag whose parity
    disagrees with Y, and coordinates that do not satisfy the curve equation.

    Raises:
        OutOfRangeError: If ``data`` exceeds the configured buffer limit.
        InvalidPointError: If the encoding is not a valid finite point on ``curve``.
    """
    data = bytes(data)
    check_buffer_size(data, "point")
    if not data:
        raise InvalidPointError("Empty point encoding")
    tag = data[0]
    expected = _expected_length(curve, tag)
    if expected is None or len(data) != expected:
        raise InvalidPointError(
            "Point encoding has an invalid tag or length for the curve",
            details={"curve": curve.name, "length": len(data)},
        )
    if tag in (_HYBRID_EVEN, _HYBRID_ODD):
        if (data[-1] & 1) != (tag & 1):
            raise InvalidPointError(
                "Hybrid point tag does not match the parity of Y", details={"curve": curve.name}
            )
        data = bytes([_UNCOMPRESSED_TAG]) + data[1:]
    try:
        public_key = ec.EllipticCurvePublicKey.from_encoded_point(
            get_curve_registry().ec_curve(curve), data
        )
    except ValueError as e:
        raise InvalidPointError("Point is not on the curve", details={"curve": curve.name}) from e
    return Point(curve, public_key)


def point_from_coordinates(curve: CurveParams, x: int, y: int) -> Point:
    """Build a point from affine coordinates, checking the curve equation.

    Raises:
        InvalidPointError: If ``(x, y)`` is not a point on ``curve``.
    """
    if x < 0 or y < 0:
        raise InvalidPointError("Coordinates must be non-negative", details={"curve": curve.name})
    numbers = ec.EllipticCurvePublicNumbers(x, y, get_curve_registry().ec_curve(curve))
    try:
        public_key = numbers.public_key()
    except ValueError as e:
        raise InvalidPointError("Point is not on the curve", details={"curve": curve.name}) from e
    return Point(curve, public_key)


def convert_key(data: bytes, curve_name: str, form: PointForm | int) -> bytes:
    """Re-encode a point given in any SEC1 form into ``form``.

    An empty input yields an empty result.

    Raises:
        OutOfRangeError: If ``data`` exceeds the configured buffer limit.
        InvalidCurveError: If ``curve_name`` is unknown.
        OperationFailedError: If ``data`` is not a valid point on the curve.
    """
    data = bytes(data)
    check_buffer_size(data, "key")
    if not data:
        return b""
    curve = resolve_curve(curve_name)
    try:
        point = decode_point(curve, data)
    except InvalidPointError as e:
        raise OperationFailedError(
            "Failed to decode EC point", details={"curve": curve.name}
        ) from e
    return encode_point(point, form)
