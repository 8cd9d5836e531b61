"""Value types shared by the ecdhkit crypto layer."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Literal

from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator


class ParamEncoding(IntEnum):
    """How curve parameters are written into PKCS8/SPKI structures.

    Values match OpenSSL's OPENSSL_EC_EXPLICIT_CURVE / OPENSSL_EC_NAMED_CURVE.
    """

    EXPLICIT = 0
    NAMED = 1


class PointForm(IntEnum):
    """SEC1 point conversion forms; values are the leading tag bytes."""

    COMPRESSED = 2
    UNCOMPRESSED = 4
    HYBRID = 6


class KeyType(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class KeyFormat(str, Enum):
    RAW = "raw"
    PKCS8 = "pkcs8"
    SPKI = "spki"
    JWK = "jwk"


class CurveParams(BaseModel):
    """Immutable description of a named curve.

    ``degree_bits`` is the field degree (bit length of the field prime) and
    drives point/secret widths; ``order`` bounds private scalars and drives
    signature widths.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Short name, e.g. prime256v1.")
    nist_name: str | None = Field(default=None, description="NIST alias, e.g. P-256.")
    jwk_name: str = Field(..., description="Value used for the JWK crv member.")
    oid: str = Field(..., description="Dotted object identifier of the named curve.")
    degree_bits: int = Field(..., gt=0)
    order: int = Field(..., gt=1)
    param_encoding: ParamEncoding = ParamEncoding.NAMED

    @property
    def field_size_bytes(self) -> int:
        return (self.degree_bits + 7) // 8

    @property
    def order_size_bytes(self) -> int:
        return (self.order.bit_length() + 7) // 8

    def with_encoding(self, param_encoding: ParamEncoding) -> CurveParams:
        return self.model_copy(update={"param_encoding": ParamEncoding(param_encoding)})


class Point:
    """A validated, finite point on a named curve.

    Instances wrap the primitive library's public key object, which checks
    the curve equation on construction, so a Point is never off-curve and
    never the point at infinity.
    """

    __slots__ = ("_curve", "_public_key")

    def __init__(self, curve: CurveParams, public_key: ec.EllipticCurvePublicKey) -> None:
        self._curve = curve
        self._public_key = public_key

    @property
    def curve(self) -> CurveParams:
        return self._curve

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._public_key

    @property
    def x(self) -> int:
        return self._public_key.public_numbers().x

    @property
    def y(self) -> int:
        return self._public_key.public_numbers().y

    def coordinates(self) -> tuple[int, int]:
        numbers = self._public_key.public_numbers()
        return numbers.x, numbers.y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self._curve.name == other._curve.name and self.coordinates() == other.coordinates()

    def __hash__(self) -> int:
        return hash((self._curve.name, *self.coordinates()))

    def __repr__(self) -> str:
        return f"Point(curve={self._curve.name!r}, x={self.x:#x})"


class EncodedKey(BaseModel):
    """A serialized key: DER/octet bytes for raw, PKCS8 and SPKI, a mapping for JWK."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    format: KeyFormat
    data: bytes | None = None
    jwk: dict[str, str] | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> EncodedKey:
        if self.format is KeyFormat.JWK:
            if self.jwk is None or self.data is not None:
                raise ValueError("JWK keys carry a mapping and no bytes")
        elif self.data is None or self.jwk is not None:
            raise ValueError(f"{self.format.value} keys carry bytes and no mapping")
        return self


class EcJwk(BaseModel):
    """EC members of a JSON Web Key (RFC 7518 section 6.2).

    Members other than the EC ones (``ext``, ``key_ops``, ``kid``...) are kept
    but not interpreted.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    kty: Literal["EC"] = "EC"
    crv: StrictStr | None = None
    x: StrictStr
    y: StrictStr
    d: StrictStr | None = None

    @model_validator(mode="before")
    @classmethod
    def _reject_null_private(cls, data: Any) -> Any:
        # An explicit null is not the same as an absent "d"
        if isinstance(data, dict) and "d" in data and data["d"] is None:
            raise ValueError("d must be a string when present")
        return data
