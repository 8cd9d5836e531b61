"""Tests for raw, PKCS8, SPKI and JWK key import/export."""

import base64
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from joserfc.jwk import ECKey
from pydantic import ValidationError

from ecdhkit.crypto.curves import list_curves, resolve_curve
from ecdhkit.crypto.formats import (
    export_jwk,
    export_key,
    export_pkcs8,
    export_raw,
    export_spki,
    import_jwk,
    import_key,
    import_pkcs8,
    import_raw,
    import_spki,
)
from ecdhkit.crypto.keys import KeyMaterial, generate_key_pair
from ecdhkit.crypto.models import (
    CurveParams,
    EncodedKey,
    KeyFormat,
    KeyType,
    ParamEncoding,
    PointForm,
)
from ecdhkit.crypto.points import decode_point, encode_point
from ecdhkit.errors import InvalidJWKError, InvalidKeyPairError, InvalidKeyTypeError
from ecdhkit.observability.logging import REDACTED_PLACEHOLDER

# DER encoding of the prime256v1 named-curve OID (1.2.840.10045.3.1.7)
P256_OID_DER = bytes.fromhex("06082a8648ce3d030107")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class TestRaw:
    """Tests for raw point export/import."""

    def test_export_raw_is_uncompressed_point(self, alice: KeyMaterial, p256: CurveParams) -> None:
        """Raw export of a P-256 public key is 65 bytes starting with 0x04 and decodes back."""
        raw = export_raw(alice.public_only())

        assert len(raw) == 65
        assert raw[0] == 0x04
        assert decode_point(p256, raw) == alice.public_point

    def test_export_raw_rejects_private_key(self, alice: KeyMaterial) -> None:
        with pytest.raises(InvalidKeyTypeError):
            export_raw(alice)

    def test_import_raw_accepts_compressed(self, alice: KeyMaterial) -> None:
        assert alice.public_point is not None
        key = import_raw("prime256v1", encode_point(alice.public_point, PointForm.COMPRESSED))

        assert key.key_type is KeyType.PUBLIC
        assert key.public_point == alice.public_point


class TestPkcs8:
    """Tests for PKCS8 export/import."""

    def test_named_roundtrip(self, alice: KeyMaterial) -> None:
        der = export_pkcs8(alice)
        key = import_pkcs8(der)

        assert key.private_scalar == alice.private_scalar
        assert key.public_point == alice.public_point
        assert P256_OID_DER in der

    def test_named_export_loads_in_cryptography(self, alice: KeyMaterial) -> None:
        loaded = serialization.load_der_private_key(export_pkcs8(alice), password=None)

        assert isinstance(loaded, ec.EllipticCurvePrivateKey)
        assert loaded.private_numbers().private_value == alice.private_scalar

    def test_explicit_roundtrip(self, p256: CurveParams) -> None:
        """Explicit parameters carry the curve inline instead of its OID."""
        key = generate_key_pair(p256, ParamEncoding.EXPLICIT)
        der = export_pkcs8(key)

        assert P256_OID_DER not in der
        imported = import_pkcs8(der)
        assert imported.curve.name == "prime256v1"
        assert imported.private_scalar == key.private_scalar
        assert imported.public_point == key.public_point

    def test_rejects_public_key(self, alice: KeyMaterial) -> None:
        with pytest.raises(InvalidKeyTypeError):
            export_pkcs8(alice.public_only())

    def test_rejects_mismatched_pair(self, alice: KeyMaterial, bob: KeyMaterial) -> None:
        assert bob.public_point is not None
        alice.set_public_key(encode_point(bob.public_point))

        with pytest.raises(InvalidKeyPairError):
            export_pkcs8(alice)

    def test_import_garbage(self) -> None:
        with pytest.raises(InvalidKeyTypeError):
            import_pkcs8(b"\x30\x03\x02\x01\x00")

    def test_import_non_ec_key(self) -> None:
        der = Ed25519PrivateKey.generate().private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

        with pytest.raises(InvalidKeyTypeError):
            import_pkcs8(der)


class TestSpki:
    """Tests for SPKI export/import."""

    def test_named_roundtrip(self, alice: KeyMaterial) -> None:
        der = export_spki(alice.public_only())
        key = import_spki(der)

        assert key.key_type is KeyType.PUBLIC
        assert key.public_point == alice.public_point
        assert P256_OID_DER in der

    def test_explicit_roundtrip(self, p256: CurveParams) -> None:
        key = generate_key_pair(p256, ParamEncoding.EXPLICIT).public_only()
        der = export_spki(key)

        assert P256_OID_DER not in der
        assert import_spki(der).public_point == key.public_point

    def test_rejects_private_key(self, alice: KeyMaterial) -> None:
        with pytest.raises(InvalidKeyTypeError):
            export_spki(alice)

    def test_import_garbage(self) -> None:
        with pytest.raises(InvalidKeyTypeError):
            import_spki(b"not der at all")

    def test_import_non_ec_key(self) -> None:
        der = (
            Ed25519PrivateKey.generate()
            .public_key()
            .public_bytes(
                serialization.Encoding.DER,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )

        with pytest.raises(InvalidKeyTypeError):
            import_spki(der)


class TestJwkExport:
    """Tests for JWK export."""

    def test_private_members(self, alice: KeyMaterial) -> None:
        jwk = export_jwk(alice)

        assert jwk["kty"] == "EC"
        assert jwk["crv"] == "P-256"
        assert set(jwk) == {"kty", "crv", "x", "y", "d"}

    def test_public_has_no_d(self, alice: KeyMaterial) -> None:
        assert "d" not in export_jwk(alice.public_only())

    def test_members_are_padded_to_field_size(self, p256: CurveParams) -> None:
        """A tiny scalar still encodes as 32 bytes (43 base64url characters)."""
        key = KeyMaterial(p256)
        key.set_private_key(b"\x01")

        jwk = export_jwk(key)

        assert len(jwk["d"]) == 43
        assert jwk["d"] == _b64url(b"\x00" * 31 + b"\x01")
        assert len(jwk["x"]) == 43
        assert len(jwk["y"]) == 43

    def test_p521_width(self) -> None:
        key = generate_key_pair(resolve_curve("P-521"))
        jwk = export_jwk(key)

        # 66 bytes -> 88 base64url characters
        assert len(jwk["x"]) == 88
        assert len(jwk["d"]) == 88
        assert jwk["crv"] == "P-521"


class TestJwkImport:
    """Tests for JWK import."""

    @pytest.mark.parametrize("curve_name", list_curves())
    def test_private_roundtrip(self, curve_name: str) -> None:
        """Export then import reproduces the point and the scalar exactly."""
        key = generate_key_pair(resolve_curve(curve_name))

        imported = import_jwk(curve_name, export_jwk(key))

        assert imported.public_point == key.public_point
        assert imported.private_scalar == key.private_scalar

    def test_public_roundtrip(self, alice: KeyMaterial) -> None:
        imported = import_jwk("P-256", export_jwk(alice.public_only()))

        assert imported.key_type is KeyType.PUBLIC
        assert imported.public_point == alice.public_point

    def test_off_curve_point_rejected(self, alice: KeyMaterial) -> None:
        """x/y that do not satisfy the curve equation are an invalid JWK."""
        assert alice.public_point is not None
        jwk = export_jwk(alice.public_only())
        jwk["y"] = _b64url((alice.public_point.y + 1).to_bytes(32, "big"))

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    def test_mismatched_private_key_rejected(self, alice: KeyMaterial, bob: KeyMaterial) -> None:
        """A d that does not belong to (x, y) is rejected, not imported."""
        jwk = export_jwk(alice)
        jwk["d"] = export_jwk(bob)["d"]

        with patch("ecdhkit.crypto.formats.logger") as mock_logger:
            with pytest.raises(InvalidJWKError):
                import_jwk("prime256v1", jwk)

        mock_logger.warning.assert_called_once()
        args, kwargs = mock_logger.warning.call_args
        assert args == ("ecdhkit.jwk.mismatched_private_key",)
        assert kwargs["curve"] == "prime256v1"
        assert kwargs["jwk"]["d"] == REDACTED_PLACEHOLDER
        assert kwargs["jwk"]["x"] == jwk["x"]

    @pytest.mark.parametrize("missing", ["x", "y"])
    def test_missing_coordinate(self, alice: KeyMaterial, missing: str) -> None:
        jwk = export_jwk(alice)
        del jwk[missing]

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    @pytest.mark.parametrize("bad", ["not base64!", "a+b/", "AAAA===="])
    def test_malformed_base64url(self, alice: KeyMaterial, bad: str) -> None:
        jwk = export_jwk(alice)
        jwk["x"] = bad

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    def test_wrong_kty(self, alice: KeyMaterial) -> None:
        jwk = export_jwk(alice)
        jwk["kty"] = "OKP"

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    def test_crv_mismatch(self, alice: KeyMaterial) -> None:
        jwk = export_jwk(alice)
        jwk["crv"] = "P-384"

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    def test_null_d_rejected(self, alice: KeyMaterial) -> None:
        jwk: dict[str, object] = dict(export_jwk(alice))
        jwk["d"] = None

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    def test_zero_d_rejected(self, alice: KeyMaterial) -> None:
        jwk = export_jwk(alice)
        jwk["d"] = _b64url(b"\x00" * 32)

        with pytest.raises(InvalidJWKError):
            import_jwk("prime256v1", jwk)

    def test_extra_members_ignored(self, alice: KeyMaterial) -> None:
        jwk: dict[str, object] = {**export_jwk(alice), "kid": "k1", "ext": True}

        assert import_jwk("prime256v1", jwk).private_scalar == alice.private_scalar


class TestJwkInterop:
    """JWKs exchanged with joserfc."""

    def test_export_loads_in_joserfc(self, alice: KeyMaterial) -> None:
        jwk = export_jwk(alice)

        key = ECKey.import_key(jwk)

        assert key.as_dict(private=True)["d"] == jwk["d"]
        assert key.as_dict(private=False)["x"] == jwk["x"]

    def test_import_joserfc_key(self) -> None:
        jwk = ECKey.generate_key("P-256", private=True).as_dict(private=True)

        key = import_jwk("prime256v1", jwk)

        assert key.key_type is KeyType.PRIVATE
        assert export_jwk(key)["x"] == jwk["x"]


class TestExportImportKey:
    """Tests for the EncodedKey dispatch."""

    @pytest.mark.parametrize(
        ("fmt", "private"),
        [
            (KeyFormat.RAW, False),
            (KeyFormat.SPKI, False),
            (KeyFormat.PKCS8, True),
            (KeyFormat.JWK, True),
            (KeyFormat.JWK, False),
        ],
    )
    def test_roundtrip(self, alice: KeyMaterial, fmt: KeyFormat, private: bool) -> None:
        key = alice if private else alice.public_only()

        encoded = export_key(key, fmt)
        imported = import_key("prime256v1", encoded)

        assert encoded.format is fmt
        assert imported.public_point == key.public_point
        assert imported.private_scalar == key.private_scalar

    def test_jwk_payload_is_mapping(self, alice: KeyMaterial) -> None:
        encoded = export_key(alice, KeyFormat.JWK)

        assert encoded.data is None
        assert encoded.jwk is not None and encoded.jwk["kty"] == "EC"

    def test_encoded_key_payload_must_match_format(self) -> None:
        with pytest.raises(ValidationError):
            EncodedKey(format=KeyFormat.JWK, data=b"\x04")
        with pytest.raises(ValidationError):
            EncodedKey(format=KeyFormat.RAW, jwk={"kty": "EC"})
