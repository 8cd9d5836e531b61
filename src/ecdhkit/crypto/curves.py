"""Built-in named curve table and name resolution.

Names resolve the way OpenSSL does: the NIST alias (``P-256``) is tried
first, then the object-identifier short name (``prime256v1``). Matching is
exact and case-sensitive.

The table is built lazily on first use, filtered to the curves the linked
OpenSSL reports as supported, and never mutated afterwards, so it can be
shared across worker threads without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING

from cryptography.hazmat.backends.openssl.backend import backend as openssl_backend
from cryptography.hazmat.primitives.asymmetric import ec
from ecdsa import curves as ecdsa_curves

from ecdhkit.crypto.models import CurveParams, ParamEncoding
from ecdhkit.errors import InvalidCurveError
from ecdhkit.observability import get_logger

if TYPE_CHECKING:
    from ecdhkit.crypto.keys import KeyMaterial

logger = get_logger(__name__)


@dataclass(frozen=True)
class _CurveEntry:
    name: str
    nist_name: str | None
    jwk_name: str
    ec_type: type[ec.EllipticCurve]
    ecdsa_curve: ecdsa_curves.Curve


_BUILTIN_CURVES: tuple[_CurveEntry, ...] = (
    _CurveEntry("prime192v1", "P-192", "P-192", ec.SECP192R1, ecdsa_curves.NIST192p),
    _CurveEntry("secp224r1", "P-224", "P-224", ec.SECP224R1, ecdsa_curves.NIST224p),
    _CurveEntry("prime256v1", "P-256", "P-256", ec.SECP256R1, ecdsa_curves.NIST256p),
    _CurveEntry("secp384r1", "P-384", "P-384", ec.SECP384R1, ecdsa_curves.NIST384p),
    _CurveEntry("secp521r1", "P-521", "P-521", ec.SECP521R1, ecdsa_curves.NIST521p),
    # RFC 8812 registers "secp256k1" as the JWK crv value
    _CurveEntry("secp256k1", None, "secp256k1", ec.SECP256K1, ecdsa_curves.SECP256k1),
    _CurveEntry(
        "brainpoolP256r1", None, "brainpoolP256r1", ec.BrainpoolP256R1, ecdsa_curves.BRAINPOOLP256r1
    ),
    _CurveEntry(
        "brainpoolP384r1", None, "brainpoolP384r1", ec.BrainpoolP384R1, ecdsa_curves.BRAINPOOLP384r1
    ),
    _CurveEntry(
        "brainpoolP512r1", None, "brainpoolP512r1", ec.BrainpoolP512R1, ecdsa_curves.BRAINPOOLP512r1
    ),
)


def _to_params(entry: _CurveEntry) -> CurveParams:
    return CurveParams(
        name=entry.name,
        nist_name=entry.nist_name,
        jwk_name=entry.jwk_name,
        oid=".".join(str(arc) for arc in entry.ecdsa_curve.oid),
        degree_bits=entry.ec_type.key_size,
        order=int(entry.ecdsa_curve.order),
    )


class CurveRegistry:
    """Read-only lookup over a fixed set of named curves."""

    def __init__(self, entries: tuple[_CurveEntry, ...]) -> None:
        self._entries = entries
        self._by_name = {entry.name: entry for entry in entries}
        self._by_nist = {entry.nist_name: entry for entry in entries if entry.nist_name}
        self._params = {entry.name: _to_params(entry) for entry in entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_nist or name in self._by_name

    def _lookup(self, name: str) -> _CurveEntry | None:
        entry = self._by_nist.get(name)
        if entry is None:
            entry = self._by_name.get(name)
        return entry

    def resolve(
        self, name: str, param_encoding: ParamEncoding = ParamEncoding.NAMED
    ) -> CurveParams:
        """Resolve a NIST alias or short name to its CurveParams.

        Raises:
            InvalidCurveError: If ``name`` matches no built-in curve.
        """
        entry = self._lookup(name) if isinstance(name, str) else None
        if entry is None:
            raise InvalidCurveError(str(name))
        params = self._params[entry.name]
        if param_encoding != params.param_encoding:
            params = params.with_encoding(param_encoding)
        return params

    def list_curves(self) -> list[str]:
        """Short names of all built-in curves, in table order."""
        return [entry.name for entry in self._entries]

    def ec_curve(self, curve: CurveParams) -> ec.EllipticCurve:
        """Primitive-library curve instance for ``curve``."""
        return self._entry_for(curve).ec_type()

    def ecdsa_curve(self, curve: CurveParams) -> ecdsa_curves.Curve:
        """python-ecdsa curve for ``curve``; used for explicit parameter encodings."""
        return self._entry_for(curve).ecdsa_curve

    def by_ecdsa_curve(self, ecdsa_curve: ecdsa_curves.Curve) -> CurveParams:
        for entry in self._entries:
            if entry.ecdsa_curve == ecdsa_curve:
                return self._params[entry.name]
        raise InvalidCurveError(getattr(ecdsa_curve, "name", repr(ecdsa_curve)))

    def by_ec_curve(self, ec_curve: ec.EllipticCurve) -> CurveParams:
        for entry in self._entries:
            if entry.ec_type.name == ec_curve.name:
                return self._params[entry.name]
        raise InvalidCurveError(ec_curve.name)

    def _entry_for(self, curve: CurveParams) -> _CurveEntry:
        entry = self._by_name.get(curve.name)
        if entry is None:
            raise InvalidCurveError(curve.name)
        return entry


_registry: CurveRegistry | None = None
_registry_lock = Lock()


def _supported_entries() -> tuple[_CurveEntry, ...]:
    return tuple(
        entry
        for entry in _BUILTIN_CURVES
        if openssl_backend.elliptic_curve_supported(entry.ec_type())
    )


def get_curve_registry() -> CurveRegistry:
    """Return the process-wide registry, building it on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                registry = CurveRegistry(_supported_entries())
                logger.debug("ecdhkit.curves.loaded", count=len(registry))
                _registry = registry
    return _registry


def resolve_curve(name: str, param_encoding: ParamEncoding = ParamEncoding.NAMED) -> CurveParams:
    return get_curve_registry().resolve(name, param_encoding)


def list_curves() -> list[str]:
    return get_curve_registry().list_curves()


def jwk_curve_name(curve: CurveParams) -> str:
    """RFC 7518 ``crv`` value where one is registered, else the short name."""
    return curve.jwk_name


def key_detail(key: KeyMaterial) -> dict[str, str]:
    """Describe the curve a key lives on, as ``{"namedCurve": short_name}``."""
    return {"namedCurve": key.curve.name}
