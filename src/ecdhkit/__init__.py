"""ecdhkit: ECDH key agreement and EC key handling.

Example:
    >>> from ecdhkit import compute_secret, generate_key_pair, resolve_curve
    >>> curve = resolve_curve("prime256v1")
    >>> alice, bob = generate_key_pair(curve), generate_key_pair(curve)
    >>> compute_secret(alice, bob.public_point) == compute_secret(bob, alice.public_point)
    True
"""

__version__ = "0.1.0"

from ecdhkit.crypto import (
    ECDH,
    KeyFormat,
    KeyMaterial,
    ParamEncoding,
    PointForm,
    compute_secret,
    export_key,
    generate_key_pair,
    import_key,
    list_curves,
    resolve_curve,
)
from ecdhkit.errors import ECDHKitError

__all__ = [
    "__version__",
    "ECDH",
    "ECDHKitError",
    "KeyFormat",
    "KeyMaterial",
    "ParamEncoding",
    "PointForm",
    "compute_secret",
    "export_key",
    "generate_key_pair",
    "import_key",
    "list_curves",
    "resolve_curve",
]
