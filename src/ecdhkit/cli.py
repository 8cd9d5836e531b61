"""Command-line interface for ecdhkit.

Example:
    >>> # From terminal:
    >>> # ecdhkit --version
    >>> # ecdhkit curves
    >>> # ecdhkit keys generate --curve prime256v1 --format jwk
    >>> # ecdhkit keys convert <hex-point> --curve prime256v1 --form compressed
    >>> # ecdhkit derive alice.jwk --peer <hex-point> --curve prime256v1
    >>> # ecdhkit signature to-fixed <hex-der> --curve prime256v1
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer

from ecdhkit import __version__
from ecdhkit.config import get_settings
from ecdhkit.crypto.curves import list_curves, resolve_curve
from ecdhkit.crypto.ecdh import compute_secret
from ecdhkit.crypto.formats import export_jwk, export_pkcs8, export_raw, export_spki, import_jwk
from ecdhkit.crypto.models import KeyFormat, ParamEncoding, PointForm
from ecdhkit.crypto.points import convert_key
from ecdhkit.crypto.signatures import to_der, to_fixed_width
from ecdhkit.errors import ECDHKitError
from ecdhkit.jobs import EcKeyPairGenJob
from ecdhkit.observability import configure_logging

app = typer.Typer(help="ecdhkit CLI.")

keys_app = typer.Typer(help="EC key generation and conversion.")
app.add_typer(keys_app, name="keys")

signature_app = typer.Typer(help="ECDSA signature format conversion.")
app.add_typer(signature_app, name="signature")

# Restrict private key file to owner read/write only
PRIVATE_KEY_FILE_MODE = 0o600


class FormChoice(str, Enum):
    compressed = "compressed"
    uncompressed = "uncompressed"
    hybrid = "hybrid"

    def to_point_form(self) -> PointForm:
        return PointForm[self.name.upper()]


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show ecdhkit version and exit.",
    callback=_version_callback,
    is_eager=True,
)

CURVE_OPTION = typer.Option(
    None,
    "--curve",
    "-c",
    help="Curve short name or NIST alias (default: ECDHKIT_DEFAULT_CURVE or prime256v1).",
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """ecdhkit CLI entrypoint."""
    configure_logging()


def _curve_name(curve: Optional[str]) -> str:
    return curve or get_settings().default_curve


def _parse_hex(value: str, what: str) -> bytes:
    try:
        return bytes.fromhex(value.strip())
    except ValueError as exc:
        raise typer.BadParameter(f"{what} must be hex: {exc}") from exc


def _fail(exc: ECDHKitError) -> typer.Exit:
    typer.echo(f"Error [{exc.code}]: {exc.message}", err=True)
    return typer.Exit(code=1)


@app.command("curves")
def curves_list() -> None:
    """List the built-in curve short names."""
    for name in list_curves():
        typer.echo(name)


@keys_app.command("generate")
def keys_generate(
    curve: Optional[str] = CURVE_OPTION,
    key_format: Annotated[
        KeyFormat,
        typer.Option("--format", "-f", help="Output format for the generated key."),
    ] = KeyFormat.JWK,
    explicit: Annotated[
        bool,
        typer.Option("--explicit", help="Write explicit curve parameters (pkcs8/spki)."),
    ] = False,
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Output file (default: stdout, DER as hex)."),
    ] = None,
) -> None:
    """Generate a key pair; raw and spki print the public half, pkcs8 and jwk the private key."""
    encoding = ParamEncoding.EXPLICIT if explicit else ParamEncoding.NAMED
    try:
        key = EcKeyPairGenJob(_curve_name(curve), encoding).run()
        if key_format is KeyFormat.JWK:
            text: Optional[str] = json.dumps(export_jwk(key), indent=2)
            data = text.encode("utf-8")
        elif key_format is KeyFormat.PKCS8:
            data = export_pkcs8(key)
            text = None
        elif key_format is KeyFormat.SPKI:
            data = export_spki(key.public_only())
            text = None
        else:
            data = export_raw(key.public_only())
            text = None
    except ECDHKitError as exc:
        raise _fail(exc) from exc

    if out is None:
        typer.echo(text if text is not None else data.hex())
        return
    if out.exists() and out.is_dir():
        raise typer.BadParameter(f"Output path is a directory: {out}")
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    if key_format in (KeyFormat.JWK, KeyFormat.PKCS8):
        try:
            out.chmod(PRIVATE_KEY_FILE_MODE)
        except OSError as exc:
            typer.echo(
                f"Warning: could not set file permissions to 0600: {exc}. "
                "Ensure the key file is not readable by others.",
                err=True,
            )
    typer.echo(f"Key written to {out}")


@keys_app.command("convert")
def keys_convert(
    point: Annotated[str, typer.Argument(help="Encoded public point (hex).")],
    curve: Optional[str] = CURVE_OPTION,
    form: Annotated[
        FormChoice,
        typer.Option("--form", help="Target point conversion form."),
    ] = FormChoice.uncompressed,
) -> None:
    """Re-encode a public point in another SEC1 form."""
    data = _parse_hex(point, "point")
    try:
        converted = convert_key(data, _curve_name(curve), form.to_point_form())
    except ECDHKitError as exc:
        raise _fail(exc) from exc
    typer.echo(converted.hex())


@app.command("derive")
def derive(
    private_jwk: Annotated[Path, typer.Argument(help="Path to the private key JWK (JSON).")],
    peer: Annotated[str, typer.Option("--peer", "-p", help="Peer public point (hex).")],
    curve: Optional[str] = CURVE_OPTION,
) -> None:
    """Compute the ECDH shared secret with a peer public point."""
    if not private_jwk.exists():
        raise typer.BadParameter(f"Key file not found: {private_jwk}")
    try:
        jwk = json.loads(private_jwk.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Invalid JSON in key file: {exc}") from exc
    peer_bytes = _parse_hex(peer, "peer")
    try:
        key = import_jwk(_curve_name(curve), jwk)
        secret = compute_secret(key, peer_bytes)
    except ECDHKitError as exc:
        raise _fail(exc) from exc
    typer.echo(secret.hex())


def _order_size(curve: Optional[str]) -> int:
    try:
        return resolve_curve(_curve_name(curve)).order_size_bytes
    except ECDHKitError as exc:
        raise _fail(exc) from exc


@signature_app.command("to-fixed")
def signature_to_fixed(
    signature: Annotated[str, typer.Argument(help="DER signature (hex).")],
    curve: Optional[str] = CURVE_OPTION,
) -> None:
    """Convert a DER signature to fixed-width r||s."""
    converted = to_fixed_width(_order_size(curve), _parse_hex(signature, "signature"))
    if not converted:
        typer.echo("Error: signature is not a valid DER ECDSA signature for this curve", err=True)
        raise typer.Exit(code=1)
    typer.echo(converted.hex())


@signature_app.command("to-der")
def signature_to_der(
    signature: Annotated[str, typer.Argument(help="Fixed-width r||s signature (hex).")],
    curve: Optional[str] = CURVE_OPTION,
) -> None:
    """Convert a fixed-width r||s signature to DER."""
    converted = to_der(_order_size(curve), _parse_hex(signature, "signature"))
    if not converted:
        typer.echo("Error: signature length does not match the curve order size", err=True)
        raise typer.Exit(code=1)
    typer.echo(converted.hex())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
