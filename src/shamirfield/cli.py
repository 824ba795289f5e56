"""
CLI application for Shamir secret sharing over prime fields.

Commands:
    prime      Print the modulus for a field width
    split      Share an integer secret and store modulus + shares
    combine    Reconstruct the secret from stored or given shares
    seal       Encrypt a file and share its data key
    unseal     Rebuild the data key from shares and decrypt
"""

from pathlib import Path
from typing import NoReturn, Optional, List

import typer
from cryptography.exceptions import InvalidTag

from .config import Settings, configure_logging
from .core.session import create_session
from .core.sharestore import ShareStore
from .crypto.envelope import EncryptedData, seal, unseal
from .crypto.field import select_modulus
from .crypto.shamir import Share, reconstruct_secret


app = typer.Typer(
    name="shamirfield", help="Shamir threshold secret sharing over prime fields"
)


def get_settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def get_sharestore(ctx: typer.Context, store_dir: Optional[Path]) -> ShareStore:
    """Get ShareStore instance."""
    if store_dir is None:
        store_dir = get_settings(ctx).store_dir
    return ShareStore(store_dir)


def parse_points(points: str) -> List[int]:
    """Parse "4,16,13" into [4, 16, 13]."""
    try:
        return [int(p.strip(), 0) for p in points.split(",") if p.strip()]
    except ValueError:
        raise typer.BadParameter(f"Points must be comma-separated integers: {points}")


def fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def collect_shares(
    store: ShareStore, points: Optional[str], share_texts: Optional[List[str]]
) -> List[Share]:
    """Shares given on the command line, or else those in the store."""
    if share_texts:
        if points:
            raise ValueError("Use either --points or --share, not both")
        return [Share.parse(text) for text in share_texts]
    return store.load_shares(parse_points(points) if points else None)


def resolve_modulus(store: ShareStore, modulus: Optional[str]) -> Optional[int]:
    """The --modulus value if given, otherwise the stored modulus."""
    if modulus is None:
        return store.load_modulus()
    try:
        return int(modulus, 0)
    except ValueError:
        raise ValueError(f"Modulus must be an integer: {modulus}") from None


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Shamir threshold secret sharing over prime fields."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        fail(str(e))

    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@app.command()
def prime(
    ctx: typer.Context,
    bits: Optional[int] = typer.Option(None, "--bits", "-b", help="Field width"),
    generate: bool = typer.Option(
        False, "--generate", "-g", help="Generate a probable prime"
    ),
    as_hex: bool = typer.Option(False, "--hex", help="Print in hexadecimal"),
) -> None:
    """
    Print the modulus for a field width.

    Fixed widths: 254 (BN254 scalar field), 256, 512, 1024.
    """
    settings = get_settings(ctx)
    width = bits if bits is not None else settings.bit_width

    try:
        modulus = select_modulus(width, use_fixed=not generate)
    except ValueError as e:
        fail(str(e))

    typer.echo(f"{modulus:X}" if as_hex else str(modulus))


@app.command()
def split(
    ctx: typer.Context,
    secret: str = typer.Argument(..., help="Secret integer (decimal or 0x-hex)"),
    threshold: int = typer.Option(
        ..., "--threshold", "-t", help="Shares needed to reconstruct"
    ),
    points: str = typer.Option(
        ..., "--points", "-p", help="Comma-separated non-zero x-coordinates"
    ),
    bits: Optional[int] = typer.Option(None, "--bits", "-b", help="Field width"),
    generate_prime: Optional[bool] = typer.Option(
        None, "--generate-prime/--fixed-prime", help="Generate a fresh prime"
    ),
    store_dir: Optional[Path] = typer.Option(
        None, "--store", "-s", help="Share storage directory"
    ),
) -> None:
    """
    Share a secret and store the modulus with the shares.

    Example:
        shamirfield split 25 -t 3 -p 4,16,13,1,12,7
    """
    settings = get_settings(ctx)
    width = bits if bits is not None else settings.bit_width
    if generate_prime is None:
        use_fixed = settings.use_fixed_prime
    else:
        use_fixed = not generate_prime

    try:
        value = int(secret, 0)
    except ValueError:
        raise typer.BadParameter(f"Secret must be an integer: {secret}")
    xs = parse_points(points)

    try:
        with create_session(width, use_fixed, threshold, value) as session:
            shares = session.generate_shares(xs)
            modulus = session.modulus
    except ValueError as e:
        fail(str(e))

    store = get_sharestore(ctx, store_dir)
    store.save_modulus(modulus)
    store.reset()
    store.save_threshold(threshold)
    store.save_shares(shares)

    typer.echo(f"Issued {len(shares)} shares (threshold {threshold})")
    typer.echo(f"  Modulus ({modulus.bit_length()} bits): {modulus}")
    for share in shares:
        typer.echo(f"  {share}")
    typer.echo(f"Share store: {store.store_dir}")


@app.command()
def combine(
    ctx: typer.Context,
    points: Optional[str] = typer.Option(
        None, "--points", "-p", help="Use only these x-coordinates"
    ),
    share_texts: Optional[List[str]] = typer.Option(
        None, "--share", help="Share as printed by split, e.g. 4-ff (repeatable)"
    ),
    modulus_text: Optional[str] = typer.Option(
        None, "--modulus", "-m", help="Modulus the shares were issued under"
    ),
    store_dir: Optional[Path] = typer.Option(None, "--store", "-s"),
) -> None:
    """
    Reconstruct the secret from stored shares or from --share values.

    The result is only correct with at least threshold shares; with fewer a
    meaningless number is printed.

    Example:
        shamirfield combine --share 4-1f --share 7-2a --share 12-9 -m 101
    """
    store = get_sharestore(ctx, store_dir)

    try:
        modulus = resolve_modulus(store, modulus_text)
        if modulus is None:
            fail("No modulus in share store. Run 'shamirfield split' first.")
        shares = collect_shares(store, points, share_texts)
        secret = reconstruct_secret(modulus, shares)
        # A modulus from the command line means the store may hold another set.
        threshold = store.load_threshold() if modulus_text is None else None
    except ValueError as e:
        fail(str(e))

    if threshold is not None and len(shares) < threshold:
        typer.echo(
            f"Warning: {len(shares)} shares < threshold {threshold}; "
            "the result is NOT the secret",
            err=True,
        )

    typer.echo(str(secret))


@app.command("seal")
def seal_file(
    ctx: typer.Context,
    input_file: Path = typer.Argument(..., help="File to protect"),
    threshold: int = typer.Option(..., "--threshold", "-t"),
    points: str = typer.Option(..., "--points", "-p"),
    store_dir: Optional[Path] = typer.Option(None, "--store", "-s"),
) -> None:
    """
    Encrypt a file with AES-256-GCM and share the data key.
    """
    if not input_file.exists():
        fail(f"File not found: {input_file}")

    try:
        sealed = seal(input_file.read_bytes(), threshold, parse_points(points))
    except ValueError as e:
        fail(str(e))

    store = get_sharestore(ctx, store_dir)
    store.save_modulus(sealed.modulus)
    store.reset()
    store.save_threshold(sealed.threshold)
    store.save_shares(sealed.shares)
    store.save_payload(sealed.encrypted.to_bytes())

    typer.echo(f"Sealed {input_file} into {len(sealed.shares)} shares")
    typer.echo(f"Share store: {store.store_dir}")


@app.command("unseal")
def unseal_file(
    ctx: typer.Context,
    output_file: Path = typer.Argument(..., help="Where to write the payload"),
    points: Optional[str] = typer.Option(None, "--points", "-p"),
    share_texts: Optional[List[str]] = typer.Option(
        None, "--share", help="Share as printed by split (repeatable)"
    ),
    store_dir: Optional[Path] = typer.Option(None, "--store", "-s"),
) -> None:
    """
    Rebuild the data key from shares and decrypt the stored payload.
    """
    store = get_sharestore(ctx, store_dir)

    try:
        modulus = store.load_modulus()
        blob = store.load_payload()
        if modulus is None or blob is None:
            fail("No sealed payload in share store.")
        shares = collect_shares(store, points, share_texts)
        payload = unseal(modulus, shares, EncryptedData.from_bytes(blob))
    except ValueError as e:
        fail(str(e))
    except InvalidTag:
        fail("Decryption failed: not enough shares, or shares/payload tampered")

    output_file.write_bytes(payload)
    typer.echo(f"Unsealed {len(payload)} bytes to {output_file}")


if __name__ == "__main__":
    app()
