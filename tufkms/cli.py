"""Command line interface for KMS-backed TUF signing keys."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from tufkms import SignerRegistry, TufKmsError, verify_signature
from tufkms.config import load_config

app = typer.Typer(help="CLI for KMS-backed TUF signing keys")


def _registry(config_path: Optional[Path]) -> SignerRegistry:
    return SignerRegistry(load_config(str(config_path) if config_path else None))


def _fail(error: Exception) -> None:
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=2)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """tufkms CLI entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("pubkey")
def pubkey(
    uri: str,
    config: Optional[Path] = typer.Option(None, help="Path to tufkms.yaml"),
) -> None:
    """
    Print the TUF key entry for a remote key.

    Example:
        tufkms pubkey aws-kms://default/arn:aws:kms:us-west-2:111122223333:key/1234abcd
    """
    try:
        signer = _registry(config).register(uri)
        descriptor = asyncio.run(signer.public_key())
    except (TufKmsError, ValueError, OSError) as e:
        _fail(e)
    typer.echo(json.dumps({descriptor.key_id: descriptor.to_tuf_key()}, indent=2))


@app.command("sign")
def sign(
    uri: str,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    config: Optional[Path] = typer.Option(None, help="Path to tufkms.yaml"),
    timeout: Optional[float] = typer.Option(None, help="Deadline in seconds"),
) -> None:
    """Sign the bytes of PATH and print the TUF signature entry."""
    try:
        message = path.read_bytes()
        signer = _registry(config).register(uri)
        signature = asyncio.run(signer.sign(message, timeout=timeout))
    except (TufKmsError, ValueError, OSError) as e:
        _fail(e)
    typer.echo(json.dumps(signature.to_tuf()))


@app.command("verify")
def verify(
    uri: str,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    signature_hex: str = typer.Argument(...),
    config: Optional[Path] = typer.Option(None, help="Path to tufkms.yaml"),
) -> None:
    """Check a hex signature over PATH against the remote key's public half."""
    try:
        message = path.read_bytes()
        signature = bytes.fromhex(signature_hex)
        signer = _registry(config).register(uri)
        descriptor = asyncio.run(signer.public_key())
        valid = verify_signature(
            descriptor,
            message,
            signature,
            digest_algorithm=getattr(signer, "digest_algorithm", None),
            rsa_padding=getattr(signer, "rsa_padding", "pss"),
        )
    except (TufKmsError, ValueError, OSError) as e:
        _fail(e)
    if not valid:
        typer.echo("Signature is NOT valid", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Signature is valid for key {descriptor.key_id}")


if __name__ == "__main__":
    app()
