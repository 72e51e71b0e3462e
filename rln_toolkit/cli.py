"""
Command-Line Interface for the RLN Protocol Toolkit

Small offline helpers around the protocol layer: hashing signals, inspecting
registry exports, verifying proofs and recovering secrets from double
signals.
"""

import click
import json
import logging
import sys
from pathlib import Path

from rln_toolkit import __version__, print_disclaimer
from rln_toolkit.protocol.exceptions import (
    BackendError,
    FieldArithmeticError,
    RlnError,
    SecretRecoveryError,
)
from rln_toolkit.protocol.registry import Registry
from rln_toolkit.protocol.rln import retrieve_secret, verify_proof
from rln_toolkit.protocol.rln import signal_hash as compute_signal_hash
from rln_toolkit.protocol.snark.backend import SnarkjsBackend
from rln_toolkit.protocol.types import FullProof


def _load_json(path: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read {path}: {e}")


def _load_full_proof(path: str) -> FullProof:
    try:
        return FullProof.from_dict(_load_json(path))
    except RlnError as e:
        raise click.ClickException(f"Invalid proof in {path}: {e}")


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', is_flag=True, help='Enable debug logging')
def main(verbose):
    """
    RLN Protocol Toolkit

    Rate-Limiting Nullifier registry and proof utilities.

    ⚠️  EXPERIMENTAL - NOT PRODUCTION READY
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@main.command('signal-hash')
@click.argument('signal')
def signal_hash_cmd(signal):
    """
    Print the field element a SIGNAL maps to.

    Examples:

        rln-toolkit signal-hash "hello world"
    """
    click.echo(str(compute_signal_hash(signal)))


@main.command('registry-info')
@click.argument('export_file', type=click.Path(exists=True, dir_okay=False))
def registry_info(export_file):
    """Summarize a registry export file."""
    try:
        registry = Registry.from_export(Path(export_file).read_text(encoding="utf-8"))
    except RlnError as e:
        click.echo(click.style(f"✗ Invalid registry export: {e}", fg="red"), err=True)
        sys.exit(1)

    active = sum(1 for leaf in registry.members if leaf != registry.zero_value)
    click.echo(f"Tree depth:    {registry.tree_depth}")
    click.echo(f"Root:          {registry.root}")
    click.echo(f"Slashed root:  {registry.slashed_root}")
    click.echo(f"Active:        {active} ({len(registry.members)} slots)")
    click.echo(f"Slashed:       {len(registry.slashed_members)}")


@main.command()
@click.argument('proof1', type=click.Path(exists=True, dir_okay=False))
@click.argument('proof2', type=click.Path(exists=True, dir_okay=False))
def recover(proof1, proof2):
    """
    Recover the identity secret behind two proofs of one epoch.

    PROOF1 and PROOF2 are FullProof JSON files ({"proof", "publicSignals"}).
    """
    first = _load_full_proof(proof1)
    second = _load_full_proof(proof2)
    try:
        secret = retrieve_secret(first, second)
    except SecretRecoveryError as e:
        click.echo(click.style(f"✗ {e}", fg="red"), err=True)
        sys.exit(1)
    except FieldArithmeticError:
        click.echo(
            click.style("✗ Both proofs carry the same signal; nothing to recover", fg="red"),
            err=True,
        )
        sys.exit(1)

    click.echo(json.dumps({
        "internalNullifier": str(first.public_signals.internal_nullifier),
        "identitySecret": str(secret),
    }, indent=2))


@main.command()
@click.option('--vk', 'vk_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='snarkjs verification key JSON')
@click.option('--snarkjs', 'snarkjs_bin', default=None,
              help='snarkjs executable (default: $RLN_SNARKJS_BIN or snarkjs)')
@click.argument('proof', type=click.Path(exists=True, dir_okay=False))
def verify(vk_path, snarkjs_bin, proof):
    """Verify a FullProof JSON file with snarkjs."""
    verification_key = _load_json(vk_path)
    full_proof = _load_full_proof(proof)
    try:
        valid = verify_proof(verification_key, full_proof, SnarkjsBackend(snarkjs_bin))
    except BackendError as e:
        click.echo(click.style(f"✗ Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if valid:
        click.echo(click.style("✓ Proof is valid", fg="green"))
    else:
        click.echo(click.style("✗ Proof is invalid", fg="red"), err=True)
        sys.exit(1)


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nRLN Protocol Toolkit v{__version__}")
    click.echo("Experimental - Not Production Ready\n")
    print_disclaimer()


if __name__ == "__main__":
    main()
