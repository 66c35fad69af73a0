"""
Withdrawal Trie Command Line Interface

Provides commands for appending message hashes, computing roots and
checking inclusion proofs.
"""

import json
import logging
import sys
from typing import List, Optional, Tuple

import click
from pydantic import ValidationError

from withdraw_trie.core.codec import decode_hex_digest, hex_to_bytes
from withdraw_trie.core.errors import WithdrawTrieError
from withdraw_trie.core.merkle import (
    MAX_HEIGHT,
    WithdrawTrie,
    build_zero_hashes,
    verify_merkle_proof,
)
from withdraw_trie.core.models import Checkpoint, MessageProof

# Configure click
CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


# Helper functions
def load_checkpoint(file_path: str) -> Checkpoint:
    """Load a checkpoint from a JSON file."""
    try:
        with open(file_path, 'r') as f:
            data = json.load(f)
        return Checkpoint(**data)
    except (OSError, ValueError, ValidationError) as e:
        click.echo(f"Error loading checkpoint: {e}", err=True)
        sys.exit(1)


def write_checkpoint(checkpoint: Checkpoint, file_path: str) -> None:
    """Save a checkpoint to a JSON file."""
    try:
        with open(file_path, 'w') as f:
            json.dump(checkpoint.model_dump(), f, indent=2)
        click.echo(f"Checkpoint saved to {file_path}", err=True)
    except OSError as e:
        click.echo(f"Error saving checkpoint: {e}", err=True)
        sys.exit(1)


def parse_hashes(hashes: Tuple[str, ...]) -> List[bytes]:
    """Parse hex message hashes given on the command line."""
    try:
        return [decode_hex_digest(h, f"message hash {h!r}") for h in hashes]
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def build_trie(checkpoint_file: Optional[str]) -> WithdrawTrie:
    """Create a trie, resumed from a checkpoint file if one is given."""
    trie = WithdrawTrie()
    if checkpoint_file:
        checkpoint = load_checkpoint(checkpoint_file)
        try:
            trie.initialize(
                checkpoint.nonce,
                checkpoint.message_hash_bytes(),
                checkpoint.proof_bytes(),
            )
        except (WithdrawTrieError, ValueError) as e:
            click.echo(f"Error: invalid checkpoint: {e}", err=True)
            sys.exit(1)
    return trie


def append_to_trie(trie: WithdrawTrie, hashes: List[bytes]) -> List[MessageProof]:
    """Append hashes and pair each returned proof with its nonce and the new root."""
    first_nonce = trie.next_message_nonce
    try:
        proofs = trie.append_messages(hashes)
    except WithdrawTrieError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    root = trie.message_root()
    return [
        MessageProof.from_bytes(first_nonce + i, message_hash, proof, root)
        for i, (message_hash, proof) in enumerate(zip(hashes, proofs))
    ]


# Command groups
@click.group(context_settings=CONTEXT_SETTINGS)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Withdrawal trie - Merkle proofs for cross-domain messages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option('--depth', '-d', type=click.IntRange(1, MAX_HEIGHT), default=MAX_HEIGHT,
              show_default=True, help='Number of levels to print')
def zeroes(depth: int):
    """Print the empty-subtree digest for each depth."""
    for height, zero in enumerate(build_zero_hashes(MAX_HEIGHT)[:depth]):
        click.echo(f"{height:2d} {zero.hex()}")


@cli.command()
@click.argument('hashes', nargs=-1, required=True)
@click.option('--checkpoint', '-c', type=click.Path(exists=True),
              help='Resume from this checkpoint JSON file')
@click.option('--save-checkpoint', '-o', help='Write the new checkpoint to this file')
def append(hashes: Tuple[str, ...], checkpoint: Optional[str], save_checkpoint: Optional[str]):
    """Append message hashes and print their proofs as JSON."""
    message_hashes = parse_hashes(hashes)
    trie = build_trie(checkpoint)
    proofs = append_to_trie(trie, message_hashes)

    click.echo(json.dumps([p.model_dump() for p in proofs], indent=2))

    if save_checkpoint:
        write_checkpoint(proofs[-1].to_checkpoint(), save_checkpoint)


@cli.command()
@click.argument('hashes', nargs=-1)
@click.option('--checkpoint', '-c', type=click.Path(exists=True),
              help='Resume from this checkpoint JSON file')
def root(hashes: Tuple[str, ...], checkpoint: Optional[str]):
    """Print the trie root after appending message hashes."""
    message_hashes = parse_hashes(hashes)
    trie = build_trie(checkpoint)
    append_to_trie(trie, message_hashes)
    click.echo(trie.message_root().hex())


@cli.command()
@click.option('--nonce', '-n', type=click.IntRange(min=0), required=True, help='Message nonce')
@click.option('--message', '-m', required=True, help='Message hash (hex)')
@click.option('--proof', '-p', default='', help='Flat proof (hex)')
@click.option('--root', '-r', 'expected_root', required=True, help='Expected trie root (hex)')
def verify(nonce: int, message: str, proof: str, expected_root: str):
    """Check that a message hash is included under a root."""
    try:
        valid = verify_merkle_proof(
            decode_hex_digest(message, "message hash"),
            nonce,
            hex_to_bytes(proof),
            decode_hex_digest(expected_root, "root"),
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if valid:
        click.echo("✅ Proof is valid")
        sys.exit(0)
    else:
        click.echo("❌ Invalid proof", err=True)
        sys.exit(1)


# Main entry point
if __name__ == '__main__':
    cli()
