"""
Withdrawal Trie Command Line Interface.

This package provides command-line tools for appending message hashes,
computing trie roots and checking inclusion proofs.
"""

# Import the main CLI entry point
from .main import cli

# Re-export for easier imports
__all__ = [
    'cli',
]
