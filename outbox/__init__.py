"""
Withdrawal Outbox

This package serves the withdrawal trie over HTTP: outgoing message hashes
are appended, their inclusion proofs are stored, and relayers fetch proofs
and the current root.
"""

__version__ = "0.1.0"

from .server import create_app, run_server, MessageOutbox

__all__ = ["create_app", "run_server", "MessageOutbox"]
