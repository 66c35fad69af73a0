"""
Withdrawal trie - append-only Merkle accumulator for cross-domain messages.

Every outgoing bridge message is appended as a leaf; the trie root is
committed on the counterpart chain, and the per-message inclusion proof lets
a relayer prove a withdrawal without revealing the other messages.
"""

from importlib.metadata import version

# Set up version
__version__ = "0.1.0"

try:
    __version__ = version("withdraw-trie")
except Exception:
    pass

# Core components
from withdraw_trie.core.codec import (
    decode_bytes_to_merkle_proof,
    encode_merkle_proof_to_bytes,
)
from withdraw_trie.core.crypto import ZERO_HASH, keccak2, keccak256
from withdraw_trie.core.errors import (
    CounterOverflow,
    InvalidDigestLength,
    InvalidProofLength,
    TrieStateError,
    WithdrawTrieError,
)
from withdraw_trie.core.merkle import (
    MAX_HEIGHT,
    WithdrawTrie,
    compute_root_from_proof,
    verify_merkle_proof,
)
from withdraw_trie.core.models import Checkpoint, MessageProof, TrieStatus

__all__ = [
    # Core functionality
    "keccak2",
    "keccak256",
    "ZERO_HASH",
    "decode_bytes_to_merkle_proof",
    "encode_merkle_proof_to_bytes",
    "MAX_HEIGHT",
    "WithdrawTrie",
    "compute_root_from_proof",
    "verify_merkle_proof",
    # Errors
    "WithdrawTrieError",
    "InvalidDigestLength",
    "InvalidProofLength",
    "CounterOverflow",
    "TrieStateError",
    # Models
    "Checkpoint",
    "MessageProof",
    "TrieStatus",
]
