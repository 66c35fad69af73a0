"""
Core of the withdrawal trie.

This package contains the hash primitive, the proof codec, the append-only
Merkle trie and the data models and storage used by callers that persist
its proofs.
"""

from .errors import (
    CounterOverflow,
    InvalidDigestLength,
    InvalidProofLength,
    TrieStateError,
    WithdrawTrieError,
)
from .merkle import (
    MAX_HEIGHT,
    WithdrawTrie,
    build_zero_hashes,
    compute_root_from_proof,
    recover_branch_from_proof,
    update_branch_with_new_message,
    verify_merkle_proof,
)

__all__ = [
    'MAX_HEIGHT',
    'WithdrawTrie',
    'build_zero_hashes',
    'compute_root_from_proof',
    'recover_branch_from_proof',
    'update_branch_with_new_message',
    'verify_merkle_proof',
    'WithdrawTrieError',
    'InvalidDigestLength',
    'InvalidProofLength',
    'CounterOverflow',
    'TrieStateError',
]
