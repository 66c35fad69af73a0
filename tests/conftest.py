"""Shared fixtures: fixed message hashes and a reference root builder."""

from typing import List, Sequence

import pytest

from withdraw_trie.core.crypto import ZERO_HASH, keccak2, keccak256
from withdraw_trie.core.merkle import build_zero_hashes

HASH_A = bytes.fromhex("72530d2135620c0c7ddfac2cc523ae31c2901f62ce0109d2f74ab99f1756b51f")
HASH_B = bytes.fromhex("3bb63288619c7896198f42167e192d5365da04f5fd5e9f418ea31bafc1f3bf53")
HASH_C = bytes.fromhex("6dae1726e96e70a2bbe52917a67d578c67958b774160cc29f34e16843793703b")

# Root after appending A, B, C to an empty trie, and the proof issued for C.
GOLDEN_ROOT = bytes.fromhex("77ca755fbc2499f32c71f55d967145ca263c415261a1e52c7cca5c25db2e2753")
GOLDEN_PROOF_C = bytes.fromhex(
    "0000000000000000000000000000000000000000000000000000000000000000"
    "eac9b33976a25627817774db946ec33e0268bea17c0eed2346fa659afd9aa5cc"
)


def make_leaves(count: int, start: int = 0) -> List[bytes]:
    """Deterministic distinct message hashes."""
    return [keccak256(i.to_bytes(32, "big")) for i in range(start, start + count)]


def reference_root(leaves: Sequence[bytes]) -> bytes:
    """Root of the smallest complete tree over leaves, padded with empty subtrees."""
    if not leaves:
        return ZERO_HASH
    zeroes = build_zero_hashes()
    level = list(leaves)
    for height in range((len(leaves) - 1).bit_length()):
        if len(level) % 2:
            level.append(zeroes[height])
        level = [keccak2(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


@pytest.fixture
def abc() -> List[bytes]:
    return [HASH_A, HASH_B, HASH_C]
