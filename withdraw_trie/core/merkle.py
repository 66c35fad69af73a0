"""
Append-only withdrawal trie.

Every outgoing bridge message is appended as a leaf of a fixed-height binary
Merkle tree. The trie never stores its leaves: it keeps only the frontier
(one pending left-subtree digest per depth) so each append costs O(height)
hashes, and it can be resumed from the proof of its newest leaf instead of
the full message history.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple, Union

from withdraw_trie.core.codec import (
    decode_bytes_to_merkle_proof,
    encode_merkle_proof_to_bytes,
)
from withdraw_trie.core.crypto import ZERO_HASH, BytesLike, ensure_digest, keccak2
from withdraw_trie.core.errors import (
    CounterOverflow,
    InvalidProofLength,
    TrieStateError,
)
from withdraw_trie.core.models import TrieStatus

logger = logging.getLogger(__name__)

# Maximum possible height of the withdrawal trie.
MAX_HEIGHT = 40

# Largest integer a JavaScript relayer can hold exactly.
MAX_SAFE_INTEGER = 2**53 - 1

# The frontier has MAX_HEIGHT slots, so the root sits at depth MAX_HEIGHT - 1 at most.
MAX_MESSAGE_COUNT = min(MAX_SAFE_INTEGER, 1 << (MAX_HEIGHT - 1))

ProofLike = Union[BytesLike, Sequence[BytesLike]]


def build_zero_hashes(height: int = MAX_HEIGHT) -> Tuple[bytes, ...]:
    """
    Build the digests of perfectly empty subtrees.

    zero[0] is 32 zero bytes and zero[d] = H(zero[d-1], zero[d-1]).
    The table is immutable and shared by every trie of the same height.
    """
    return _build_zero_hashes(height)


@lru_cache(maxsize=None)
def _build_zero_hashes(height: int) -> Tuple[bytes, ...]:
    if height < 1:
        raise ValueError(f"height must be positive, got {height}")
    zeroes = [ZERO_HASH]
    for _ in range(1, height):
        zeroes.append(keccak2(zeroes[-1], zeroes[-1]))
    return tuple(zeroes)


def update_branch_with_new_message(
    zeroes: Sequence[bytes],
    branches: List[Optional[bytes]],
    index: int,
    message_hash: BytesLike,
) -> List[bytes]:
    """
    Fold a new leaf into the frontier.

    Args:
        zeroes: Empty-subtree digests, one per depth.
        branches: The frontier; updated in place.
        index: Zero-based index of the new leaf.
        message_hash: The new leaf digest.

    Returns:
        The inclusion proof of the new leaf, leaf level first, valid
        against the root right after this append.

    Raises:
        InvalidDigestLength: If message_hash is not 32 bytes.
        CounterOverflow: If index does not fit in the frontier.
    """
    root = ensure_digest(message_hash, "message hash")
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    if index.bit_length() >= min(len(branches), len(zeroes)):
        raise CounterOverflow(f"index {index} does not fit in a trie of height {len(branches)}")

    merkle_proof: List[bytes] = []
    local_index = index
    height = 0

    while local_index > 0:
        if local_index % 2 == 0:
            # Left child: the right sibling does not exist yet.
            branches[height] = root
            merkle_proof.append(zeroes[height])
            root = keccak2(root, zeroes[height])
        else:
            merkle_proof.append(branches[height])
            root = keccak2(branches[height], root)
        local_index >>= 1
        height += 1

    branches[height] = root
    return merkle_proof


def recover_branch_from_proof(
    proof: Sequence[BytesLike],
    index: int,
    message_hash: BytesLike,
) -> List[bytes]:
    """
    Rebuild a full frontier from the proof of a known leaf.

    Depths above the proof are filled with zero digests.

    Raises:
        InvalidDigestLength: If the leaf or a proof element is not 32 bytes.
        InvalidProofLength: If the proof lacks a sibling for a bit of index,
            or is too long for the trie.
    """
    root = ensure_digest(message_hash, "message hash")
    siblings = [ensure_digest(p, f"proof[{depth}]") for depth, p in enumerate(proof)]
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    if len(siblings) < index.bit_length():
        raise InvalidProofLength(
            f"proof has {len(siblings)} siblings but index {index} needs {index.bit_length()}"
        )
    if len(siblings) >= MAX_HEIGHT:
        raise InvalidProofLength(
            f"proof has {len(siblings)} siblings, maximum is {MAX_HEIGHT - 1}"
        )

    branches: List[bytes] = [ZERO_HASH] * MAX_HEIGHT
    local_index = index

    for height, sibling in enumerate(siblings):
        if local_index % 2 == 0:
            branches[height] = root
            root = keccak2(root, sibling)
        else:
            branches[height] = sibling
            root = keccak2(sibling, root)
        local_index >>= 1

    branches[len(siblings)] = root
    return branches


def compute_root_from_proof(message_hash: BytesLike, index: int, proof: ProofLike) -> bytes:
    """Fold a leaf with its proof the way the on-chain verifier does."""
    if isinstance(proof, (bytes, bytearray, memoryview)):
        proof = decode_bytes_to_merkle_proof(proof)
    node = ensure_digest(message_hash, "message hash")
    for sibling in proof:
        if index % 2 == 0:
            node = keccak2(node, sibling)
        else:
            node = keccak2(sibling, node)
        index >>= 1
    return node


def verify_merkle_proof(
    message_hash: BytesLike,
    index: int,
    proof: ProofLike,
    root: BytesLike,
) -> bool:
    """
    Check that message_hash sits at index under root.

    Returns False (rather than raising) for an index that does not fit in
    the proof's depth. Malformed digests still raise.
    """
    if isinstance(proof, (bytes, bytearray, memoryview)):
        proof = decode_bytes_to_merkle_proof(proof)
    if index < 0 or index >> len(proof) != 0:
        return False
    return compute_root_from_proof(message_hash, index, proof) == ensure_digest(root, "root")


class WithdrawTrie:
    """
    An append-only Merkle trie over withdrawal message hashes.

    The trie is either empty (no message appended, root is 32 zero bytes)
    or populated. It becomes populated on the first append or on
    initialize(), and never returns to empty.

    The trie is not thread-safe; callers serialize access and own
    persistence of the checkpoint needed to resume it.

    Usage:
        trie = WithdrawTrie()
        proofs = trie.append_messages([hash_a, hash_b])
        root = trie.message_root()
    """

    def __init__(self) -> None:
        self.next_message_nonce: int = 0
        self._height: int = -1
        self._zeroes: Tuple[bytes, ...] = build_zero_hashes(MAX_HEIGHT)
        self._branches: List[Optional[bytes]] = [None] * MAX_HEIGHT

    def __len__(self) -> int:
        return self.next_message_nonce

    def __repr__(self) -> str:
        return (
            f"WithdrawTrie(next_message_nonce={self.next_message_nonce}, "
            f"height={self._height}, root={self.message_root().hex()})"
        )

    @property
    def height(self) -> int:
        """Depth of the current root, or -1 for an empty trie."""
        return self._height

    @property
    def is_empty(self) -> bool:
        return self.next_message_nonce == 0 and self._height == -1

    @property
    def zero_hashes(self) -> Tuple[bytes, ...]:
        return self._zeroes

    @property
    def branches(self) -> List[Optional[bytes]]:
        """A copy of the frontier, one slot per depth."""
        return list(self._branches)

    def initialize(
        self,
        current_message_nonce: int,
        message_hash: BytesLike,
        proof_bytes: BytesLike,
    ) -> None:
        """
        Resume the trie from the checkpoint of its newest message.

        Args:
            current_message_nonce: Nonce of the newest appended message.
            message_hash: Digest of that message.
            proof_bytes: The proof issued for it when it was appended.

        Raises:
            TrieStateError: If the trie is not empty.
            CounterOverflow: If the nonce is beyond the trie capacity.
            InvalidDigestLength: If message_hash is not 32 bytes.
            InvalidProofLength: If the proof is malformed or does not match
                the depth implied by the nonce.
        """
        if not self.is_empty:
            raise TrieStateError(
                "initialize() requires an empty trie; "
                f"this one already holds {self.next_message_nonce} messages"
            )
        if (
            isinstance(current_message_nonce, bool)
            or not isinstance(current_message_nonce, int)
            or current_message_nonce < 0
        ):
            raise ValueError(f"Invalid nonce: {current_message_nonce!r}")
        self._check_capacity(current_message_nonce + 1)
        message_hash = ensure_digest(message_hash, "message hash")

        proof = decode_bytes_to_merkle_proof(proof_bytes)
        if len(proof) != current_message_nonce.bit_length():
            raise InvalidProofLength(
                f"proof for nonce {current_message_nonce} must have "
                f"{current_message_nonce.bit_length()} siblings, got {len(proof)}"
            )

        self._branches = recover_branch_from_proof(proof, current_message_nonce, message_hash)
        self._height = len(proof)
        self.next_message_nonce = current_message_nonce + 1
        logger.debug(
            "Initialized trie at nonce %d, root %s",
            current_message_nonce,
            self.message_root().hex(),
        )

    def append_messages(self, hashes: Sequence[BytesLike]) -> List[bytes]:
        """
        Append a batch of message hashes.

        Intermediate hashes are shared across the batch, so proofs for n
        messages cost about n + log(total) hashes. Every returned proof is
        valid against the root after the whole batch.

        Args:
            hashes: 32-byte message digests, in nonce order.

        Returns:
            One flat proof per message, in the same order.

        Raises:
            InvalidDigestLength: If any hash is not 32 bytes.
            CounterOverflow: If the batch would exceed the trie capacity.

        The batch is validated before any state changes, so a failed call
        leaves the trie untouched.
        """
        hashes = [ensure_digest(h, f"message hash {i}") for i, h in enumerate(hashes)]
        if not hashes:
            return []

        length = len(hashes)
        first_nonce = self.next_message_nonce
        self._check_capacity(first_nonce + length)

        # cache[h][i] is the digest of node i at depth h.
        cache: List[Dict[int, bytes]] = [{} for _ in range(MAX_HEIGHT)]

        if first_nonce != 0:
            index = first_nonce
            for h in range(self._height + 1):
                if index % 2 == 1:
                    cache[h][index ^ 1] = self._branches[h]
                index >>= 1

        for i, message_hash in enumerate(hashes):
            cache[0][first_nonce + i] = message_hash

        min_index = first_nonce
        max_index = first_nonce + length - 1
        h = 0
        while max_index > 0:
            if min_index % 2 == 1:
                min_index -= 1
            if max_index % 2 == 0:
                cache[h][max_index ^ 1] = self._zeroes[h]
            for i in range(min_index, max_index + 1, 2):
                cache[h + 1][i >> 1] = keccak2(cache[h][i], cache[h][i ^ 1])
            min_index >>= 1
            max_index >>= 1
            h += 1

        for message_hash in hashes:
            proof = update_branch_with_new_message(
                self._zeroes, self._branches, self.next_message_nonce, message_hash
            )
            self._height = len(proof)
            self.next_message_nonce += 1

        proofs: List[bytes] = []
        for i in range(length):
            index = first_nonce + i
            merkle_proof: List[bytes] = []
            for h in range(self._height):
                merkle_proof.append(cache[h][index ^ 1])
                index >>= 1
            proofs.append(encode_merkle_proof_to_bytes(merkle_proof))

        logger.debug(
            "Appended %d messages at nonces %d..%d, root %s",
            length,
            first_nonce,
            self.next_message_nonce - 1,
            self.message_root().hex(),
        )
        return proofs

    def append_message(self, message_hash: BytesLike) -> bytes:
        """Append one message hash and return its proof."""
        return self.append_messages([message_hash])[0]

    def message_root(self) -> bytes:
        """Root over every appended message, or 32 zero bytes if none."""
        if self._height == -1:
            return ZERO_HASH
        return self._branches[self._height]

    def status(self) -> TrieStatus:
        return TrieStatus(
            next_message_nonce=self.next_message_nonce,
            height=self._height,
            root=self.message_root().hex(),
            last_nonce=self.next_message_nonce - 1 if self.next_message_nonce else None,
        )

    def _check_capacity(self, message_count: int) -> None:
        if message_count > MAX_MESSAGE_COUNT:
            raise CounterOverflow(
                f"next_message_nonce {message_count} exceeds the maximum of {MAX_MESSAGE_COUNT}"
            )
