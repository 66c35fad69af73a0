"""
Hash primitives for the withdrawal trie.

All digests are keccak-256 so that roots and proofs match the on-chain
verifier byte for byte.
"""

from typing import Union

from eth_utils import keccak

from withdraw_trie.core.errors import InvalidDigestLength

BytesLike = Union[bytes, bytearray, memoryview]

DIGEST_SIZE = 32
ZERO_HASH = b"\x00" * DIGEST_SIZE


def keccak256(data: BytesLike) -> bytes:
    """Return the raw 32-byte keccak-256 digest of data."""
    return keccak(primitive=bytes(data))


def ensure_digest(value: BytesLike, name: str = "digest") -> bytes:
    """Return value as bytes, raising InvalidDigestLength unless it is 32 bytes long."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidDigestLength(
            f"{name} must be a {DIGEST_SIZE}-byte value, got {type(value).__name__}"
        )
    value = bytes(value)
    if len(value) != DIGEST_SIZE:
        raise InvalidDigestLength(
            f"{name} must be {DIGEST_SIZE} bytes, got {len(value)}"
        )
    return value


def keccak2(a: BytesLike, b: BytesLike) -> bytes:
    """
    Hash two 32-byte digests together.

    Args:
        a: Left digest.
        b: Right digest.

    Returns:
        bytes: keccak256(a || b)

    Raises:
        InvalidDigestLength: If either input is not exactly 32 bytes.
    """
    a = ensure_digest(a, 'hash "a"')
    b = ensure_digest(b, 'hash "b"')
    return keccak(primitive=a + b)
