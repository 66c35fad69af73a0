"""
Merkle proof encoding.

A proof travels as one flat byte string: the 32-byte sibling digests
concatenated in depth order, leaf level first. This module converts between
that wire form, a list of digests, and the hex forms used by the JSON
surfaces (CLI and HTTP service).
"""

from typing import List, Sequence, Union

from withdraw_trie.core.crypto import DIGEST_SIZE, BytesLike, ensure_digest
from withdraw_trie.core.errors import InvalidDigestLength, InvalidProofLength


def decode_bytes_to_merkle_proof(proof_bytes: BytesLike) -> List[bytes]:
    """
    Split flat proof bytes into a list of 32-byte digests.

    Args:
        proof_bytes: Concatenated sibling digests.

    Returns:
        List[bytes]: One digest per depth, in the order they appear.

    Raises:
        InvalidProofLength: If the length is not a multiple of 32.
    """
    data = bytes(proof_bytes)
    if len(data) % DIGEST_SIZE != 0:
        raise InvalidProofLength(
            f"Proof bytes must be a multiple of {DIGEST_SIZE}, got {len(data)}"
        )
    return [data[i:i + DIGEST_SIZE] for i in range(0, len(data), DIGEST_SIZE)]


def encode_merkle_proof_to_bytes(proof: Sequence[BytesLike]) -> bytes:
    """
    Concatenate proof digests into the flat wire form.

    Raises:
        InvalidDigestLength: If any element is not exactly 32 bytes.
    """
    return b"".join(
        ensure_digest(sibling, f"proof[{depth}]")
        for depth, sibling in enumerate(proof)
    )


def hex_to_bytes(hx: str) -> bytes:
    """Lenient hex to bytes: accepts upper case and an optional 0x prefix."""
    if not isinstance(hx, str):
        raise ValueError(f"expected a hex string, got {type(hx).__name__}")
    hx = hx.strip()
    if hx.startswith(("0x", "0X")):
        hx = hx[2:]
    try:
        return bytes.fromhex(hx)
    except ValueError as e:
        raise ValueError(f"invalid hex: {e}") from e


def bytes_to_hex(b: BytesLike) -> str:
    """Lower-case hex (no 0x) for bytes-like."""
    return bytes(b).hex()


def decode_hex_digest(hx: str, name: str = "digest") -> bytes:
    """Parse a hex string that must hold exactly one 32-byte digest."""
    return ensure_digest(hex_to_bytes(hx), name)


def decode_hex_proof(hx: str) -> bytes:
    """Parse a flat hex proof, checking that it holds whole digests."""
    data = hex_to_bytes(hx)
    # Validate the length; the flat form is what callers pass around.
    decode_bytes_to_merkle_proof(data)
    return data


def proof_to_hex_list(proof: Union[BytesLike, Sequence[BytesLike]]) -> List[str]:
    """Render a proof (flat bytes or list of digests) as a list of hex digests."""
    if isinstance(proof, (bytes, bytearray, memoryview)):
        proof = decode_bytes_to_merkle_proof(proof)
    return [bytes_to_hex(ensure_digest(sibling)) for sibling in proof]


def hex_list_to_proof(hex_digests: Sequence[str]) -> bytes:
    """Inverse of proof_to_hex_list, returning the flat wire form."""
    try:
        return encode_merkle_proof_to_bytes(
            [hex_to_bytes(h) for h in hex_digests]
        )
    except InvalidDigestLength as e:
        raise InvalidProofLength(f"Invalid proof element: {e}") from e
