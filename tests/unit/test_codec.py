"""Unit tests for proof encoding."""

import pytest

from withdraw_trie.core.codec import (
    bytes_to_hex,
    decode_bytes_to_merkle_proof,
    decode_hex_digest,
    decode_hex_proof,
    encode_merkle_proof_to_bytes,
    hex_list_to_proof,
    hex_to_bytes,
    proof_to_hex_list,
)
from withdraw_trie.core.errors import InvalidDigestLength, InvalidProofLength


def test_decode_rejects_partial_digest() -> None:
    """Proof bytes must be a multiple of 32."""
    with pytest.raises(InvalidProofLength, match="multiple of 32"):
        decode_bytes_to_merkle_proof(bytes(33))
    with pytest.raises(InvalidProofLength):
        decode_bytes_to_merkle_proof(bytes(31))


def test_decode_splits_into_chunks() -> None:
    proof_bytes = b"\x01" * 32 + b"\x02" * 32 + b"\x03" * 32

    proof = decode_bytes_to_merkle_proof(proof_bytes)

    assert proof == [b"\x01" * 32, b"\x02" * 32, b"\x03" * 32]


def test_decode_empty_proof() -> None:
    assert decode_bytes_to_merkle_proof(b"") == []
    assert encode_merkle_proof_to_bytes([]) == b""


def test_encode_concatenates_in_order() -> None:
    chunks = [bytes([i]) * 32 for i in (1, 2, 3)]

    encoded = encode_merkle_proof_to_bytes(chunks)

    assert len(encoded) == 96
    assert encoded[0:32] == chunks[0]
    assert encoded[32:64] == chunks[1]
    assert encoded[64:96] == chunks[2]
    assert decode_bytes_to_merkle_proof(encoded) == chunks


def test_encode_rejects_wrong_sized_element() -> None:
    with pytest.raises(InvalidDigestLength, match=r"proof\[1\]"):
        encode_merkle_proof_to_bytes([bytes(32), bytes(16)])


def test_hex_to_bytes_is_lenient() -> None:
    assert hex_to_bytes("0xABcd") == b"\xab\xcd"
    assert hex_to_bytes("  abcd\n") == b"\xab\xcd"
    with pytest.raises(ValueError, match="invalid hex"):
        hex_to_bytes("xyz")


def test_decode_hex_digest_checks_size() -> None:
    assert decode_hex_digest("11" * 32) == b"\x11" * 32
    with pytest.raises(InvalidDigestLength):
        decode_hex_digest("11" * 31)


def test_decode_hex_proof_checks_size() -> None:
    assert decode_hex_proof("") == b""
    assert decode_hex_proof("22" * 64) == b"\x22" * 64
    with pytest.raises(InvalidProofLength):
        decode_hex_proof("22" * 40)


def test_hex_list_forms() -> None:
    proof = b"\x05" * 32 + b"\x06" * 32

    hex_list = proof_to_hex_list(proof)

    assert hex_list == ["05" * 32, "06" * 32]
    assert proof_to_hex_list(decode_bytes_to_merkle_proof(proof)) == hex_list
    assert hex_list_to_proof(hex_list) == proof
    assert bytes_to_hex(proof[:2]) == "0505"
    with pytest.raises(InvalidProofLength):
        hex_list_to_proof(["05" * 31])
