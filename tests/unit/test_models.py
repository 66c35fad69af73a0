"""Unit tests for checkpoint and proof models."""

import pytest
from pydantic import ValidationError

from conftest import GOLDEN_PROOF_C, GOLDEN_ROOT, HASH_C
from withdraw_trie.core.models import Checkpoint, MessageProof, TrieStatus


def test_message_proof_from_bytes() -> None:
    record = MessageProof.from_bytes(2, HASH_C, GOLDEN_PROOF_C, GOLDEN_ROOT)

    assert record.nonce == 2
    assert record.message_hash == HASH_C.hex()
    assert record.proof == GOLDEN_PROOF_C.hex()
    assert record.root == GOLDEN_ROOT.hex()
    assert record.message_hash_bytes() == HASH_C
    assert record.proof_bytes() == GOLDEN_PROOF_C
    assert record.root_bytes() == GOLDEN_ROOT
    assert record.proof_hashes() == [
        "00" * 32,
        "eac9b33976a25627817774db946ec33e0268bea17c0eed2346fa659afd9aa5cc",
    ]


def test_hex_fields_are_normalized() -> None:
    checkpoint = Checkpoint(
        nonce=2,
        message_hash="0x" + HASH_C.hex().upper(),
        proof="0X" + GOLDEN_PROOF_C.hex(),
    )

    assert checkpoint.message_hash == HASH_C.hex()
    assert checkpoint.proof == GOLDEN_PROOF_C.hex()


def test_checkpoint_defaults_to_empty_proof() -> None:
    checkpoint = Checkpoint(nonce=0, message_hash=HASH_C.hex())

    assert checkpoint.proof_bytes() == b""


@pytest.mark.parametrize("fields", [
    {"nonce": -1, "message_hash": "ab" * 32},
    {"nonce": 0, "message_hash": "ab" * 31},
    {"nonce": 0, "message_hash": "zz" * 32},
    {"nonce": 1, "message_hash": "ab" * 32, "proof": "cd" * 33},
])
def test_checkpoint_validation(fields) -> None:
    with pytest.raises(ValidationError):
        Checkpoint(**fields)


def test_to_checkpoint_round_trips_through_json() -> None:
    record = MessageProof.from_bytes(2, HASH_C, GOLDEN_PROOF_C, GOLDEN_ROOT)

    checkpoint = record.to_checkpoint()
    restored = Checkpoint.model_validate_json(checkpoint.model_dump_json())

    assert restored == checkpoint
    assert restored.nonce == 2
    assert restored.message_hash_bytes() == HASH_C
    assert restored.proof_bytes() == GOLDEN_PROOF_C


def test_checkpoint_from_bytes() -> None:
    checkpoint = Checkpoint.from_bytes(2, HASH_C, GOLDEN_PROOF_C)
    assert checkpoint == MessageProof.from_bytes(2, HASH_C, GOLDEN_PROOF_C, GOLDEN_ROOT).to_checkpoint()


def test_trie_status_bounds() -> None:
    TrieStatus(next_message_nonce=0, height=-1, root="00" * 32)
    with pytest.raises(ValidationError):
        TrieStatus(next_message_nonce=0, height=-2, root="00" * 32)
