"""Data models for checkpoints and issued withdrawal proofs."""

from typing import List, Optional

from pydantic import BaseModel, Field, StringConstraints, field_validator
from typing_extensions import Annotated

from withdraw_trie.core.codec import (
    bytes_to_hex,
    decode_hex_digest,
    decode_hex_proof,
    proof_to_hex_list,
)
from withdraw_trie.core.crypto import BytesLike

# Type aliases
HexDigest = Annotated[str, StringConstraints(pattern=r'^[a-f0-9]{64}$')]
HexProof = Annotated[str, StringConstraints(pattern=r'^([a-f0-9]{64})*$')]


def _normalize_hex(v):
    """Strip a 0x prefix and lower-case hex input before pattern checks."""
    if isinstance(v, str):
        v = v.strip()
        if v.startswith(("0x", "0X")):
            v = v[2:]
        return v.lower()
    return v


class Checkpoint(BaseModel):
    """Everything a fresh trie needs to resume after its newest message."""
    nonce: int = Field(
        ...,
        ge=0,
        description="Nonce of the newest appended message."
    )
    message_hash: HexDigest = Field(
        ...,
        description="Keccak-256 digest of that message."
    )
    proof: HexProof = Field(
        "",
        description="Flat hex proof issued for that message, leaf level first."
    )

    @field_validator('message_hash', 'proof', mode='before')
    @classmethod
    def normalize_hex(cls, v):
        return _normalize_hex(v)

    @classmethod
    def from_bytes(cls, nonce: int, message_hash: BytesLike, proof: BytesLike) -> 'Checkpoint':
        return cls(nonce=nonce, message_hash=bytes_to_hex(message_hash), proof=bytes_to_hex(proof))

    def message_hash_bytes(self) -> bytes:
        return decode_hex_digest(self.message_hash, "message hash")

    def proof_bytes(self) -> bytes:
        return decode_hex_proof(self.proof)


class MessageProof(BaseModel):
    """An inclusion proof issued when a message was appended."""
    nonce: int = Field(
        ...,
        ge=0,
        description="Index of the message in the trie."
    )
    message_hash: HexDigest = Field(
        ...,
        description="Keccak-256 digest of the message."
    )
    proof: HexProof = Field(
        ...,
        description="Flat hex proof, one 32-byte sibling per depth."
    )
    root: HexDigest = Field(
        ...,
        description="Trie root the proof verifies against."
    )

    @field_validator('message_hash', 'proof', 'root', mode='before')
    @classmethod
    def normalize_hex(cls, v):
        return _normalize_hex(v)

    @classmethod
    def from_bytes(
        cls,
        nonce: int,
        message_hash: BytesLike,
        proof: BytesLike,
        root: BytesLike,
    ) -> 'MessageProof':
        """Build a proof record from the raw values the trie returns."""
        return cls(
            nonce=nonce,
            message_hash=bytes_to_hex(message_hash),
            proof=bytes_to_hex(proof),
            root=bytes_to_hex(root),
        )

    def proof_hashes(self) -> List[str]:
        """The proof as a list of hex siblings."""
        return proof_to_hex_list(self.proof_bytes())

    def message_hash_bytes(self) -> bytes:
        return decode_hex_digest(self.message_hash, "message hash")

    def proof_bytes(self) -> bytes:
        return decode_hex_proof(self.proof)

    def root_bytes(self) -> bytes:
        return decode_hex_digest(self.root, "root")

    def to_checkpoint(self) -> Checkpoint:
        """Checkpoint for resuming a trie whose newest message is this one."""
        return Checkpoint(nonce=self.nonce, message_hash=self.message_hash, proof=self.proof)


class TrieStatus(BaseModel):
    """Snapshot of a trie's counters and root."""
    next_message_nonce: int = Field(
        ...,
        ge=0,
        description="Nonce the next appended message will receive."
    )
    height: int = Field(
        ...,
        ge=-1,
        description="Depth of the root; -1 while the trie is empty."
    )
    root: HexDigest = Field(
        ...,
        description="Current trie root."
    )
    last_nonce: Optional[int] = Field(
        None,
        description="Nonce of the newest message, if any."
    )

    @field_validator('root', mode='before')
    @classmethod
    def normalize_hex(cls, v):
        return _normalize_hex(v)
