"""
SQLite storage for issued withdrawal proofs.

The trie itself keeps no history. This store records the proof issued for
every appended message so relayers can fetch it later, and its newest record
is the checkpoint a restarted process resumes the trie from.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from withdraw_trie.core.models import MessageProof

logger = logging.getLogger(__name__)

# Database schema version
SCHEMA_VERSION = 1

# SQL statements for schema creation
SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS metadata (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS message_proofs (
        nonce INTEGER PRIMARY KEY,
        message_hash BLOB NOT NULL,
        proof BLOB NOT NULL,
        root BLOB NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_message_proofs_message_hash
    ON message_proofs(message_hash)
    """,
]


class ProofStore:
    """SQLite database of issued message proofs."""

    def __init__(self, db_path: Union[str, Path]):
        """Open (and if needed create) the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = str(db_path)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with self._get_connection() as conn:
            for stmt in SCHEMA:
                conn.execute(stmt)

            cursor = conn.execute(
                "SELECT value FROM metadata WHERE key = 'schema_version'"
            )
            if not cursor.fetchone():
                conn.execute(
                    "INSERT INTO metadata (key, value) VALUES (?, ?)",
                    ("schema_version", str(SCHEMA_VERSION))
                )

            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper transaction handling."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row

        try:
            yield conn
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            conn.close()

    @staticmethod
    def _row_to_proof(row: sqlite3.Row) -> MessageProof:
        return MessageProof.from_bytes(
            nonce=row["nonce"],
            message_hash=row["message_hash"],
            proof=row["proof"],
            root=row["root"],
        )

    def save_proofs(self, proofs: Sequence[MessageProof]) -> None:
        """Store a batch of proofs in one transaction.

        Args:
            proofs: Proofs returned by one append call.

        Raises:
            ValueError: If a nonce is already stored. Nothing from the batch
                is written in that case.
        """
        if not proofs:
            return

        rows = [
            (p.nonce, p.message_hash_bytes(), p.proof_bytes(), p.root_bytes())
            for p in proofs
        ]
        with self._get_connection() as conn:
            try:
                conn.executemany(
                    """
                    INSERT INTO message_proofs (nonce, message_hash, proof, root)
                    VALUES (?, ?, ?, ?)
                    """,
                    rows
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Proof already stored for one of nonces {rows[0][0]}..{rows[-1][0]}") from e
            conn.commit()

        logger.debug("Stored %d proofs ending at nonce %d", len(rows), rows[-1][0])

    def get_proof(self, nonce: int) -> Optional[MessageProof]:
        """Get the proof issued for a nonce.

        Returns:
            The stored proof if found, None otherwise.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT nonce, message_hash, proof, root
                FROM message_proofs
                WHERE nonce = ?
                """,
                (nonce,)
            )

            row = cursor.fetchone()
            return self._row_to_proof(row) if row else None

    def get_proofs(
        self,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[MessageProof], int]:
        """Get a page of proofs in nonce order.

        Returns:
            A tuple of (proofs, total_count).
        """
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) as count FROM message_proofs")
            total_count = cursor.fetchone()["count"]

            cursor = conn.execute(
                """
                SELECT nonce, message_hash, proof, root
                FROM message_proofs
                ORDER BY nonce ASC
                LIMIT ? OFFSET ?
                """,
                (limit, offset)
            )

            return [self._row_to_proof(row) for row in cursor.fetchall()], total_count

    def latest(self) -> Optional[MessageProof]:
        """The proof of the newest stored message, or None if the store is empty."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT nonce, message_hash, proof, root
                FROM message_proofs
                ORDER BY nonce DESC
                LIMIT 1
                """
            )

            row = cursor.fetchone()
            return self._row_to_proof(row) if row else None

    def count(self) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) as count FROM message_proofs")
            return cursor.fetchone()["count"]
