"""
Withdrawal Outbox Server
========================

Keeps the withdrawal trie for outgoing bridge messages. Appended message
hashes get their inclusion proofs stored in SQLite so relayers can fetch
them later, and the trie resumes from the newest stored proof on restart.
"""

import argparse
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from flask import Flask, jsonify, request
from flask.typing import ResponseReturnValue
from werkzeug.exceptions import BadRequest, Conflict, HTTPException, NotFound

from withdraw_trie.core.codec import decode_hex_digest
from withdraw_trie.core.db import ProofStore
from withdraw_trie.core.errors import TrieStateError, WithdrawTrieError
from withdraw_trie.core.merkle import WithdrawTrie
from withdraw_trie.core.models import MessageProof, TrieStatus

logger = logging.getLogger(__name__)


class MessageOutbox:
    """Withdrawal trie backed by a SQLite proof store."""

    def __init__(self, db_path: str):
        """Open the store and resume the trie from its newest proof.

        Args:
            db_path: Path to the SQLite database file
        """
        self.store = ProofStore(db_path)
        self.trie = WithdrawTrie()
        self._lock = threading.Lock()
        self._resume()

    def _resume(self) -> None:
        """Initialize the trie from the checkpoint of the newest stored message."""
        latest = self.store.latest()
        if latest is None:
            logger.info("Starting with an empty withdrawal trie")
            return

        checkpoint = latest.to_checkpoint()
        self.trie.initialize(
            checkpoint.nonce,
            checkpoint.message_hash_bytes(),
            checkpoint.proof_bytes(),
        )
        if self.trie.message_root() != latest.root_bytes():
            raise TrieStateError(
                f"Stored root for nonce {latest.nonce} does not match its proof"
            )
        logger.info(
            "Resumed withdrawal trie at nonce %d, root %s",
            latest.nonce,
            latest.root,
        )

    def append(self, message_hashes: Sequence[bytes]) -> List[MessageProof]:
        """Append message hashes and persist their proofs.

        Raises:
            WithdrawTrieError: If the hashes or the batch size are invalid.
        """
        with self._lock:
            first_nonce = self.trie.next_message_nonce
            proofs = self.trie.append_messages(message_hashes)
            root = self.trie.message_root()
            records = [
                MessageProof.from_bytes(first_nonce + i, message_hash, proof, root)
                for i, (message_hash, proof) in enumerate(zip(message_hashes, proofs))
            ]
            try:
                self.store.save_proofs(records)
            except Exception:
                # The trie is ahead of the store now; rebuild it from disk.
                self.trie = WithdrawTrie()
                self._resume()
                raise
            return records

    def get_proof(self, nonce: int) -> Optional[MessageProof]:
        return self.store.get_proof(nonce)

    def status(self) -> TrieStatus:
        with self._lock:
            return self.trie.status()


def _parse_message_hashes(payload: Any, max_batch_size: int) -> List[bytes]:
    """Validate the JSON body of POST /messages."""
    if not isinstance(payload, dict) or not isinstance(payload.get('message_hashes'), list):
        raise BadRequest("Body must be a JSON object with a 'message_hashes' list")

    hashes = payload['message_hashes']
    if not hashes:
        raise BadRequest("'message_hashes' must not be empty")
    if len(hashes) > max_batch_size:
        raise BadRequest(f"At most {max_batch_size} message hashes per request")

    try:
        return [decode_hex_digest(h, f"message_hashes[{i}]") for i, h in enumerate(hashes)]
    except ValueError as e:
        raise BadRequest(str(e))


def create_app(test_config: Optional[Dict[str, Any]] = None) -> Flask:
    """Create and configure the Flask application.

    Settings come from defaults, then WITHDRAW_TRIE_* environment
    variables, then test_config.

    Args:
        test_config: Optional test configuration

    Returns:
        Configured Flask application
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_mapping(
        DATABASE=os.path.join(app.instance_path, 'withdraw_trie.db'),
        MAX_BATCH_SIZE=1024,
        MAX_CONTENT_LENGTH=1024 * 1024,  # 1MB max request
    )
    app.config.from_prefixed_env(prefix='WITHDRAW_TRIE')

    # Apply test config if provided
    if test_config is not None:
        app.config.update(test_config)

    db_dir = os.path.dirname(os.path.abspath(app.config['DATABASE']))
    os.makedirs(db_dir, exist_ok=True)

    outbox = MessageOutbox(app.config['DATABASE'])
    app.extensions['outbox'] = outbox

    # Register routes
    @app.route('/health', methods=['GET'])
    def health() -> ResponseReturnValue:
        """Health check endpoint."""
        status = outbox.status()
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'next_message_nonce': status.next_message_nonce,
            'root': status.root
        })

    @app.route('/messages', methods=['POST'])
    def append_messages() -> ResponseReturnValue:
        """Append message hashes to the trie."""
        if not request.is_json:
            raise BadRequest("Content-Type must be application/json")

        hashes = _parse_message_hashes(
            request.get_json(silent=True), app.config['MAX_BATCH_SIZE']
        )
        try:
            records = outbox.append(hashes)
        except TrieStateError as e:
            raise Conflict(str(e))
        except WithdrawTrieError as e:
            raise BadRequest(str(e))

        return jsonify({
            'status': 'success',
            'root': records[-1].root,
            'next_message_nonce': records[-1].nonce + 1,
            'proofs': [r.model_dump() for r in records]
        }), 201

    @app.route('/messages/<int:nonce>/proof', methods=['GET'])
    def get_proof(nonce: int) -> ResponseReturnValue:
        """Get the proof issued for a message."""
        record = outbox.get_proof(nonce)
        if record is None:
            raise NotFound(f"No message with nonce {nonce}")

        body = record.model_dump()
        body['proof_hashes'] = record.proof_hashes()
        return jsonify(body)

    @app.route('/trie/root', methods=['GET'])
    def get_root() -> ResponseReturnValue:
        """Get the current trie root."""
        status = outbox.status()
        return jsonify({
            'next_message_nonce': status.next_message_nonce,
            'root': status.root
        })

    @app.route('/trie/status', methods=['GET'])
    def get_status() -> ResponseReturnValue:
        """Get the trie counters and root."""
        return jsonify(outbox.status().model_dump())

    # Error handlers
    @app.errorhandler(400)
    def bad_request(error: HTTPException) -> ResponseReturnValue:
        return jsonify({
            'error': 'bad_request',
            'message': error.description
        }), 400

    @app.errorhandler(404)
    def not_found(error: HTTPException) -> ResponseReturnValue:
        return jsonify({
            'error': 'not_found',
            'message': error.description
        }), 404

    @app.errorhandler(409)
    def conflict(error: HTTPException) -> ResponseReturnValue:
        return jsonify({
            'error': 'conflict',
            'message': error.description
        }), 409

    @app.errorhandler(500)
    def internal_error(error: HTTPException) -> ResponseReturnValue:
        return jsonify({
            'error': 'internal_server_error',
            'message': 'An internal server error occurred'
        }), 500

    return app


def run_server(host: str = '127.0.0.1', port: int = 5000, debug: bool = False) -> None:
    """Run the outbox server.

    Args:
        host: Host to bind to
        port: Port to listen on
        debug: Enable debug mode
    """
    app = create_app()
    app.run(host=host, port=port, debug=debug)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Withdrawal trie outbox server')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind to')
    parser.add_argument('--port', type=int, default=5000, help='Port to listen on')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Starting withdrawal outbox server on {args.host}:{args.port}", file=sys.stderr)
    run_server(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
