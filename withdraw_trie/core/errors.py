"""
Exceptions raised by the withdrawal trie.

Every error is a precondition violation raised synchronously by the call
that violates it. None of them leave the trie partially updated.
"""


class WithdrawTrieError(Exception):
    """Base class for all withdrawal trie errors."""

    pass


class InvalidDigestLength(WithdrawTrieError, ValueError):
    """Raised when a value that must be a 32-byte digest is not."""

    pass


class InvalidProofLength(WithdrawTrieError, ValueError):
    """Raised when proof bytes are not a whole number of 32-byte siblings."""

    pass


class CounterOverflow(WithdrawTrieError, OverflowError):
    """Raised when an append would advance the message nonce past its ceiling."""

    pass


class TrieStateError(WithdrawTrieError, RuntimeError):
    """Raised when an operation is not valid in the trie's current state."""

    pass
