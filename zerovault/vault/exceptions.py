"""Vault error taxonomy.

``DecryptionFailure`` is recoverable and reported per item by the codec;
``CacheMiss`` is a routine signal to ask the user for credentials again.
"""


class VaultError(Exception):
    """Base class for every error raised by the vault core."""


class InvalidInput(VaultError, ValueError):
    """A required identity, passphrase, key or plaintext is missing or malformed."""


class EncryptionFailure(VaultError, RuntimeError):
    """The host cannot provide secure randomness; the save must be retried."""


class DecryptionFailure(VaultError):
    """Wrong credentials or corrupted ciphertext."""


class CacheMiss(VaultError, LookupError):
    """No cached passphrase for this session."""


class StorageError(VaultError):
    """The storage collaborator rejected or failed a request."""
