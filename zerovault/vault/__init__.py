"""Zero-knowledge vault core — key derivation, field encryption, session cache.

Security Note (Threat Model):
    Vault fields are encrypted before they leave the process; the storage
    service only ever holds ciphertext. The passphrase is kept sealed in
    process memory for the session lifetime. A memory dump of the running
    client could still expose it together with its ephemeral key. This is an
    accepted limitation; hardware-backed key storage is out of scope.
"""

from .codec import VaultCodec
from .config import VaultConfig
from .crypto import check_credentials, decrypt_field, derive_key, encrypt_field
from .exceptions import (
    CacheMiss,
    DecryptionFailure,
    EncryptionFailure,
    InvalidInput,
    StorageError,
    VaultError,
)
from .models import DecryptionReport, EncryptedVaultItem, VaultItem, VaultListing
from .session_cache import SessionKeyCache
from .storage import HTTPVaultStorage, MemoryVaultStorage, VaultStorage

__all__ = [
    "VaultCodec",
    "VaultConfig",
    "check_credentials",
    "decrypt_field",
    "derive_key",
    "encrypt_field",
    "CacheMiss",
    "DecryptionFailure",
    "EncryptionFailure",
    "InvalidInput",
    "StorageError",
    "VaultError",
    "DecryptionReport",
    "EncryptedVaultItem",
    "VaultItem",
    "VaultListing",
    "SessionKeyCache",
    "HTTPVaultStorage",
    "MemoryVaultStorage",
    "VaultStorage",
]
