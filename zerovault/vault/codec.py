"""
VaultCodec — field-by-field encryption of vault records.

The key is derived once per operation and reused for every field, since
PBKDF2 at 100k iterations dominates the cost of an item.

Security Note:
    Only field names and item ids are logged.
"""
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Optional

from .crypto import DerivedKey, decrypt_field, derive_key, encrypt_field
from .exceptions import DecryptionFailure, InvalidInput
from .models import (
    SENSITIVE_FIELDS,
    DecryptionReport,
    EncryptedVaultItem,
    VaultItem,
    VaultListing,
    encrypted_name,
)

logger = logging.getLogger("zerovault.vault")


class VaultCodec:
    """Maps VaultItem to and from EncryptedVaultItem."""

    def __init__(self, deriver: Callable[[str, str], DerivedKey] = derive_key):
        self._derive = deriver

    def to_encrypted(
        self, item: VaultItem, identity: str, passphrase: str,
    ) -> EncryptedVaultItem:
        """Encrypt every present field of ``item``.

        Absent optional fields stay absent. Storage metadata is carried over.

        Raises:
            InvalidInput: If the title is empty or credentials are missing.
            EncryptionFailure: If no secure randomness is available.
        """
        if not item.title:
            raise InvalidInput("Vault item title is required")
        key = self._derive(identity, passphrase)
        values = {}
        for name in SENSITIVE_FIELDS:
            value = getattr(item, name)
            if value:
                values[encrypted_name(name)] = encrypt_field(value, key)
        return EncryptedVaultItem(
            **values,
            id=item.id,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )

    def to_plain(
        self, encrypted: EncryptedVaultItem, identity: str, passphrase: str,
    ) -> DecryptionReport:
        """Decrypt every present field, collecting per-field failures."""
        key = self._derive(identity, passphrase)
        return self._decrypt(encrypted, key)

    def to_plain_many(
        self,
        items: Iterable[EncryptedVaultItem],
        identity: str,
        passphrase: str,
    ) -> VaultListing:
        """Decrypt a batch of items under a single key derivation."""
        key = self._derive(identity, passphrase)
        listing = VaultListing(reports=[self._decrypt(item, key) for item in items])
        if listing.failed_count:
            logger.warning(
                "%d of %d vault item(s) could not be fully decrypted",
                listing.failed_count, len(listing),
            )
        return listing

    def encrypt_changes(
        self,
        changes: Mapping[str, Optional[str]],
        identity: str,
        passphrase: str,
    ) -> dict[str, Optional[str]]:
        """Encrypt a partial update.

        Args:
            changes: Plaintext field name to new value. ``None`` or an empty
                string clears an optional field.

        Returns:
            EncryptedVaultItem attribute name to EncryptedField (or ``None``).

        Raises:
            InvalidInput: On an empty update, an unknown field, or an attempt
                to clear the title.
        """
        if not changes:
            raise InvalidInput("No fields to update")
        unknown = set(changes) - set(SENSITIVE_FIELDS)
        if unknown:
            raise InvalidInput(f"Unknown vault fields: {sorted(unknown)}")
        if "title" in changes and not changes["title"]:
            raise InvalidInput("Vault item title is required")
        key = self._derive(identity, passphrase)
        encrypted = {}
        for name, value in changes.items():
            encrypted[encrypted_name(name)] = encrypt_field(value, key) if value else None
        return encrypted

    def _decrypt(self, encrypted: EncryptedVaultItem, key: DerivedKey) -> DecryptionReport:
        values: dict[str, Optional[str]] = {}
        failed: list[str] = []
        for name, blob in encrypted.present_fields().items():
            try:
                values[name] = decrypt_field(blob, key)
            except DecryptionFailure as err:
                logger.debug(
                    "Field %s of item %s failed to decrypt: %s",
                    name, encrypted.id, err,
                )
                failed.append(name)
        if "title" not in values:
            values["title"] = ""
            if "title" not in failed:
                failed.append("title")
        item = VaultItem(
            **values,
            id=encrypted.id,
            created_at=encrypted.created_at,
            updated_at=encrypted.updated_at,
        )
        return DecryptionReport(item=item, failed_fields=failed)
