"""
VaultService — vault reads and writes for an open session.

Every call pulls the passphrase from the session cache; a closed session
raises ``CacheMiss`` so the caller can route back to credential entry.
Plaintext never reaches the storage collaborator.
"""
import logging
from collections.abc import Iterable
from typing import Optional

from .session import VaultSession
from .vault.codec import VaultCodec
from .vault.exceptions import StorageError
from .vault.models import EncryptedVaultItem, VaultItem, VaultListing
from .vault.storage import VaultStorage

logger = logging.getLogger("zerovault.vault")

SEARCH_FIELDS = ("title", "username", "website")


class VaultService:
    """Encrypted CRUD over a storage collaborator."""

    def __init__(
        self,
        session: VaultSession,
        storage: VaultStorage,
        codec: Optional[VaultCodec] = None,
    ):
        self._session = session
        self._storage = storage
        self._codec = codec or VaultCodec()

    def _credential(self) -> str:
        if not self._session.token:
            raise StorageError("Session has no bearer credential")
        return self._session.token

    async def list_items(self) -> VaultListing:
        """Fetch and decrypt the vault; undecryptable items are kept as degraded."""
        passphrase = self._session.passphrase()
        encrypted = await self._storage.list_items(self._credential())
        return self._codec.to_plain_many(encrypted, self._session.identity, passphrase)

    async def save_item(self, item: VaultItem) -> VaultItem:
        """Encrypt and store a new item; returns it with storage id and timestamps."""
        passphrase = self._session.passphrase()
        encrypted = self._codec.to_encrypted(item, self._session.identity, passphrase)
        stored = await self._storage.create(self._credential(), encrypted)
        logger.debug("Vault item %s saved", stored.id)
        return item.model_copy(
            update={
                "id": stored.id,
                "created_at": stored.created_at,
                "updated_at": stored.updated_at,
            },
        )

    async def update_item(self, item_id: str, **changes: Optional[str]) -> EncryptedVaultItem:
        """Re-encrypt only the given fields; the rest of the item is untouched."""
        passphrase = self._session.passphrase()
        encrypted = self._codec.encrypt_changes(
            changes, self._session.identity, passphrase,
        )
        updated = await self._storage.update(self._credential(), item_id, encrypted)
        logger.debug("Vault item %s updated: %s", item_id, sorted(changes))
        return updated

    async def delete_item(self, item_id: str) -> None:
        await self._storage.delete(self._credential(), item_id)
        logger.debug("Vault item %s deleted", item_id)

    def copy_field(self, item: VaultItem, field: str, seconds: Optional[float] = None) -> bool:
        """Copy a decrypted field to the session clipboard with auto-clear."""
        value = getattr(item, field, None)
        if not value:
            return False
        return self._session.clipboard.copy(value, subject_tag=field, seconds=seconds)

    @staticmethod
    def search(items: Iterable[VaultItem], term: str) -> list[VaultItem]:
        """Case-insensitive match on title, username and website."""
        needle = term.lower()
        return [
            item for item in items
            if any(needle in (getattr(item, f) or "").lower() for f in SEARCH_FIELDS)
        ]
