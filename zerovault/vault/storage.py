"""
Vault storage collaborators.

Storage only ever sees EncryptedVaultItem values. Ownership scoping belongs
to the storage side: callers pass the opaque bearer credential from the
session and never inspect it.
"""
import asyncio
import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import aiohttp
import orjson
from pydantic import ValidationError

from .config import VaultConfig
from .exceptions import StorageError
from .models import EncryptedVaultItem, wire_name

logger = logging.getLogger("zerovault.vault")

ITEMS_PATH = "/api/vault/items"


class VaultStorage(Protocol):
    async def create(
        self, credential: str, item: EncryptedVaultItem,
    ) -> EncryptedVaultItem:
        ...

    async def update(
        self,
        credential: str,
        item_id: str,
        changes: Mapping[str, Optional[str]],
    ) -> EncryptedVaultItem:
        ...

    async def delete(self, credential: str, item_id: str) -> None:
        ...

    async def list_items(self, credential: str) -> list[EncryptedVaultItem]:
        ...


class MemoryVaultStorage:
    """Ciphertext-only storage held in process memory, scoped per credential."""

    def __init__(self) -> None:
        self._items: dict[str, dict[str, EncryptedVaultItem]] = {}

    def _owned(self, credential: str, item_id: str) -> dict[str, EncryptedVaultItem]:
        owned = self._items.get(credential, {})
        if item_id not in owned:
            raise StorageError(f"Item {item_id} not found or access denied")
        return owned

    async def create(
        self, credential: str, item: EncryptedVaultItem,
    ) -> EncryptedVaultItem:
        now = datetime.now(timezone.utc)
        stored = item.model_copy(
            update={"id": uuid.uuid4().hex, "created_at": now, "updated_at": now},
        )
        self._items.setdefault(credential, {})[stored.id] = stored
        return stored

    async def update(
        self,
        credential: str,
        item_id: str,
        changes: Mapping[str, Optional[str]],
    ) -> EncryptedVaultItem:
        owned = self._owned(credential, item_id)
        updated = owned[item_id].model_copy(
            update={**changes, "updated_at": datetime.now(timezone.utc)},
        )
        owned[item_id] = updated
        return updated

    async def delete(self, credential: str, item_id: str) -> None:
        del self._owned(credential, item_id)[item_id]

    async def list_items(self, credential: str) -> list[EncryptedVaultItem]:
        items = list(self._items.get(credential, {}).values())
        return sorted(items, key=lambda item: item.created_at, reverse=True)


class HTTPVaultStorage:
    """Client for the vault REST surface (``/api/vault/items``)."""

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_config(
        cls, config: VaultConfig, session: Optional[aiohttp.ClientSession] = None,
    ) -> "HTTPVaultStorage":
        return cls(config.storage_url, session=session, timeout=config.request_timeout)

    async def _request(
        self,
        method: str,
        path: str,
        credential: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {credential}"}
        data = None
        if payload is not None:
            headers["Content-Type"] = "application/json"
            data = orjson.dumps(payload)
        url = f"{self._base_url}{path}"
        try:
            if self._session is not None:
                status, body = await self._send(self._session, method, url, headers, data)
            else:
                async with aiohttp.ClientSession(timeout=self._timeout) as client:
                    status, body = await self._send(client, method, url, headers, data)
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.error("Vault storage %s %s failed: %r", method, path, err)
            raise StorageError(f"{method} {path} failed: {err!r}") from err
        if status >= 400:
            logger.error("Vault storage %s %s returned HTTP %d", method, path, status)
            raise StorageError(f"{method} {path} failed with HTTP {status}")
        if not body:
            return {}
        try:
            result = orjson.loads(body)
        except orjson.JSONDecodeError as err:
            logger.error("Vault storage %s %s returned invalid JSON", method, path)
            raise StorageError(f"{method} {path} returned invalid JSON") from err
        if not isinstance(result, dict):
            raise StorageError(f"{method} {path} returned an unexpected payload")
        return result

    async def _send(self, client, method, url, headers, data) -> tuple[int, bytes]:
        async with client.request(
            method, url, headers=headers, data=data, timeout=self._timeout,
        ) as response:
            return response.status, await response.read()

    @staticmethod
    def _item(result: dict[str, Any]) -> EncryptedVaultItem:
        if "item" not in result:
            raise StorageError("Storage response has no item")
        try:
            return EncryptedVaultItem.model_validate(result["item"])
        except ValidationError as err:
            raise StorageError(f"Storage returned a malformed item: {err}") from err

    async def create(
        self, credential: str, item: EncryptedVaultItem,
    ) -> EncryptedVaultItem:
        result = await self._request(
            "POST", ITEMS_PATH, credential, item.to_wire(include_meta=False),
        )
        return self._item(result)

    async def update(
        self,
        credential: str,
        item_id: str,
        changes: Mapping[str, Optional[str]],
    ) -> EncryptedVaultItem:
        payload = {wire_name(name): value for name, value in changes.items()}
        result = await self._request(
            "PUT", f"{ITEMS_PATH}/{item_id}", credential, payload,
        )
        return self._item(result)

    async def delete(self, credential: str, item_id: str) -> None:
        await self._request("DELETE", f"{ITEMS_PATH}/{item_id}", credential)

    async def list_items(self, credential: str) -> list[EncryptedVaultItem]:
        result = await self._request("GET", ITEMS_PATH, credential)
        try:
            return [EncryptedVaultItem.model_validate(item) for item in result.get("items", [])]
        except ValidationError as err:
            raise StorageError(f"Storage returned a malformed item: {err}") from err
