"""
Vault record models.

``VaultItem`` is the plaintext form shown to the user. ``EncryptedVaultItem``
is the only form that leaves the process; its wire names are the camelCase
keys used by the storage REST surface.
"""
from datetime import datetime
from typing import Any, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field

SENSITIVE_FIELDS = ("title", "username", "password", "website", "notes")


def encrypted_name(field: str) -> str:
    """Map a plaintext field name to its EncryptedVaultItem attribute."""
    return f"encrypted_{field}"


class VaultItem(BaseModel):
    """Plaintext vault record."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    username: Optional[str] = None
    password: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class EncryptedVaultItem(BaseModel):
    """Vault record with every sensitive field replaced by an EncryptedField."""

    model_config = ConfigDict(populate_by_name=True)

    encrypted_title: str = Field(alias="encryptedTitle")
    encrypted_username: Optional[str] = Field(default=None, alias="encryptedUsername")
    encrypted_password: Optional[str] = Field(default=None, alias="encryptedPassword")
    encrypted_website: Optional[str] = Field(default=None, alias="encryptedWebsite")
    encrypted_notes: Optional[str] = Field(default=None, alias="encryptedNotes")
    id: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    def present_fields(self) -> dict[str, str]:
        """Return the present encrypted fields keyed by plaintext field name."""
        present = {}
        for name in SENSITIVE_FIELDS:
            value = getattr(self, encrypted_name(name))
            if value:
                present[name] = value
        return present

    def to_wire(self, include_meta: bool = True) -> dict[str, Any]:
        """Dump with wire (camelCase) names, omitting absent fields."""
        exclude = None if include_meta else {"id", "created_at", "updated_at"}
        return self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude=exclude,
        )

    def to_json(self, include_meta: bool = True) -> bytes:
        return orjson.dumps(self.to_wire(include_meta=include_meta))

    @classmethod
    def from_json(cls, data: bytes | str) -> "EncryptedVaultItem":
        return cls.model_validate(orjson.loads(data))


def wire_name(attribute: str) -> str:
    """Return the camelCase wire key of an EncryptedVaultItem attribute."""
    return EncryptedVaultItem.model_fields[attribute].alias or attribute


class DecryptionReport(BaseModel):
    """Outcome of decrypting one EncryptedVaultItem.

    ``failed_fields`` lists plaintext field names whose decryption failed;
    those fields are ``None`` on ``item`` (an empty string for the title).
    """

    item: VaultItem
    failed_fields: list[str] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.failed_fields)

    @property
    def unavailable(self) -> bool:
        return "title" in self.failed_fields


class VaultListing(BaseModel):
    """Decrypted vault listing with per-item outcomes."""

    reports: list[DecryptionReport] = Field(default_factory=list)

    @property
    def items(self) -> list[VaultItem]:
        return [report.item for report in self.reports]

    @property
    def failed_count(self) -> int:
        return sum(1 for report in self.reports if report.degraded)

    def __len__(self) -> int:
        return len(self.reports)
