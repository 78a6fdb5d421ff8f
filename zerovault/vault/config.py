"""
Vault Configuration — validated client settings.

Reads settings from environment variables:
    VAULT_STORAGE_URL = <base URL of the vault storage service>
    VAULT_REQUEST_TIMEOUT = <seconds>
    VAULT_CLIPBOARD_CLEAR_AFTER = <seconds>
    VAULT_EXPOSURE_TICK = <seconds>

The PBKDF2 iteration count is a constant in ``crypto`` and is never read
from configuration.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("zerovault.vault")


class VaultConfig(BaseModel):
    """Validated vault client configuration."""

    storage_url: str = Field(default="http://localhost:3000")
    request_timeout: float = Field(default=10.0, gt=0)
    clipboard_clear_after: int = Field(default=15, ge=1, le=300)
    exposure_tick: float = Field(default=0.5, gt=0, le=5)

    @field_validator("storage_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) base URL without trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported storage URL: {v}")
        return v.rstrip("/")

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig from environment, falling back to defaults.

        Returns:
            Populated VaultConfig instance.
        """
        values = {}
        for field, env in (
            ("storage_url", "VAULT_STORAGE_URL"),
            ("request_timeout", "VAULT_REQUEST_TIMEOUT"),
            ("clipboard_clear_after", "VAULT_CLIPBOARD_CLEAR_AFTER"),
            ("exposure_tick", "VAULT_EXPOSURE_TICK"),
        ):
            raw = os.environ.get(env)
            if raw is not None:
                values[field] = raw
        config = cls(**values)
        logger.debug("Vault config loaded: storage_url=%s", config.storage_url)
        return config
