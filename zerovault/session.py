"""Vault session context.

A ``VaultSession`` owns everything that must live exactly as long as one
login: the sealed passphrase cache and the clipboard exposure window. It is
passed explicitly to the vault service, so each test (or each user) gets an
isolated session.
"""
import logging
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Optional

from .exposure import DEFAULT_EXPOSURE_SECONDS, ClipboardExposure, ClipboardSink, MemoryClipboard
from .vault.crypto import check_credentials
from .vault.exceptions import InvalidInput
from .vault.session_cache import SessionKeyCache

logger = logging.getLogger("zerovault.session")


class VaultSession:
    """Session context for one authenticated user.

    Non-secret metadata (id, identity, creation time) is exposed through
    ``session_data()``; the passphrase is only reachable via ``passphrase()``.
    """

    def __init__(
        self,
        identity: str,
        token: Optional[str] = None,
        *,
        id: Optional[str] = None,
        clipboard: Optional[ClipboardSink] = None,
        clear_after: float = DEFAULT_EXPOSURE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not identity:
            raise InvalidInput("Session identity is required")
        self._id_ = id or uuid.uuid4().hex
        self._identity = identity
        self._token = token
        self._cache = SessionKeyCache()
        self._clipboard = ClipboardExposure(
            clipboard or MemoryClipboard(), clear_after=clear_after, clock=clock,
        )
        self.__created__ = datetime.now(timezone.utc)
        self._created = int(self.__created__.timestamp())

    def __repr__(self) -> str:
        return (
            f'<Vault-Session [open:{self.is_open}, created:{self.created}] '
            f'identity={self._identity!r}>'
        )

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def token(self) -> Optional[str]:
        return self._token

    @token.setter
    def token(self, value: Optional[str]) -> None:
        self._token = value

    @property
    def created(self) -> int:
        return self._created

    @property
    def logon_time(self) -> datetime:
        return self.__created__

    @property
    def is_open(self) -> bool:
        return self._cache.has()

    @property
    def clipboard(self) -> ClipboardExposure:
        return self._clipboard

    # --- Lifecycle ---

    def open(self, passphrase: str) -> None:
        """Verify the credentials encrypt and decrypt, then cache the passphrase.

        Raises:
            InvalidInput: If the passphrase is empty or the self-test fails.
            EncryptionFailure: If no secure randomness is available.
        """
        if not check_credentials(self._identity, passphrase):
            raise InvalidInput("Encryption setup failed for the supplied credentials")
        self._cache.store(passphrase)
        logger.info("Vault session %s opened", self._id_)

    def passphrase(self) -> str:
        """Return the cached passphrase.

        Raises:
            CacheMiss: If the session is closed or the cache was wiped.
        """
        return self._cache.require()

    def close(self) -> None:
        """Forget the passphrase and token and blank any exposed secret."""
        self._cache.clear()
        self._clipboard.revoke_all()
        self._token = None
        logger.info("Vault session %s closed", self._id_)

    def session_data(self) -> dict:
        """Return only non-secret values (safe to persist)."""
        return {
            "session_id": self._id_,
            "identity": self._identity,
            "created": self._created,
        }
