"""
SessionKeyCache — the user's passphrase, sealed for the session lifetime.

The passphrase is kept as ``[nonce][AES-GCM ct+tag]`` under a random
ephemeral key. Both halves live only on this instance; nothing is written
to disk, and dropping the instance (logout, process restart) makes the
passphrase unrecoverable, so the user must authenticate again.

Security Note:
    Never log the passphrase, the ephemeral key or the sealed blob.
"""
import logging
import threading
from typing import Optional

from .crypto import (
    KEY_LENGTH,
    decrypt_for_session,
    encode_text,
    encrypt_for_session,
    random_bytes,
)
from .exceptions import CacheMiss, DecryptionFailure, InvalidInput

logger = logging.getLogger("zerovault.vault")


class SessionKeyCache:
    """In-memory, encrypted passphrase holder for one session."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._cipher_blob: Optional[bytes] = None
        self._session_key: Optional[bytes] = None

    def __repr__(self) -> str:
        return f"<SessionKeyCache [cached:{self.has()}]>"

    def store(self, passphrase: str) -> None:
        """Seal ``passphrase`` under a fresh ephemeral key.

        Raises:
            InvalidInput: If passphrase is empty.
            EncryptionFailure: If no secure randomness is available.
        """
        if not passphrase:
            raise InvalidInput("Passphrase is required")
        session_key = random_bytes(KEY_LENGTH)
        blob = encrypt_for_session(encode_text(passphrase), session_key)
        with self._lock:
            self._cipher_blob = blob
            self._session_key = session_key

    def get(self) -> Optional[str]:
        """Return the cached passphrase, or ``None`` when there is none.

        A blob that no longer decrypts is wiped and reported as absent.
        """
        with self._lock:
            if self._cipher_blob is None or self._session_key is None:
                return None
            try:
                plaintext = decrypt_for_session(self._cipher_blob, self._session_key)
                return plaintext.decode("utf-8")
            except (DecryptionFailure, UnicodeDecodeError) as err:
                logger.warning("Cached passphrase is unreadable, clearing it: %s", err)
                self._wipe()
                return None

    def require(self) -> str:
        """Return the cached passphrase.

        Raises:
            CacheMiss: If the user has to enter credentials again.
        """
        passphrase = self.get()
        if passphrase is None:
            raise CacheMiss("No cached passphrase for this session")
        return passphrase

    def has(self) -> bool:
        return self.get() is not None

    def clear(self) -> None:
        """Erase both halves; nothing cached before is recoverable afterwards."""
        with self._lock:
            self._wipe()

    def _wipe(self) -> None:
        self._cipher_blob = None
        self._session_key = None
