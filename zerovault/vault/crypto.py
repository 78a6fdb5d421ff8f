"""
Vault Crypto Core — Key derivation, field encryption and session-layer sealing.

Two layers:
- Field layer: PBKDF2(passphrase, identity) → AES-256-CBC → EncryptedField
  ``hex(IV 16B) || base64("Salted__" | salt 8B | ciphertext)``
- Session layer: random ephemeral key → AES-GCM → [nonce 12B][payload+tag]

The field layout is the one written by the browser client, so blobs stored
by it keep decrypting here. The hex of the derived key is used as an OpenSSL
passphrase, and the CBC key/IV come from ``EVP_BytesToKey`` over a random salt.

Security Note:
    Never log plaintext, passphrases, derived keys or ciphertext values.
"""
import os
import base64
import binascii
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import (
    DecryptionFailure,
    EncryptionFailure,
    InvalidInput,
)

logger = logging.getLogger("zerovault.vault")

PBKDF2_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
IV_SIZE = 16  # 128-bit field IV
IV_HEX_LENGTH = IV_SIZE * 2
SALT_SIZE = 8
BLOCK_SIZE = 16
NONCE_SIZE = 12  # 96-bit session nonce
TAG_SIZE = 16

_SALTED_MAGIC = b"Salted__"
_SELF_TEST_TEXT = "zerovault-self-test"

DerivedKey = bytes


def random_bytes(size: int) -> bytes:
    """Return ``size`` bytes from the OS CSPRNG.

    Raises:
        EncryptionFailure: If the host has no usable randomness source.
    """
    try:
        return os.urandom(size)
    except (NotImplementedError, OSError) as err:
        logger.error("Secure random source unavailable: %s", err)
        raise EncryptionFailure(
            "Secure randomness is not available, try again"
        ) from err


def encode_text(value: str) -> bytes:
    """UTF-8 encode a credential or field value.

    Raises:
        InvalidInput: If the string holds unpaired surrogates.
    """
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as err:
        raise InvalidInput("Value is not encodable as UTF-8") from err


def _check_key(key: DerivedKey) -> None:
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_LENGTH:
        raise InvalidInput(f"Derived key must be exactly {KEY_LENGTH} bytes")


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(identity: str, passphrase: str) -> DerivedKey:
    """Derive the 32-byte vault key from the user's identity and passphrase.

    PBKDF2-HMAC-SHA256 with the identity as salt. The result depends on
    nothing else, so the same credentials decrypt historical items after any
    later login. A passphrase change therefore orphans every stored item
    unless each one is re-encrypted under the new key.

    Args:
        identity: User login (email); not secret.
        passphrase: User password.

    Returns:
        32-byte derived key.

    Raises:
        InvalidInput: If identity or passphrase is empty.
    """
    if not identity or not passphrase:
        raise InvalidInput("Identity and passphrase are required for key derivation")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=encode_text(identity),
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(encode_text(passphrase))


def evp_bytes_to_key(password: bytes, salt: bytes) -> tuple[bytes, bytes]:
    """OpenSSL ``EVP_BytesToKey`` (MD5, one round) for AES-256-CBC.

    Returns:
        Tuple of (32-byte cipher key, 16-byte IV).
    """
    material = b""
    block = b""
    while len(material) < KEY_LENGTH + IV_SIZE:
        digest = hashes.Hash(hashes.MD5())
        digest.update(block + password + salt)
        block = digest.finalize()
        material += block
    return material[:KEY_LENGTH], material[KEY_LENGTH:KEY_LENGTH + IV_SIZE]


# ---------------------------------------------------------------------------
# Field layer
# ---------------------------------------------------------------------------

def encrypt_field(plaintext: str, key: DerivedKey) -> str:
    """Encrypt one vault field.

    Format: ``hex(IV 16B)`` followed by ``base64("Salted__" + salt + ct)``.
    IV and salt are fresh for every call.

    Args:
        plaintext: Field value, must be non-empty.
        key: Key returned by :func:`derive_key`.

    Returns:
        EncryptedField string.

    Raises:
        InvalidInput: If plaintext is empty or key is malformed.
        EncryptionFailure: If no secure randomness is available.
    """
    if not plaintext:
        raise InvalidInput("Plaintext is required for encryption")
    _check_key(key)
    iv = random_bytes(IV_SIZE)
    salt = random_bytes(SALT_SIZE)
    cbc_key, cbc_iv = evp_bytes_to_key(bytes(key).hex().encode("ascii"), salt)
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    data = padder.update(encode_text(plaintext)) + padder.finalize()
    encryptor = Cipher(algorithms.AES(cbc_key), modes.CBC(cbc_iv)).encryptor()
    ct = encryptor.update(data) + encryptor.finalize()
    body = base64.b64encode(_SALTED_MAGIC + salt + ct).decode("ascii")
    return iv.hex() + body


def decrypt_field(blob: str, key: DerivedKey) -> str:
    """Decrypt one EncryptedField.

    Args:
        blob: String produced by :func:`encrypt_field`.
        key: Key derived from the same credentials used at encryption time.

    Returns:
        Plaintext field value.

    Raises:
        InvalidInput: If blob is empty or key is malformed.
        DecryptionFailure: If the blob is malformed or the key is wrong.
    """
    if not blob:
        raise InvalidInput("Encrypted data is required for decryption")
    _check_key(key)
    if len(blob) < IV_HEX_LENGTH:
        raise DecryptionFailure("Invalid encrypted data format")
    try:
        bytes.fromhex(blob[:IV_HEX_LENGTH])
        raw = base64.b64decode(blob[IV_HEX_LENGTH:], validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecryptionFailure("Invalid encrypted data format") from err

    header = len(_SALTED_MAGIC) + SALT_SIZE
    if not raw.startswith(_SALTED_MAGIC) or len(raw) < header + BLOCK_SIZE:
        raise DecryptionFailure("Invalid encrypted data format")
    salt = raw[len(_SALTED_MAGIC):header]
    ct = raw[header:]
    if len(ct) % BLOCK_SIZE:
        raise DecryptionFailure("Ciphertext is not block aligned")

    cbc_key, cbc_iv = evp_bytes_to_key(bytes(key).hex().encode("ascii"), salt)
    decryptor = Cipher(algorithms.AES(cbc_key), modes.CBC(cbc_iv)).decryptor()
    padded = decryptor.update(ct) + decryptor.finalize()
    try:
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        data = unpadder.update(padded) + unpadder.finalize()
        text = data.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as err:
        raise DecryptionFailure(
            "Failed to decrypt data. Please check your credentials."
        ) from err
    if not text:
        raise DecryptionFailure("Decryption failed - invalid credentials")
    return text


def check_credentials(identity: str, passphrase: str) -> bool:
    """Round-trip a fixed test value under the given credentials.

    Returns:
        True if encryption and decryption both work, False otherwise.

    Raises:
        EncryptionFailure: If no secure randomness is available.
    """
    try:
        key = derive_key(identity, passphrase)
        return decrypt_field(encrypt_field(_SELF_TEST_TEXT, key), key) == _SELF_TEST_TEXT
    except (InvalidInput, DecryptionFailure) as err:
        logger.warning("Credential self-test failed: %s", err)
        return False


# ---------------------------------------------------------------------------
# Session layer (ephemeral, process memory only)
# ---------------------------------------------------------------------------

def encrypt_for_session(plaintext: bytes, session_key: bytes) -> bytes:
    """Seal a value under an ephemeral session key.

    Format: [nonce 12B][encrypted_payload + GCM_tag 16B]
    """
    cipher = AESGCM(session_key)
    nonce = random_bytes(NONCE_SIZE)
    return nonce + cipher.encrypt(nonce, plaintext, None)


def decrypt_for_session(ciphertext_mem: bytes, session_key: bytes) -> bytes:
    """Open a value sealed by :func:`encrypt_for_session`.

    Raises:
        DecryptionFailure: If the blob is truncated, tampered with, or the
            key does not match.
    """
    _min = NONCE_SIZE + TAG_SIZE
    if len(ciphertext_mem) < _min:
        raise DecryptionFailure(
            f"ciphertext_mem too short: {len(ciphertext_mem)} bytes "
            f"(minimum {_min})"
        )
    try:
        cipher = AESGCM(session_key)
        return cipher.decrypt(
            ciphertext_mem[:NONCE_SIZE], ciphertext_mem[NONCE_SIZE:], None,
        )
    except (InvalidTag, ValueError) as err:
        raise DecryptionFailure("Session blob could not be decrypted") from err
