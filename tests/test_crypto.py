"""
Tests for the vault crypto core.

Tests cover:
- PBKDF2 key derivation (determinism, input validation)
- Field encryption wire layout and IV freshness
- Wrong-key and malformed-blob failures
- Compatibility with OpenSSL "Salted__" blobs
- Session-layer sealing
"""
import base64
import hashlib

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from zerovault.vault.crypto import (
    IV_HEX_LENGTH,
    PBKDF2_ITERATIONS,
    check_credentials,
    decrypt_field,
    decrypt_for_session,
    derive_key,
    encrypt_field,
    encrypt_for_session,
)
from zerovault.vault.exceptions import (
    DecryptionFailure,
    EncryptionFailure,
    InvalidInput,
)

from conftest import IDENTITY, PASSPHRASE


def openssl_blob(plaintext: bytes, passphrase: bytes, salt: bytes) -> str:
    """Build an OpenSSL enc -aes-256-cbc -md md5 body by hand."""
    material, block = b"", b""
    while len(material) < 48:
        block = hashlib.md5(block + passphrase + salt).digest()
        material += block
    padder = padding.PKCS7(128).padder()
    data = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(material[:32]), modes.CBC(material[32:48])).encryptor()
    ct = encryptor.update(data) + encryptor.finalize()
    return base64.b64encode(b"Salted__" + salt + ct).decode("ascii")


class TestKeyDerivation:
    """Tests for derive_key."""

    def test_key_is_256_bits(self, key):
        assert isinstance(key, bytes)
        assert len(key) == 32

    def test_deterministic(self, key):
        """Same identity and passphrase always give the same key."""
        assert derive_key(IDENTITY, PASSPHRASE) == key

    def test_matches_pbkdf2_hmac_sha256(self, key):
        expected = hashlib.pbkdf2_hmac(
            "sha256", PASSPHRASE.encode(), IDENTITY.encode(), PBKDF2_ITERATIONS, 32,
        )
        assert key == expected

    def test_different_passphrase_gives_different_key(self, key, wrong_key):
        assert key != wrong_key

    def test_different_identity_gives_different_key(self, key):
        assert derive_key("bob@example.com", PASSPHRASE) != key

    @pytest.mark.parametrize("identity,passphrase", [
        ("", PASSPHRASE),
        (IDENTITY, ""),
        (None, PASSPHRASE),
        (IDENTITY, None),
    ])
    def test_missing_inputs_rejected(self, identity, passphrase):
        with pytest.raises(InvalidInput):
            derive_key(identity, passphrase)

    @pytest.mark.parametrize("identity,passphrase", [
        ("alice\ud800@example.com", PASSPHRASE),
        (IDENTITY, "pass\udfffword"),
    ])
    def test_unencodable_inputs_rejected(self, identity, passphrase):
        """Lone surrogates cannot be UTF-8 encoded."""
        with pytest.raises(InvalidInput):
            derive_key(identity, passphrase)


class TestFieldEncryption:
    """Tests for encrypt_field / decrypt_field."""

    def test_round_trip(self, key):
        blob = encrypt_field("S3cr3t!", key)
        assert decrypt_field(blob, key) == "S3cr3t!"

    def test_round_trip_unicode(self, key):
        text = "contraseña — 密码 🔐"
        assert decrypt_field(encrypt_field(text, key), key) == text

    def test_round_trip_multi_block(self, key):
        text = "note line\n" * 50
        assert decrypt_field(encrypt_field(text, key), key) == text

    def test_wire_layout(self, key):
        """First 32 chars are the hex IV, the rest an OpenSSL salted body."""
        blob = encrypt_field("hello", key)
        assert len(blob) > IV_HEX_LENGTH
        bytes.fromhex(blob[:IV_HEX_LENGTH])
        raw = base64.b64decode(blob[IV_HEX_LENGTH:])
        assert raw.startswith(b"Salted__")
        assert (len(raw) - 16) % 16 == 0

    def test_fresh_iv_per_call(self, key):
        first = encrypt_field("same", key)
        second = encrypt_field("same", key)
        assert first[:IV_HEX_LENGTH] != second[:IV_HEX_LENGTH]
        assert first[IV_HEX_LENGTH:] != second[IV_HEX_LENGTH:]

    def test_wrong_key_fails(self, key, wrong_key):
        blob = encrypt_field("S3cr3t!", key)
        with pytest.raises(DecryptionFailure):
            decrypt_field(blob, wrong_key)

    def test_empty_plaintext_rejected(self, key):
        with pytest.raises(InvalidInput):
            encrypt_field("", key)

    def test_bad_key_rejected(self):
        with pytest.raises(InvalidInput):
            encrypt_field("value", b"short")

    def test_unencodable_plaintext_rejected(self, key):
        with pytest.raises(InvalidInput):
            encrypt_field("half \ud83d pair", key)

    def test_empty_blob_rejected(self, key):
        with pytest.raises(InvalidInput):
            decrypt_field("", key)

    @pytest.mark.parametrize("blob", [
        "abc",
        "0" * IV_HEX_LENGTH,
        "zz" * 16 + "U2FsdGVkX1+AAAAAAAAAAA==",
        "00" * 16 + "not base64!!",
        "00" * 16 + base64.b64encode(b"NotSalted" * 4).decode(),
        "00" * 16 + base64.b64encode(b"Salted__" + b"\x00" * 8 + b"\x01" * 15).decode(),
    ])
    def test_malformed_blob_fails(self, key, blob):
        with pytest.raises(DecryptionFailure):
            decrypt_field(blob, key)

    def test_tampered_ciphertext_fails(self, key):
        blob = encrypt_field("S3cr3t!", key)
        raw = bytearray(base64.b64decode(blob[IV_HEX_LENGTH:]))
        raw[-1] ^= 0xFF
        tampered = blob[:IV_HEX_LENGTH] + base64.b64encode(bytes(raw)).decode()
        with pytest.raises(DecryptionFailure):
            decrypt_field(tampered, key)

    def test_reads_openssl_salted_blob(self, key):
        """Blobs written by the browser client decrypt here."""
        body = openssl_blob(b"legacy secret", key.hex().encode(), b"\x01" * 8)
        blob = "a1" * 16 + body
        assert decrypt_field(blob, key) == "legacy secret"

    def test_randomness_failure_raises_encryption_failure(self, key, monkeypatch):
        def no_entropy(size):
            raise NotImplementedError("no randomness source")

        monkeypatch.setattr("zerovault.vault.crypto.os.urandom", no_entropy)
        with pytest.raises(EncryptionFailure):
            encrypt_field("value", key)


class TestCheckCredentials:

    def test_valid_credentials(self):
        assert check_credentials(IDENTITY, PASSPHRASE) is True

    def test_missing_credentials(self):
        assert check_credentials(IDENTITY, "") is False

    def test_unencodable_credentials(self):
        assert check_credentials(IDENTITY, "\ud800") is False

    def test_randomness_failure_propagates(self, monkeypatch):
        """A missing randomness source is not reported as bad credentials."""
        def no_entropy(size):
            raise NotImplementedError("no randomness source")

        monkeypatch.setattr("zerovault.vault.crypto.os.urandom", no_entropy)
        with pytest.raises(EncryptionFailure):
            check_credentials(IDENTITY, PASSPHRASE)


class TestSessionLayer:
    """Tests for AES-GCM session sealing."""

    def test_round_trip(self):
        session_key = b"\x07" * 32
        blob = encrypt_for_session(b"passphrase", session_key)
        assert decrypt_for_session(blob, session_key) == b"passphrase"

    def test_wrong_key_fails(self):
        blob = encrypt_for_session(b"passphrase", b"\x07" * 32)
        with pytest.raises(DecryptionFailure):
            decrypt_for_session(blob, b"\x08" * 32)

    def test_short_blob_fails(self):
        with pytest.raises(DecryptionFailure):
            decrypt_for_session(b"\x00" * 10, b"\x07" * 32)
