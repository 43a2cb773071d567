"""Secret generation, hashing and AES-256-GCM encryption.

Raw API keys look like ``tlv_<base64url>``: a recognisable prefix followed by
32 random bytes. Only their SHA-256 hex digest is used for lookups; the raw
value is additionally kept encrypted so rotation tooling can re-wrap it.

Ciphertexts are stored as ``hex(iv):hex(tag):hex(ciphertext)`` with a fresh
16-byte IV per call.
"""

from __future__ import annotations

import binascii
import hashlib
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.exceptions import ConfigurationError, IntegrityError

KEY_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
SECRET_BYTES = 32


def generate_secret(prefix: str = "tlv") -> str:
    """Generate a new raw secret (256 bits of entropy)."""
    return f"{prefix}_{secrets.token_urlsafe(SECRET_BYTES)}"


def hash_secret(raw_secret: str) -> str:
    """SHA-256 hex digest of a raw secret."""
    # surrogatepass: arbitrary client input must hash, never raise
    return hashlib.sha256(raw_secret.encode("utf-8", "surrogatepass")).hexdigest()


def display_prefix(raw_secret: str, length: int = 10) -> str:
    """Non-secret hint shown in listings, e.g. ``tlv_AbCdEf...``."""
    return raw_secret[:length] + "..."


def load_master_key(hex_key: Optional[str]) -> bytes:
    """Decode and validate a 32-byte master key given as hex.

    Raises:
        ConfigurationError: If the key is missing, not hex, or the wrong length
    """
    if not hex_key:
        raise ConfigurationError("API_KEY_ENCRYPTION_KEY is not set")
    try:
        key = bytes.fromhex(hex_key.strip())
    except ValueError:
        raise ConfigurationError("API_KEY_ENCRYPTION_KEY must be hex encoded")
    if len(key) != KEY_LENGTH:
        raise ConfigurationError(
            f"API_KEY_ENCRYPTION_KEY must be {KEY_LENGTH} bytes, got {len(key)}"
        )
    return key


def generate_master_key() -> str:
    """Return a fresh master key as 64 hex characters."""
    return secrets.token_bytes(KEY_LENGTH).hex()


class SecretCipher:
    """Authenticated symmetric encryption keyed by the master key."""

    def __init__(self, master_key: bytes):
        if len(master_key) != KEY_LENGTH:
            raise ConfigurationError(
                f"Master key must be {KEY_LENGTH} bytes, got {len(master_key)}"
            )
        self._aesgcm = AESGCM(master_key)

    @classmethod
    def from_hex(cls, hex_key: Optional[str]) -> "SecretCipher":
        return cls(load_master_key(hex_key))

    def encrypt(self, plaintext: str) -> str:
        iv = secrets.token_bytes(IV_LENGTH)
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        """Decrypt a stored ciphertext.

        Raises:
            IntegrityError: If the value is malformed, was tampered with, or
                was encrypted under a different key
        """
        parts = token.split(":") if isinstance(token, str) else []
        if len(parts) != 3:
            raise IntegrityError("Malformed ciphertext")
        try:
            iv, tag, ciphertext = (binascii.unhexlify(p) for p in parts)
        except (binascii.Error, ValueError):
            raise IntegrityError("Malformed ciphertext")
        if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
            raise IntegrityError("Malformed ciphertext")

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            raise IntegrityError("Ciphertext integrity check failed (tampered data or wrong key)")
        return plaintext.decode("utf-8")


_cipher: Optional[SecretCipher] = None


def get_cipher() -> SecretCipher:
    """Process-wide cipher built from settings (created on first use)."""
    global _cipher
    if _cipher is None:
        from app.config import get_settings

        _cipher = SecretCipher.from_hex(get_settings().API_KEY_ENCRYPTION_KEY)
    return _cipher


def reset_cipher_cache() -> None:
    """Forget the cached cipher (for testing and key rotation)."""
    global _cipher
    _cipher = None
