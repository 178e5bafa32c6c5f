"""Fernet-based encryption for stored habit snapshots.

Values written to the key-value store are opaque strings (serialized JSON).
When an encryption key is configured, each value is encrypted as a whole
before it reaches SQLite.
"""

from __future__ import annotations

import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class ValueEncryptor:
    """Encrypts and decrypts string values using Fernet symmetric encryption.

    Usage::

        encryptor = ValueEncryptor(key="...")
        token = encryptor.encrypt('{"state": {}}')
        encryptor.decrypt(token)  # '{"state": {}}'
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Args:
            key: A valid Fernet key string. Generate with
                :meth:`generate_key`.

        Raises:
            EncryptionError: If the key is empty or invalid.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.encode())
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, value: str) -> str:
        """Encrypt a string to a Fernet token string."""
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        """Decrypt a Fernet token string back to the original string.

        Raises:
            EncryptionError: If the token is invalid or was made with another key.
        """
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key as a URL-safe base64 string."""
        return Fernet.generate_key().decode("utf-8")
