"""Authenticated encryption for storefront credentials at rest.

:class:`CredentialCipher` wraps AES-256-GCM with a key that is loaded once at
startup (see :func:`load_key`) and handed to the services that need it.

- Every call to :meth:`CredentialCipher.encrypt` draws a fresh 96-bit nonce.
- Tokens are versioned and prefixed so they can never be mistaken for
  plain-text values stored in the database.
- Decryption failures are deliberately indistinguishable: a tampered token
  and a token encrypted under another key both raise :class:`DecryptionFailed`
  with the same message.

The token format is:

    ENC:v1:<base64(nonce || ciphertext || tag)>

IMPORTANT:
    Neither plaintexts nor key material are ever logged by this module.
"""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from marketplace.utils.logger import logger


TOKEN_PREFIX = "ENC:v1:"
NONCE_SIZE = 12  # 96-bit nonce recommended for AES-GCM
TAG_SIZE = 16
KEY_SIZE = 32    # 256-bit AES key


class EncryptionKeyError(RuntimeError):
    """Raised at startup when the encryption key is missing or malformed."""


class CredentialCipherError(Exception):
    """Base class for failures while encrypting or decrypting a token."""


class EncryptionUnavailable(CredentialCipherError):
    def __init__(self):
        super().__init__("encryption key not available")


class InternalCryptoError(CredentialCipherError):
    def __init__(self):
        super().__init__("internal error during encryption setup")


class InvalidFormat(CredentialCipherError):
    def __init__(self):
        super().__init__("invalid credentials format")


class DecryptionFailed(CredentialCipherError):
    def __init__(self):
        super().__init__("failed to decrypt credentials")


def decode_key(encoded: str) -> bytes:
    """Decode a base64 key and check it is exactly 32 bytes long."""
    encoded = (encoded or "").strip()
    if not encoded:
        raise EncryptionKeyError("encryption key is empty")
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionKeyError(f"encryption key is not valid base64: {e}") from e
    if len(key) != KEY_SIZE:
        raise EncryptionKeyError(
            f"encryption key must be {KEY_SIZE} bytes for AES-256, got {len(key)} bytes"
        )
    return key


def load_key(encoded: Optional[str], key_file: Optional[str] = None) -> bytes:
    """Resolve the storefront encryption key.

    The base64 value from the environment wins; otherwise ``key_file`` is
    read. Raises :class:`EncryptionKeyError` when neither yields a valid key.
    """
    if encoded:
        return decode_key(encoded)

    if key_file:
        path = Path(key_file)
        if not path.is_file():
            raise EncryptionKeyError(f"encryption key file not found at {path}")
        key = decode_key(path.read_text(encoding="utf-8"))
        logger.info(f"Storefront encryption key loaded from {path}")
        return key

    raise EncryptionKeyError(
        "STOREFRONT_ENCRYPTION_KEY (or STOREFRONT_ENCRYPTION_KEY_FILE) is required"
    )


class CredentialCipher:
    """AES-256-GCM cipher bound to a single process-wide key.

    A cipher constructed without a key is allowed so that callers can detect
    the misconfiguration lazily; every operation on it raises
    :class:`EncryptionUnavailable`.
    """

    def __init__(self, key: Optional[bytes] = None):
        if key is not None and len(key) != KEY_SIZE:
            raise EncryptionKeyError(
                f"encryption key must be {KEY_SIZE} bytes for AES-256, got {len(key)} bytes"
            )
        self._key = key

    @classmethod
    def from_settings(cls, settings) -> "CredentialCipher":
        key = load_key(
            settings.STOREFRONT_ENCRYPTION_KEY,
            settings.STOREFRONT_ENCRYPTION_KEY_FILE,
        )
        return cls(key)

    @property
    def available(self) -> bool:
        return self._key is not None

    def _aead(self) -> AESGCM:
        if self._key is None:
            logger.error("Credential cipher used before an encryption key was loaded")
            raise EncryptionUnavailable()
        try:
            return AESGCM(self._key)
        except (ValueError, TypeError) as e:
            logger.error(f"Error creating AES-GCM cipher: {type(e).__name__}")
            raise InternalCryptoError() from e

    def encrypt(self, plaintext: Union[bytes, str]) -> str:
        """Encrypt ``plaintext`` and return an opaque, storable token."""
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")

        aesgcm = self._aead()
        nonce = os.urandom(NONCE_SIZE)
        ct = aesgcm.encrypt(nonce, plaintext, associated_data=None)

        return TOKEN_PREFIX + base64.b64encode(nonce + ct).decode("ascii")

    def decrypt(self, token: str) -> bytes:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises :class:`InvalidFormat` for anything that is not a well-formed
        token and :class:`DecryptionFailed` when authentication fails.
        """
        aesgcm = self._aead()

        if not isinstance(token, str) or not token.startswith(TOKEN_PREFIX):
            raise InvalidFormat()
        try:
            raw = base64.b64decode(token[len(TOKEN_PREFIX):].encode("ascii"), validate=True)
        except (binascii.Error, ValueError):
            raise InvalidFormat() from None
        if len(raw) < NONCE_SIZE + TAG_SIZE:
            raise InvalidFormat()

        nonce, ct = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            return aesgcm.decrypt(nonce, ct, associated_data=None)
        except InvalidTag:
            logger.warning("Credential decryption failed")
            raise DecryptionFailed() from None
