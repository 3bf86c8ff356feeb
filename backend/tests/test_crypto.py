import base64
import os

import pytest

from marketplace.config import Settings
from marketplace.utils import crypto
from marketplace.utils.crypto import (
    CredentialCipher,
    DecryptionFailed,
    EncryptionKeyError,
    EncryptionUnavailable,
    InvalidFormat,
)


def _key() -> bytes:
    return os.urandom(crypto.KEY_SIZE)


def _tamper_last_byte(token: str) -> str:
    raw = bytearray(base64.b64decode(token[len(crypto.TOKEN_PREFIX):]))
    raw[-1] ^= 0x01
    return crypto.TOKEN_PREFIX + base64.b64encode(bytes(raw)).decode("ascii")


def test_encrypt_then_decrypt_returns_plaintext():
    cipher = CredentialCipher(_key())
    token = cipher.encrypt('{"apiKey":"k","apiSecret":"s"}')

    assert token.startswith("ENC:v1:")
    assert cipher.decrypt(token) == b'{"apiKey":"k","apiSecret":"s"}'


def test_empty_plaintext_round_trips():
    cipher = CredentialCipher(_key())
    assert cipher.decrypt(cipher.encrypt(b"")) == b""


def test_each_encryption_uses_a_fresh_nonce():
    cipher = CredentialCipher(_key())
    first = cipher.encrypt("same value")
    second = cipher.encrypt("same value")

    assert first != second
    assert cipher.decrypt(first) == cipher.decrypt(second) == b"same value"


def test_tampered_token_is_rejected():
    cipher = CredentialCipher(_key())
    token = cipher.encrypt("secret")

    with pytest.raises(DecryptionFailed):
        cipher.decrypt(_tamper_last_byte(token))


def test_wrong_key_fails_like_tampering():
    token = CredentialCipher(_key()).encrypt("secret")
    other = CredentialCipher(_key())

    with pytest.raises(DecryptionFailed) as wrong_key:
        other.decrypt(token)
    with pytest.raises(DecryptionFailed) as tampered:
        other.decrypt(_tamper_last_byte(token))

    assert str(wrong_key.value) == str(tampered.value) == "failed to decrypt credentials"


@pytest.mark.parametrize(
    "token",
    [
        "",
        "plain-text-secret",
        "ENC:v2:" + base64.b64encode(b"x" * 40).decode("ascii"),
        "ENC:v1:not base64!",
        "ENC:v1:" + base64.b64encode(b"short").decode("ascii"),
    ],
)
def test_malformed_tokens_raise_invalid_format(token):
    cipher = CredentialCipher(_key())
    with pytest.raises(InvalidFormat):
        cipher.decrypt(token)


def test_cipher_without_key_is_unavailable():
    cipher = CredentialCipher()

    assert not cipher.available
    with pytest.raises(EncryptionUnavailable):
        cipher.encrypt("secret")
    with pytest.raises(EncryptionUnavailable):
        cipher.decrypt("ENC:v1:AAAA")


def test_decode_key_rejects_wrong_length():
    short = base64.b64encode(b"k" * 16).decode("ascii")
    with pytest.raises(EncryptionKeyError):
        crypto.decode_key(short)


def test_decode_key_rejects_invalid_base64():
    with pytest.raises(EncryptionKeyError):
        crypto.decode_key("this is not base64")


def test_load_key_requires_a_source():
    with pytest.raises(EncryptionKeyError):
        crypto.load_key(None, None)


def test_load_key_reads_key_file(tmp_path):
    key = _key()
    key_file = tmp_path / "storefront.key"
    key_file.write_text(base64.b64encode(key).decode("ascii") + "\n", encoding="utf-8")

    assert crypto.load_key(None, str(key_file)) == key


def test_load_key_prefers_environment_value(tmp_path):
    env_key = _key()
    key_file = tmp_path / "storefront.key"
    key_file.write_text(base64.b64encode(_key()).decode("ascii"), encoding="utf-8")

    assert crypto.load_key(base64.b64encode(env_key).decode("ascii"), str(key_file)) == env_key


def test_load_key_missing_file():
    with pytest.raises(EncryptionKeyError):
        crypto.load_key(None, "/nonexistent/storefront.key")


def test_cipher_from_settings():
    key = _key()
    settings = Settings(
        STOREFRONT_ENCRYPTION_KEY=base64.b64encode(key).decode("ascii"),
        STOREFRONT_ENCRYPTION_KEY_FILE=None,
    )
    cipher = CredentialCipher.from_settings(settings)

    assert cipher.available
    assert CredentialCipher(key).decrypt(cipher.encrypt("x")) == b"x"
