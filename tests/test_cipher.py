import secrets

import pytest

from aetherflow.config import Settings
from aetherflow.core.exceptions import ConfigurationError, DecryptionError
from aetherflow.credentials.cipher import NONCE_SIZE, decrypt_secret, encrypt_secret


def test_encrypt_then_decrypt_returns_plaintext():
    ciphertext, nonce = encrypt_secret("sk-live-1234567890")

    assert decrypt_secret(ciphertext, nonce) == "sk-live-1234567890"
    assert "sk-live" not in ciphertext
    assert len(bytes.fromhex(nonce)) == NONCE_SIZE


def test_each_encryption_uses_a_fresh_nonce():
    first = encrypt_secret("same-secret")
    second = encrypt_secret("same-secret")

    assert first[1] != second[1]
    assert first[0] != second[0]


def test_unicode_secret_survives():
    ciphertext, nonce = encrypt_secret("密钥-ключ-🔑")
    assert decrypt_secret(ciphertext, nonce) == "密钥-ключ-🔑"


def test_decrypt_with_wrong_key_fails():
    ciphertext, nonce = encrypt_secret("sk-abc", key=b"\x01" * 32)

    # A wrong key yields garbage padding, or by chance valid padding and garbage bytes
    try:
        result = decrypt_secret(ciphertext, nonce, key=b"\x02" * 32)
    except DecryptionError:
        return
    assert result != "sk-abc"


@pytest.mark.parametrize(
    "ciphertext,nonce",
    [
        ("not-hex", "00" * NONCE_SIZE),
        ("00" * 16, "zz"),
        ("00" * 16, "00" * 8),
        ("", "00" * NONCE_SIZE),
        ("00" * 15, "00" * NONCE_SIZE),
    ],
)
def test_decrypt_rejects_malformed_input(ciphertext, nonce):
    with pytest.raises(DecryptionError):
        decrypt_secret(ciphertext, nonce)


def test_decryption_error_is_a_500():
    with pytest.raises(DecryptionError) as exc_info:
        decrypt_secret("xx", "00" * NONCE_SIZE)
    assert exc_info.value.status_code == 500
    assert exc_info.value.code == "DECRYPTION_FAILURE"


def test_configured_key_is_decoded_from_hex():
    key = secrets.token_hex(32)
    assert Settings(encryption_key=key).get_encryption_key() == bytes.fromhex(key)


@pytest.mark.parametrize("value", ["abc", "00" * 16, "g" * 64])
def test_malformed_configured_key_is_rejected(value):
    with pytest.raises(ConfigurationError):
        Settings(encryption_key=value).get_encryption_key()


def test_missing_key_is_fatal_in_production():
    with pytest.raises(ConfigurationError):
        Settings(encryption_key="", environment="production").get_encryption_key()


def test_missing_key_outside_production_is_ephemeral_but_stable():
    config = Settings(encryption_key="", environment="development")

    key = config.get_encryption_key()

    assert len(key) == 32
    assert config.get_encryption_key() == key
    assert Settings(encryption_key="", environment="development").get_encryption_key() != key
