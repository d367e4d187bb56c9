"""AES-256-CBC encryption of provider API keys at rest.

Each encryption draws a fresh 16-byte IV which is stored next to the
ciphertext. There is no MAC: tampered ciphertext is only detected when the
padding or UTF-8 decoding happens to break.
"""
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from aetherflow.config import settings
from aetherflow.core.exceptions import DecryptionError

NONCE_SIZE = 16


def _cipher(key: bytes, nonce: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CBC(nonce))


def encrypt_secret(plaintext: str, key: bytes | None = None) -> tuple[str, str]:
    """Return (ciphertext_hex, nonce_hex) for a plaintext secret."""
    key = key or settings.get_encryption_key()
    nonce = os.urandom(NONCE_SIZE)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = _cipher(key, nonce).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return ciphertext.hex(), nonce.hex()


def decrypt_secret(ciphertext_hex: str, nonce_hex: str, key: bytes | None = None) -> str:
    key = key or settings.get_encryption_key()
    try:
        nonce = bytes.fromhex(nonce_hex)
        ciphertext = bytes.fromhex(ciphertext_hex)
    except (TypeError, ValueError):
        raise DecryptionError("Stored API key is not valid hex")
    if len(nonce) != NONCE_SIZE:
        raise DecryptionError(f"Stored nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if not ciphertext or len(ciphertext) % (algorithms.AES.block_size // 8):
        raise DecryptionError("Stored ciphertext has an invalid length")

    decryptor = _cipher(key, nonce).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        raw = unpadder.update(padded) + unpadder.finalize()
        return raw.decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        # Wrong key or corrupted ciphertext
        raise DecryptionError()
