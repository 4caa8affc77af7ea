"""
SabPaisa request/response encryption.

The gateway exchanges `key=value&...` strings encrypted with AES-128-CBC
(PKCS7 padding), hex encoded. AuthKey and AuthIV are used as UTF-8 text,
truncated or right-padded with "0" to 16 bytes.
"""

from typing import Dict
from urllib.parse import unquote

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_BITS = 128


def _material(value: str) -> bytes:
    return value.strip()[:16].ljust(16, "0").encode("utf-8")


def _cipher(auth_key: str, auth_iv: str) -> Cipher:
    return Cipher(algorithms.AES(_material(auth_key)), modes.CBC(_material(auth_iv)))


def encrypt(plain_text: str, auth_key: str, auth_iv: str) -> str:
    padder = padding.PKCS7(BLOCK_BITS).padder()
    padded = padder.update(plain_text.encode("utf-8")) + padder.finalize()

    encryptor = _cipher(auth_key, auth_iv).encryptor()
    return (encryptor.update(padded) + encryptor.finalize()).hex()


def decrypt(encrypted_hex: str, auth_key: str, auth_iv: str) -> str:
    """
    Raises:
        ValueError: If the payload is not hex or the padding is invalid
    """
    decryptor = _cipher(auth_key, auth_iv).decryptor()
    padded = decryptor.update(bytes.fromhex(encrypted_hex.strip())) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


def parse_response(decrypted: str) -> Dict[str, str]:
    """Split a decrypted `k=v&k=v` response, URL-decoding values."""
    params: Dict[str, str] = {}
    for pair in decrypted.split("&"):
        key, sep, value = pair.partition("=")
        if key.strip() and sep:
            params[key.strip()] = unquote(value).strip()
    return params
