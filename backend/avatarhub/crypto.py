"""Symmetric encryption for provider keys at rest, plus one-way key hashing."""

from __future__ import annotations

import hashlib
from base64 import urlsafe_b64encode
from functools import lru_cache
from typing import Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import KEY_ENCRYPTION_SALT, KEY_ENCRYPTION_SECRET

__all__ = ["InvalidToken", "decrypt_secret", "encrypt_secret", "generate_key", "hash_token"]


def generate_key(password: Union[str, bytes], salt: bytes) -> bytes:
    """Derive a Fernet key from a password using PBKDF2-SHA256."""
    if isinstance(password, str):
        password = password.encode()

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=100000,
    )
    return urlsafe_b64encode(kdf.derive(password))


@lru_cache(maxsize=4)
def _fernet(secret: str, salt: bytes) -> Fernet:
    return Fernet(generate_key(secret, salt))


def encrypt_secret(plaintext: str) -> str:
    return _fernet(KEY_ENCRYPTION_SECRET, KEY_ENCRYPTION_SALT).encrypt(plaintext.encode()).decode()


def decrypt_secret(token: str) -> str:
    """Raises ``InvalidToken`` when the ciphertext was made under another secret."""
    return _fernet(KEY_ENCRYPTION_SECRET, KEY_ENCRYPTION_SALT).decrypt(token.encode()).decode()


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
