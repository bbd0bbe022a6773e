"""
Crypto — Deterministic content/key encryption and password handling.
"""

from .cipher import (
    CipherCodec,
    decrypt,
    decrypt_name,
    derive_key,
    encrypt,
    encrypt_name,
)
from .password import get_encryption_key, get_password

__all__ = [
    "CipherCodec",
    "decrypt",
    "decrypt_name",
    "derive_key",
    "encrypt",
    "encrypt_name",
    "get_encryption_key",
    "get_password",
]
