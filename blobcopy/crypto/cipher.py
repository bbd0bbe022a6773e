"""
Cipher — Deterministic AES-256-GCM for object content and object keys.

## Cryptographic Design

- **Algorithm**: AES-256-GCM (authenticated encryption)
- **Key derivation**: ``MD5(MD5(password)) ‖ MD5(password)`` (32 bytes)
- **Nonce**: first 12 bytes of ``MD5(plaintext)``, NOT random
- **Output**: ``nonce(12) ‖ ciphertext ‖ tag(16)``

The nonce is derived from the plaintext so that encryption is a pure
function of ``(plaintext, key)``. Identical content always produces
identical ciphertext, which keeps content-hash comparison meaningful
between an encrypted destination and a freshly encrypted source. The
price is that equal plaintexts are visible as equal ciphertexts to anyone
who can read the destination. Do not switch to random nonces: every
re-mirror would then copy every object again.

## Key names

Object keys go through the same primitive and are then base64url encoded
(with padding) so they remain valid object names:

    encrypt_name(b"photos/cat.jpg", key)  ->  "Jv9c...QA=="
    decrypt_name("Jv9c...QA==", key)      ->  b"photos/cat.jpg"

An empty key means pass-through everywhere.

## Usage

    from blobcopy.crypto.cipher import CipherCodec, derive_key

    codec = CipherCodec(encrypt_key=derive_key("hunter2"))
    codec.transform(b"data")          # ciphertext
    codec.transform_key("a/b.txt")    # base64url ciphertext name
"""

from __future__ import annotations

import base64
import binascii
import hashlib

from ..errors import CipherError


# -- Constants ----------------------------------------------------------------

KEY_BYTES = 32  # AES-256
NONCE_BYTES = 12  # GCM standard nonce length
TAG_BYTES = 16  # GCM tag length (128 bits)

ENV_VAR = "BLOBCOPY_ENCRYPTION_PASSWORD"


# -- Key Management -----------------------------------------------------------


def derive_key(password: str) -> bytes:
    """
    Derive the 32-byte AES key from an operator password.

    Two keys are equal iff they were derived from the same password.

    Args:
        password: Password string (UTF-8 encoded before hashing).

    Returns:
        ``MD5(MD5(password)) ‖ MD5(password)``.
    """
    first = hashlib.md5(password.encode("utf-8")).digest()
    second = hashlib.md5(first).digest()
    return second + first


def _aesgcm(key: bytes):
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    if len(key) != KEY_BYTES:
        raise CipherError(f"encryption key must be {KEY_BYTES} bytes, got {len(key)}")
    return AESGCM(key)


# -- Encryption / Decryption -------------------------------------------------


def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """
    Encrypt bytes deterministically.

    Args:
        plaintext: Bytes to encrypt.
        key: 32-byte key, or empty for pass-through.

    Returns:
        ``nonce ‖ ciphertext ‖ tag``, or ``plaintext`` unchanged if the key
        is empty.
    """
    if not key:
        return plaintext

    aesgcm = _aesgcm(key)
    nonce = hashlib.md5(plaintext).digest()[:NONCE_BYTES]
    return nonce + aesgcm.encrypt(nonce, plaintext, None)


def decrypt(ciphertext: bytes, key: bytes) -> bytes:
    """
    Decrypt bytes produced by :func:`encrypt`.

    Raises:
        CipherError: If the data is too short to hold a nonce and tag, the
            key is wrong, or the ciphertext was tampered with.
    """
    if not key:
        return ciphertext

    from cryptography.exceptions import InvalidTag

    if len(ciphertext) < NONCE_BYTES + TAG_BYTES:
        raise CipherError(
            f"ciphertext too short ({len(ciphertext)} bytes) to hold nonce and tag"
        )

    aesgcm = _aesgcm(key)
    nonce, body = ciphertext[:NONCE_BYTES], ciphertext[NONCE_BYTES:]
    try:
        return aesgcm.decrypt(nonce, body, None)
    except InvalidTag as e:
        raise CipherError("message authentication failed (wrong key or tampered data)") from e


def encrypt_name(name: bytes, key: bytes) -> str:
    """Encrypt a key name and base64url-encode it."""
    return base64.urlsafe_b64encode(encrypt(name, key)).decode("ascii")


def decrypt_name(name: str, key: bytes) -> bytes:
    """
    Reverse :func:`encrypt_name`.

    Raises:
        CipherError: If the name is not base64url or fails authentication.
    """
    try:
        raw = base64.b64decode(name.encode("ascii"), altchars=b"-_", validate=True)
    except (UnicodeEncodeError, binascii.Error) as e:
        raise CipherError(f"key name {name!r} is not base64url encoded") from e
    return decrypt(raw, key)


# -- Codec --------------------------------------------------------------------


class CipherCodec:
    """
    The content and key-name transform applied during a mirror run.

    A run either encrypts or decrypts, never both. An empty codec is the
    identity transform.
    """

    def __init__(self, encrypt_key: bytes = b"", decrypt_key: bytes = b""):
        if encrypt_key and decrypt_key:
            raise ValueError("a codec either encrypts or decrypts, not both")
        self.encrypt_key = encrypt_key
        self.decrypt_key = decrypt_key

    @property
    def is_identity(self) -> bool:
        return not self.encrypt_key and not self.decrypt_key

    @property
    def mode(self) -> str:
        if self.encrypt_key:
            return "encrypt"
        if self.decrypt_key:
            return "decrypt"
        return "plain"

    def transform(self, data: bytes) -> bytes:
        """Apply the content transform."""
        return decrypt(encrypt(data, self.encrypt_key), self.decrypt_key)

    def transform_key_bytes(self, key: str) -> bytes:
        """Apply the key-name transform, returning the raw new name."""
        if self.encrypt_key:
            return encrypt_name(key.encode("utf-8"), self.encrypt_key).encode("ascii")
        if self.decrypt_key:
            return decrypt_name(key, self.decrypt_key)
        return key.encode("utf-8")

    def transform_key(self, key: str) -> str:
        """
        Apply the key-name transform.

        Raises:
            CipherError: If a decrypted name is not valid UTF-8.
        """
        raw = self.transform_key_bytes(key)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CipherError(f"decrypted name for {key!r} is not valid UTF-8") from e

    def __repr__(self) -> str:
        return f"CipherCodec(mode={self.mode!r})"
