"""
Safety — Detect a destination written with a different encryption key.

Mirroring into an encrypted destination with the wrong password would
silently produce a second, unrelated set of encrypted objects next to the
first. The safety marker prevents that.

The marker's plaintext name is ``b"_blobcopy_safety_" + MD5(key)``; it is
stored under the encrypted form of that name, and its content is the
encrypted form of the stored name. Both are pure functions of the key, so
finding the marker with the expected content certifies that the
destination was previously written with this exact key.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Optional

from ..crypto.cipher import encrypt, encrypt_name
from ..errors import BlobNotFoundError
from ..storage.base import BlobStore

logger = logging.getLogger(__name__)

MARKER_PREFIX = b"_blobcopy_safety_"


def marker_plain_name(key: bytes) -> bytes:
    """Plaintext marker name (raw digest bytes, not hex)."""
    return MARKER_PREFIX + hashlib.md5(key).digest()


def marker_name(key: bytes) -> str:
    """Name the marker is stored under in the destination."""
    _require_key(key)
    return encrypt_name(marker_plain_name(key), key)


def marker_content(key: bytes) -> bytes:
    """Expected stored content of the marker."""
    return encrypt(marker_name(key).encode("ascii"), key)


def is_marker_name(plain_name: bytes) -> bool:
    """Check whether a decrypted key name is a safety marker."""
    return plain_name.startswith(MARKER_PREFIX)


def _require_key(key: bytes) -> None:
    if not key:
        raise ValueError("the safety marker needs an encryption key")


class SafetyGuard:
    """
    Writes and verifies the safety marker in a destination store.

    ``check`` must run before any copy. When it fails the caller aborts,
    unless the operator explicitly asked for a new marker, in which case
    the caller runs ``enable``. ``enable`` is never run implicitly.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def check(self, destination: BlobStore, key: bytes) -> bool:
        """
        Return True if the destination carries this key's marker.

        A missing marker is a plain ``False``; any other storage error
        propagates.
        """
        name = marker_name(key)
        expected = marker_content(key)
        try:
            actual = destination.read_all(name)
        except BlobNotFoundError:
            self.log.info(f"No safety marker for this key in {destination.url}")
            return False

        passed = actual == expected
        if not passed:
            self.log.warning(f"Safety marker in {destination.url} does not match this key")
        return passed

    def enable(self, destination: BlobStore, key: bytes) -> None:
        """Write (or overwrite) this key's marker."""
        name = marker_name(key)
        destination.write_all(name, marker_content(key))
        self.log.info(f"Safety marker written to {destination.url}")
