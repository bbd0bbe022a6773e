"""
Errors — Exception hierarchy for blobcopy.

Fatal errors (store open, password, safety gate) abort a run before the
mirror loop starts. Per-object failures are wrapped in ObjectError and
handed to the ErrorCollector so the loop can keep going.

## Usage

    from blobcopy.errors import BlobNotFoundError, ObjectError

    try:
        store.attributes(key)
    except BlobNotFoundError:
        ...
"""

from __future__ import annotations

from typing import Optional


class BlobCopyError(Exception):
    """Base class for all blobcopy errors."""


# -- Storage -------------------------------------------------------------------


class StorageError(BlobCopyError):
    """Raised when a blob store operation fails."""


class BlobNotFoundError(StorageError):
    """Raised when a key does not exist in a store."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"object not found: {key!r}")


class StoreOpenError(StorageError):
    """Raised when a store URL cannot be opened."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"unable to open store {url!r}: {reason}")


# -- Crypto --------------------------------------------------------------------


class CipherError(BlobCopyError):
    """Raised when content or a key name cannot be decrypted."""


class PasswordError(BlobCopyError):
    """Raised when the encryption password cannot be obtained."""


class PasswordMismatchError(PasswordError):
    """Raised when the two interactive password entries differ."""

    def __init__(self) -> None:
        super().__init__("passwords do not match")


# -- Mirror --------------------------------------------------------------------


class SafetyCheckError(BlobCopyError):
    """Raised when the destination was written with a different key."""


class ObjectError(BlobCopyError):
    """
    A non-fatal failure for one object during a mirror run.

    Carries the offending source key and the step that failed so the
    error log is enough to diagnose it.
    """

    def __init__(self, key: str, stage: str, cause: Optional[BaseException] = None):
        self.key = key
        self.stage = stage
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.cause is None:
            return f"[{self.stage}] {self.key}"
        return f"[{self.stage}] {self.key}: {self.cause}"
