"""
Blob Store Base — Interface for all blob store backends.

A blob store is a flat namespace of keys mapping to byte content. The
mirror engine only ever talks to this interface; concrete backends live
next to it (memory, file, s3) and are opened by URL via
:func:`blobcopy.storage.registry.open_store`.
"""

from __future__ import annotations

import hashlib
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, Optional


@dataclass(frozen=True)
class ObjectRef:
    """
    One object in one store's namespace.

    ``content_hash`` is the 16-byte MD5 digest of the stored bytes, or None
    when the backend cannot report one without reading the object.
    """

    key: str
    size: int
    content_hash: Optional[bytes] = None

    @property
    def content_hash_hex(self) -> Optional[str]:
        if self.content_hash is None:
            return None
        return self.content_hash.hex()


def md5_digest(data: bytes) -> bytes:
    """Content hash used by every backend that computes its own."""
    return hashlib.md5(data).digest()


class BufferedBlobWriter:
    """
    Writer that buffers in memory and hands the bytes to ``commit`` on close.

    Leaving a ``with`` block through an exception discards the buffer, so a
    failed copy never leaves a partial object behind.
    """

    def __init__(self, commit: Callable[[bytes], None]):
        self._buffer = io.BytesIO()
        self._commit = commit
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed blob writer")
        return self._buffer.write(data)

    def discard(self) -> None:
        self.closed = True
        self._buffer.close()

    def close(self) -> None:
        if self.closed:
            return
        data = self._buffer.getvalue()
        self.discard()
        self._commit(data)

    def __enter__(self) -> "BufferedBlobWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.discard()
        else:
            self.close()


class BlobStore(ABC):
    """
    Abstract base class for blob stores.

    Implementations must raise :class:`blobcopy.errors.BlobNotFoundError`
    for missing keys and let other I/O failures propagate.
    """

    url: str = ""

    @abstractmethod
    def list(self) -> Iterator[ObjectRef]:
        """Lazily iterate over every object, sorted by key."""

    @abstractmethod
    def attributes(self, key: str) -> ObjectRef:
        """Return size and content hash of ``key``."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether ``key`` exists."""

    @abstractmethod
    def open_reader(self, key: str) -> BinaryIO:
        """Open ``key`` for reading."""

    @abstractmethod
    def open_writer(self, key: str) -> BufferedBlobWriter:
        """
        Open ``key`` for writing.

        The object is created or overwritten when the writer is closed;
        nothing is visible before that.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete ``key``. Missing keys raise BlobNotFoundError."""

    def read_all(self, key: str) -> bytes:
        """Read the full content of ``key``."""
        with self.open_reader(key) as reader:
            return reader.read()

    def write_all(self, key: str, data: bytes) -> int:
        """Write ``data`` to ``key`` and return the number of bytes written."""
        with self.open_writer(key) as writer:
            writer.write(data)
        return len(data)

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> "BlobStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"
