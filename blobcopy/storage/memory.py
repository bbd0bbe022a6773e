"""
Memory Store — dict-backed blob store (``mem://``).

Used as the default staging store for encrypted runs and throughout the
tests. Every ``open_store("mem://")`` call returns a fresh, empty store.
"""

from __future__ import annotations

import io
import threading
from typing import BinaryIO, Dict, Iterator, Mapping, Optional

from ..errors import BlobNotFoundError
from .base import BlobStore, BufferedBlobWriter, ObjectRef, md5_digest


class MemoryBlobStore(BlobStore):
    """In-memory blob store computing MD5 content hashes on write."""

    def __init__(self, url: str = "mem://"):
        self.url = url
        self._objects: Dict[str, bytes] = {}
        self._hashes: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_objects(cls, objects: Mapping[str, bytes]) -> "MemoryBlobStore":
        """Build a store preloaded with ``{key: content}``."""
        store = cls()
        for key, data in objects.items():
            store._put(key, data)
        return store

    def _put(self, key: str, data: bytes) -> None:
        with self._lock:
            self._objects[key] = data
            self._hashes[key] = md5_digest(data)

    def _ref(self, key: str) -> Optional[ObjectRef]:
        with self._lock:
            data = self._objects.get(key)
            if data is None:
                return None
            return ObjectRef(key=key, size=len(data), content_hash=self._hashes[key])

    def list(self) -> Iterator[ObjectRef]:
        with self._lock:
            keys = sorted(self._objects)
        for key in keys:
            ref = self._ref(key)
            # deleted while iterating
            if ref is not None:
                yield ref

    def attributes(self, key: str) -> ObjectRef:
        ref = self._ref(key)
        if ref is None:
            raise BlobNotFoundError(key)
        return ref

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._objects

    def open_reader(self, key: str) -> BinaryIO:
        with self._lock:
            data = self._objects.get(key)
        if data is None:
            raise BlobNotFoundError(key)
        return io.BytesIO(data)

    def open_writer(self, key: str) -> BufferedBlobWriter:
        return BufferedBlobWriter(lambda data: self._put(key, data))

    def delete(self, key: str) -> None:
        with self._lock:
            if key not in self._objects:
                raise BlobNotFoundError(key)
            del self._objects[key]
            del self._hashes[key]

    def keys(self) -> list:
        """Snapshot of stored keys, sorted."""
        with self._lock:
            return sorted(self._objects)

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)
