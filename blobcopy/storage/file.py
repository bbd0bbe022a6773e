"""
File Store — filesystem-backed blob store (``file:///path/to/root``).

Each object is a file under the root directory; keys containing ``/``
become nested directories. Content hashes live in a JSON sidecar next to
the payload:

    <root>/photos/cat.jpg
    <root>/photos/cat.jpg.attrs     {"md5": "<hex>", "size": 1234}

Files placed under the root by other tools have no sidecar and therefore
no content hash. Mirroring from such a root needs a staging store to get
hashes.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from ..errors import BlobNotFoundError, StorageError
from .base import BlobStore, BufferedBlobWriter, ObjectRef, md5_digest

logger = logging.getLogger(__name__)

ATTRS_SUFFIX = ".attrs"
TEMP_SUFFIX = ".blobcopy-tmp"
_RESERVED_SUFFIXES = (ATTRS_SUFFIX, TEMP_SUFFIX)


class FileBlobStore(BlobStore):
    """Filesystem blob store rooted at a directory, created if needed."""

    def __init__(self, root: str | Path, url: Optional[str] = None):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.url = url or self.root.resolve().as_uri()

    # -- Paths --------------------------------------------------------------

    def _path(self, key: str) -> Path:
        """Resolve a key to its payload path, rejecting keys outside the root."""
        if not key or key.endswith("/"):
            raise StorageError(f"invalid object key: {key!r}")
        if key.endswith(_RESERVED_SUFFIXES):
            raise StorageError(f"object key {key!r} uses a reserved suffix")

        root = self.root.resolve()
        candidate = (self.root / key).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            raise StorageError(f"object key {key!r} resolves outside store root")
        return candidate

    @staticmethod
    def _attrs_path(path: Path) -> Path:
        return path.with_name(path.name + ATTRS_SUFFIX)

    def _key_for(self, path: Path) -> str:
        return path.relative_to(self.root.resolve()).as_posix()

    def _read_hash(self, path: Path) -> Optional[bytes]:
        attrs_path = self._attrs_path(path)
        if not attrs_path.exists():
            return None
        try:
            attrs = json.loads(attrs_path.read_text(encoding="utf-8"))
            return bytes.fromhex(attrs["md5"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable attributes {attrs_path}: {e}")
            return None

    # -- BlobStore ----------------------------------------------------------

    def list(self) -> Iterator[ObjectRef]:
        root = self.root.resolve()
        paths = sorted(
            p for p in root.rglob("*")
            if p.is_file() and not p.name.endswith(_RESERVED_SUFFIXES)
        )
        for path in paths:
            try:
                size = path.stat().st_size
            except FileNotFoundError:
                continue  # deleted while iterating
            yield ObjectRef(
                key=self._key_for(path),
                size=size,
                content_hash=self._read_hash(path),
            )

    def attributes(self, key: str) -> ObjectRef:
        path = self._path(key)
        if not path.is_file():
            raise BlobNotFoundError(key)
        return ObjectRef(key=key, size=path.stat().st_size, content_hash=self._read_hash(path))

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def open_reader(self, key: str) -> BinaryIO:
        path = self._path(key)
        try:
            return path.open("rb")
        except (FileNotFoundError, IsADirectoryError):
            raise BlobNotFoundError(key)

    def open_writer(self, key: str) -> BufferedBlobWriter:
        path = self._path(key)
        return BufferedBlobWriter(lambda data: self._commit(path, data))

    def _commit(self, path: Path, data: bytes) -> None:
        """Write payload and sidecar via temp file + rename."""
        path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = path.with_name(path.name + TEMP_SUFFIX)
        temp_path.write_bytes(data)
        os.replace(temp_path, path)

        attrs = {"md5": md5_digest(data).hex(), "size": len(data)}
        attrs_path = self._attrs_path(path)
        temp_attrs = attrs_path.with_name(attrs_path.name + TEMP_SUFFIX)
        temp_attrs.write_text(json.dumps(attrs), encoding="utf-8")
        os.replace(temp_attrs, attrs_path)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if not path.is_file():
            raise BlobNotFoundError(key)
        path.unlink()
        self._attrs_path(path).unlink(missing_ok=True)
        self._prune_empty_dirs(path.parent)

    def _prune_empty_dirs(self, directory: Path) -> None:
        root = self.root.resolve()
        while directory != root and root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return  # not empty
            directory = directory.parent
