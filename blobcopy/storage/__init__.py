"""
Storage — Blob store interface and backends.
"""

from .base import BlobStore, BufferedBlobWriter, ObjectRef, md5_digest
from .file import FileBlobStore
from .memory import MemoryBlobStore
from .registry import open_store

__all__ = [
    "BlobStore",
    "BufferedBlobWriter",
    "FileBlobStore",
    "MemoryBlobStore",
    "ObjectRef",
    "md5_digest",
    "open_store",
]
