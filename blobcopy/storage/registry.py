"""
Store Registry — Open a blob store from a URL.

    mem://                          fresh in-memory store
    file:///var/backups/photos      directory (created if missing)
    s3://bucket/prefix?region=eu-west-1&endpoint=https://minio.local
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Callable, Dict

from ..errors import BlobCopyError, StoreOpenError
from .base import BlobStore
from .file import FileBlobStore
from .memory import MemoryBlobStore

logger = logging.getLogger(__name__)


def _open_mem(url: str, parsed: urllib.parse.SplitResult) -> BlobStore:
    return MemoryBlobStore(url=url)


def _open_file(url: str, parsed: urllib.parse.SplitResult) -> BlobStore:
    path = urllib.parse.unquote(parsed.path)
    if parsed.netloc and parsed.netloc != "localhost":
        # file://relative/dir is a common typo for file:///relative/dir
        path = parsed.netloc + path
    if not path:
        raise StoreOpenError(url, "missing directory path")
    return FileBlobStore(path, url=url)


def _open_s3(url: str, parsed: urllib.parse.SplitResult) -> BlobStore:
    from .s3 import S3BlobStore

    params = urllib.parse.parse_qs(parsed.query)
    return S3BlobStore(
        bucket=parsed.netloc,
        prefix=urllib.parse.unquote(parsed.path),
        region=params.get("region", [None])[0],
        endpoint_url=params.get("endpoint", [None])[0],
    )


OPENERS: Dict[str, Callable[[str, urllib.parse.SplitResult], BlobStore]] = {
    "mem": _open_mem,
    "file": _open_file,
    "s3": _open_s3,
}


def open_store(url: str) -> BlobStore:
    """
    Open the blob store named by ``url``.

    Raises:
        StoreOpenError: If the scheme is unknown or the backend fails to open.
    """
    parsed = urllib.parse.urlsplit(url)
    opener = OPENERS.get(parsed.scheme)
    if opener is None:
        known = ", ".join(f"{s}://" for s in sorted(OPENERS))
        raise StoreOpenError(url, f"unsupported scheme {parsed.scheme!r} (expected one of {known})")

    try:
        store = opener(url, parsed)
    except StoreOpenError:
        raise
    except (BlobCopyError, OSError) as e:
        raise StoreOpenError(url, str(e)) from e

    logger.debug(f"Opened store {store!r}")
    return store
