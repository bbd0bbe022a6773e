"""
Shared fixtures for blobcopy tests.

Stores are built in memory or under pytest's tmp_path so no test touches
a real bucket or the caller's filesystem.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from blobcopy.crypto.cipher import ENV_VAR, derive_key
from blobcopy.storage.file import FileBlobStore
from blobcopy.storage.memory import MemoryBlobStore


PASSWORD = "correct horse battery staple"
OTHER_PASSWORD = "a-completely-different-password"


@pytest.fixture
def key() -> bytes:
    return derive_key(PASSWORD)


@pytest.fixture
def other_key() -> bytes:
    return derive_key(OTHER_PASSWORD)


@pytest.fixture
def source() -> MemoryBlobStore:
    """Memory source with a handful of nested keys."""
    return MemoryBlobStore.from_objects({
        "a.txt": b"alpha",
        "b/c.bin": bytes(range(256)),
        "d/e/f.txt": b"nested content",
    })


@pytest.fixture
def destination() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def file_store(tmp_path: Path) -> FileBlobStore:
    return FileBlobStore(tmp_path / "store")


@pytest.fixture
def no_password_env(monkeypatch):
    """Make sure a developer's shell password never leaks into a test."""
    monkeypatch.delenv(ENV_VAR, raising=False)


@pytest.fixture
def test_log() -> logging.Logger:
    return logging.getLogger("blobcopy.tests")
