"""
Tests for blobcopy.storage.memory and the shared BlobStore helpers.
"""

from __future__ import annotations

import pytest

from blobcopy.errors import BlobNotFoundError
from blobcopy.storage.base import BufferedBlobWriter, ObjectRef, md5_digest
from blobcopy.storage.memory import MemoryBlobStore


class TestObjectRef:
    def test_hex(self):
        ref = ObjectRef(key="k", size=1, content_hash=md5_digest(b"x"))
        assert ref.content_hash_hex == md5_digest(b"x").hex()

    def test_hex_missing(self):
        assert ObjectRef(key="k", size=1).content_hash_hex is None


class TestBufferedBlobWriter:
    """Writers only publish on a clean close."""

    def test_commit_on_close(self):
        committed = []
        writer = BufferedBlobWriter(committed.append)
        writer.write(b"ab")
        writer.write(b"cd")
        writer.close()
        assert committed == [b"abcd"]

    def test_close_is_idempotent(self):
        committed = []
        writer = BufferedBlobWriter(committed.append)
        writer.close()
        writer.close()
        assert committed == [b""]

    def test_exception_discards(self):
        committed = []
        with pytest.raises(RuntimeError):
            with BufferedBlobWriter(committed.append) as writer:
                writer.write(b"partial")
                raise RuntimeError("boom")
        assert committed == []

    def test_write_after_close(self):
        writer = BufferedBlobWriter(lambda data: None)
        writer.close()
        with pytest.raises(ValueError):
            writer.write(b"late")


class TestMemoryBlobStore:
    """Dict-backed store behaviour."""

    def test_write_and_read(self):
        store = MemoryBlobStore()
        assert store.write_all("k", b"value") == 5
        assert store.read_all("k") == b"value"

    def test_attributes_have_md5(self):
        store = MemoryBlobStore.from_objects({"k": b"value"})
        ref = store.attributes("k")
        assert ref == ObjectRef(key="k", size=5, content_hash=md5_digest(b"value"))

    def test_list_sorted(self):
        store = MemoryBlobStore.from_objects({"c": b"3", "a": b"1", "b/x": b"2"})
        assert [ref.key for ref in store.list()] == ["a", "b/x", "c"]

    def test_list_empty(self):
        assert list(MemoryBlobStore().list()) == []

    def test_list_tolerates_delete_while_iterating(self):
        store = MemoryBlobStore.from_objects({"a": b"1", "b": b"2"})
        listing = store.list()
        assert next(listing).key == "a"
        store.delete("b")
        assert list(listing) == []

    def test_exists(self):
        store = MemoryBlobStore.from_objects({"k": b""})
        assert store.exists("k")
        assert not store.exists("missing")

    def test_missing_raises(self):
        store = MemoryBlobStore()
        with pytest.raises(BlobNotFoundError):
            store.attributes("missing")
        with pytest.raises(BlobNotFoundError):
            store.open_reader("missing")
        with pytest.raises(BlobNotFoundError):
            store.delete("missing")

    def test_overwrite(self):
        store = MemoryBlobStore.from_objects({"k": b"old"})
        store.write_all("k", b"newer")
        assert store.read_all("k") == b"newer"
        assert store.attributes("k").content_hash == md5_digest(b"newer")

    def test_delete(self):
        store = MemoryBlobStore.from_objects({"k": b"v"})
        store.delete("k")
        assert len(store) == 0
        assert store.keys() == []

    def test_writer_not_visible_until_closed(self):
        store = MemoryBlobStore()
        writer = store.open_writer("k")
        writer.write(b"data")
        assert not store.exists("k")
        writer.close()
        assert store.exists("k")

    def test_context_manager_and_repr(self):
        with MemoryBlobStore() as store:
            assert repr(store) == "MemoryBlobStore('mem://')"
