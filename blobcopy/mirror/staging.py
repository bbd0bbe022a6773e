"""
Staging — Copy source objects into a scratch store to get content hashes.

Some backends cannot report a content hash without reading the object,
and an encrypted destination can only be compared against the hash of the
*encrypted* source bytes. Staging solves both: the object is copied
(through the codec) into a scratch store that computes MD5 on write, and
the mirror compares against the staged copy.

Each staged object is owned by exactly one loop iteration and deleted when
that iteration ends, whether it copied, skipped, or failed.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from ..crypto.cipher import CipherCodec
from ..errors import ObjectError
from ..storage.base import BlobStore, ObjectRef
from .transfer import copy_object

logger = logging.getLogger(__name__)


class StagingCoordinator:
    """Stages objects into ``store`` and guarantees their cleanup."""

    def __init__(
        self,
        store: BlobStore,
        codec: CipherCodec,
        report: Callable[[BaseException], None],
        log: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.codec = codec
        self.report = report
        self.log = log or logger

    @contextmanager
    def staged(self, source: BlobStore, key: str, ordinal: int) -> Iterator[Optional[ObjectRef]]:
        """
        Stage ``key`` and yield the staged object's attributes.

        The staged key is the codec-transformed key. The staged object is
        deleted on exit; a failed delete is reported, not raised, so it
        never masks the outcome of the iteration. Errors the body wants
        logged must be reported before the block exits.

        Yields None when the staged copy exists but cannot be inspected;
        that failure has already been reported.

        Raises:
            ObjectError: If the object cannot be staged.
        """
        extra = {"object_key": key, "ordinal": ordinal}
        self.log.info(f"[{ordinal}] loading to staging store {key}", extra=extra)
        try:
            _, staged_key = copy_object(source, self.store, key, self.codec)
        except Exception as e:
            raise ObjectError(key, "stage", e) from e

        try:
            try:
                staged = self.store.attributes(staged_key)
            except Exception as e:
                self.report(ObjectError(key, "stage", e))
                staged = None
            yield staged
        finally:
            self._cleanup(key, staged_key, ordinal)

    def _cleanup(self, key: str, staged_key: str, ordinal: int) -> None:
        self.log.info(
            f"[{ordinal}] deleting from staging store {key}",
            extra={"object_key": key, "ordinal": ordinal},
        )
        try:
            self.store.delete(staged_key)
        except Exception as e:
            self.report(ObjectError(key, "cleanup", e))
