"""
Mirror Engine — Copy every changed object from a source to a destination.

Each listed object moves through a small state machine, strictly one
object at a time:

    Listed → (Staged)? → Compared → Copied | Skipped | Failed

- **Listed**: the source listing is consumed lazily. The first ``skip``
  listed objects are dropped here and cost nothing beyond the listing.
- **Staged**: with a staging store, the object is copied (through the
  codec) into scratch space to obtain the content hash of the bytes that
  will land in the destination. The staged copy is deleted when the
  object's iteration ends.
- **Compared**: if the destination key exists with the same content hash,
  the object is Skipped.
- **Copied**: otherwise the full content is read, transformed and written.

Any failure is wrapped in an ObjectError, handed to the ErrorCollector,
and the loop moves on. A run always ends with a MirrorRun summary.

## Usage

    from blobcopy.mirror.engine import MirrorEngine

    engine = MirrorEngine(source, destination, staging=open_store("mem://"))
    run = engine.mirror(skip=0)
    print(run.summary())
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..crypto.cipher import CipherCodec
from ..errors import CipherError, ObjectError
from ..reliability.error_collector import ErrorCollector
from ..storage.base import BlobStore, ObjectRef
from .run import MirrorRun, utc_now
from .safety import is_marker_name
from .staging import StagingCoordinator
from .transfer import IDENTITY, copy_object, hashes_match

logger = logging.getLogger(__name__)

COPIED = "copied"
SKIPPED = "skipped"
FAILED = "failed"


class MirrorEngine:
    """
    Sequential mirror of one source store into one destination store.
    """

    def __init__(
        self,
        source: BlobStore,
        destination: BlobStore,
        staging: Optional[BlobStore] = None,
        codec: Optional[CipherCodec] = None,
        errors: Optional[ErrorCollector] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.source = source
        self.destination = destination
        self.staging = staging
        self.codec = codec or IDENTITY
        self.errors = errors
        self.log = log or logger
        self._collector: Optional[ErrorCollector] = None
        self._run: Optional[MirrorRun] = None
        self.stager: Optional[StagingCoordinator] = None
        if staging is not None:
            self.stager = StagingCoordinator(staging, self.codec, self._report, log=self.log)

        if self.staging is None and not self.codec.is_identity:
            self.log.warning(
                "Transforming without a staging store: source and destination "
                "hashes will never match, every object is copied"
            )

    # -- Run ----------------------------------------------------------------

    def mirror(self, skip: int = 0, started_at: Optional[datetime] = None) -> MirrorRun:
        """
        Run one mirror pass.

        If the engine's ErrorCollector has not been started, the engine
        starts it for the duration of the run and stops it before
        returning, so ``error_count`` is final. A collector serves one run
        only; passing a stopped collector is an error.

        Args:
            skip: Number of leading listed objects to ignore.
            started_at: Start of the run, when the caller did work before
                the loop (opening stores, the safety check) that belongs
                in the reported duration. Defaults to now.

        Returns:
            The finished MirrorRun.
        """
        if skip < 0:
            raise ValueError("skip must be >= 0")

        collector = self.errors or ErrorCollector(log=self.log)
        owns_collector = not collector.running
        if owns_collector:
            collector.start()

        self._collector = collector
        self._run = run = MirrorRun(skip_count=skip, started_at=started_at or utc_now())
        self.log.info(
            f"Mirroring {self.source.url} → {self.destination.url} "
            f"(mode={self.codec.mode}, staging={self.staging.url if self.staging else 'none'}, skip={skip})"
        )
        try:
            self._loop(run, skip)
        finally:
            if owns_collector:
                collector.stop()
            self._collector = None
        return run.finish()

    def _loop(self, run: MirrorRun, skip: int) -> None:
        listing = iter(self.source.list())
        ordinal = 0
        while True:
            ordinal += 1
            try:
                ref = next(listing)
            except StopIteration:
                break
            except Exception as e:
                self._report(ObjectError(f"<listing #{ordinal}>", "list", e))
                continue

            run.listed_count += 1
            if ordinal <= skip:
                continue

            try:
                outcome = self._mirror_object(ref, ordinal)
            except ObjectError as e:
                self._report(e)
                continue

            if outcome == COPIED:
                run.copied_count += 1
            elif outcome == SKIPPED:
                run.skipped_count += 1

    def _report(self, err: BaseException) -> None:
        if self._run is not None:
            self._run.error_count += 1
        if self._collector is not None:
            self._collector.send(err)
        else:
            self.log.error(str(err))

    # -- Per object ---------------------------------------------------------

    def _mirror_object(self, ref: ObjectRef, ordinal: int) -> str:
        key = ref.key
        if self._is_safety_marker(key):
            self.log.info(f"[{ordinal}] skipping safety marker {key}", extra={"object_key": key, "ordinal": ordinal})
            return SKIPPED

        try:
            attrs = self.source.attributes(key)
        except Exception as e:
            raise ObjectError(key, "attributes", e) from e

        if self.stager is None:
            try:
                dest_key = self.codec.transform_key(key)
            except Exception as e:
                raise ObjectError(key, "key", e) from e
            return self._compare_and_copy(key, attrs, self.source, key, dest_key, self.codec, ordinal)

        with self.stager.staged(self.source, key, ordinal) as staged:
            if staged is None:
                return FAILED
            # report before cleanup so errors stay in the order they occurred
            try:
                # staged bytes are already transformed
                return self._compare_and_copy(key, staged, self.stager.store, staged.key, staged.key, IDENTITY, ordinal)
            except ObjectError as e:
                self._report(e)
                return FAILED

    def _compare_and_copy(
        self,
        key: str,
        attrs: ObjectRef,
        reader: BlobStore,
        read_key: str,
        dest_key: str,
        codec: CipherCodec,
        ordinal: int,
    ) -> str:
        extra = {"object_key": key, "ordinal": ordinal}

        try:
            exists = self.destination.exists(dest_key)
        except Exception as e:
            raise ObjectError(key, "exists", e) from e

        if exists:
            try:
                dest_attrs = self.destination.attributes(dest_key)
            except Exception as e:
                raise ObjectError(key, "destination-attributes", e) from e
            if hashes_match(attrs.content_hash, dest_attrs.content_hash):
                self.log.info(f"[{ordinal}] unchanged, skipping {key}", extra=extra)
                return SKIPPED

        self.log.info(
            f"[{ordinal}] copying to destination {key} [{dest_key}] "
            f"size {attrs.size} md5 {attrs.content_hash_hex or '-'}",
            extra=extra,
        )
        try:
            written, _ = copy_object(reader, self.destination, read_key, codec, dest_key=dest_key)
        except Exception as e:
            raise ObjectError(key, "copy", e) from e
        self.log.info(f"[{ordinal}] copied to destination {key} [{dest_key}] size {written}", extra=extra)
        return COPIED

    def _is_safety_marker(self, key: str) -> bool:
        """Only an encrypted source can hold a marker."""
        if not self.codec.decrypt_key:
            return False
        try:
            return is_marker_name(self.codec.transform_key_bytes(key))
        except CipherError:
            return False


def mirror(
    source: BlobStore,
    destination: BlobStore,
    staging: Optional[BlobStore] = None,
    encrypt_key: bytes = b"",
    decrypt_key: bytes = b"",
    skip: int = 0,
    errors: Optional[ErrorCollector] = None,
    log: Optional[logging.Logger] = None,
) -> MirrorRun:
    """Mirror ``source`` into ``destination`` in one call."""
    codec = CipherCodec(encrypt_key=encrypt_key, decrypt_key=decrypt_key)
    engine = MirrorEngine(source, destination, staging=staging, codec=codec, errors=errors, log=log)
    return engine.mirror(skip=skip)
