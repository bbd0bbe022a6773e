"""
S3 Store — S3-compatible blob store (``s3://bucket/prefix``).

Requires the optional ``s3`` extra (boto3). Credentials come from the
usual boto3 chain (environment, shared config, instance profile).

URL query parameters:
    region    AWS region name
    endpoint  endpoint URL for S3-compatible services (MinIO, Ceph, ...)

Content hashes come from the ETag, which is the MD5 of the object for
single-part uploads. Multipart ETags (``"<hex>-<parts>"``) are not content
hashes and are reported as missing, so a staging store is needed to
compare such objects.
"""

from __future__ import annotations

import io
import logging
from typing import Any, BinaryIO, Iterator, Optional

from ..errors import BlobNotFoundError, StorageError
from .base import BlobStore, BufferedBlobWriter, ObjectRef

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def parse_etag(etag: Optional[str]) -> Optional[bytes]:
    """Return the MD5 digest carried by a single-part ETag, else None."""
    if not etag:
        return None
    value = etag.strip('"')
    if "-" in value or len(value) != 32:
        return None
    try:
        return bytes.fromhex(value)
    except ValueError:
        return None


def _is_not_found(err: Exception) -> bool:
    response = getattr(err, "response", None) or {}
    code = str(response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


class S3BlobStore(BlobStore):
    """Blob store over one S3 bucket, optionally under a key prefix."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        if not bucket:
            raise StorageError("S3 store needs a bucket name")
        self.bucket = bucket
        self.prefix = prefix.strip("/") + "/" if prefix.strip("/") else ""
        self.url = f"s3://{bucket}/{self.prefix}"
        self._client = client or self._create_client(region, endpoint_url)

    @staticmethod
    def _create_client(region: Optional[str], endpoint_url: Optional[str]):
        try:
            import boto3
            from botocore.config import Config
        except ImportError as e:
            raise StorageError("s3:// stores need boto3 (pip install 'blobcopy[s3]')") from e

        boto_config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "adaptive"},
        )
        return boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=boto_config,
        )

    def _full_key(self, key: str) -> str:
        return self.prefix + key

    def _head(self, key: str) -> dict:
        try:
            return self._client.head_object(Bucket=self.bucket, Key=self._full_key(key))
        except Exception as err:
            if _is_not_found(err):
                raise BlobNotFoundError(key) from err
            raise

    # -- BlobStore ----------------------------------------------------------

    def list(self) -> Iterator[ObjectRef]:
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
            for obj in page.get("Contents", []):
                yield ObjectRef(
                    key=obj["Key"][len(self.prefix):],
                    size=obj["Size"],
                    content_hash=parse_etag(obj.get("ETag")),
                )

    def attributes(self, key: str) -> ObjectRef:
        head = self._head(key)
        return ObjectRef(
            key=key,
            size=head["ContentLength"],
            content_hash=parse_etag(head.get("ETag")),
        )

    def exists(self, key: str) -> bool:
        try:
            self._head(key)
        except BlobNotFoundError:
            return False
        return True

    def open_reader(self, key: str) -> BinaryIO:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self._full_key(key))
        except Exception as err:
            if _is_not_found(err):
                raise BlobNotFoundError(key) from err
            raise
        body = response["Body"]
        try:
            return io.BytesIO(body.read())
        finally:
            body.close()

    def open_writer(self, key: str) -> BufferedBlobWriter:
        def commit(data: bytes) -> None:
            self._client.put_object(Bucket=self.bucket, Key=self._full_key(key), Body=data)

        return BufferedBlobWriter(commit)

    def delete(self, key: str) -> None:
        # S3 deletes are idempotent; missing keys must still fail here
        self._head(key)
        self._client.delete_object(Bucket=self.bucket, Key=self._full_key(key))
        logger.debug(f"Deleted s3://{self.bucket}/{self._full_key(key)}")
