"""
Transfer — Copy one object between stores through the cipher codec.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..crypto.cipher import CipherCodec
from ..storage.base import BlobStore

IDENTITY = CipherCodec()


def copy_object(
    source: BlobStore,
    destination: BlobStore,
    key: str,
    codec: CipherCodec = IDENTITY,
    dest_key: Optional[str] = None,
) -> Tuple[int, str]:
    """
    Read ``key`` from ``source``, transform it, write it to ``destination``.

    The whole object is held in memory: GCM authenticates the complete
    ciphertext, and the nonce depends on the complete plaintext.

    Args:
        source: Store to read from.
        destination: Store to write to.
        key: Key in ``source``.
        codec: Content and key-name transform.
        dest_key: Destination key, if already computed by the caller.

    Returns:
        (bytes written, destination key)
    """
    new_key = dest_key if dest_key is not None else codec.transform_key(key)
    data = codec.transform(source.read_all(key))
    written = destination.write_all(new_key, data)
    return written, new_key


def hashes_match(left: Optional[bytes], right: Optional[bytes]) -> bool:
    """Byte-for-byte content hash comparison; a missing hash never matches."""
    if left is None or right is None:
        return False
    return left == right
