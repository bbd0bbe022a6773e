"""
Mirror Configuration — Validated options for one mirror run.

Built by the CLI from flags (with BLOBCOPY_TMP_BKT / BLOBCOPY_SKIP as
environment fallbacks). Validation happens here so the CLI and any
programmatic caller reject the same bad combinations.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

DEFAULT_STAGING_URL = "mem://"


class MirrorOptions(BaseModel):
    """Options for a single mirror run."""

    source_url: str
    destination_url: str
    tmp_url: Optional[str] = None
    skip: int = Field(default=0, ge=0)
    encrypt: bool = False
    decrypt: bool = False
    safety: bool = False
    gen_safety: bool = False

    @model_validator(mode="after")
    def _check_modes(self) -> "MirrorOptions":
        if self.encrypt and self.decrypt:
            raise ValueError("--encrypt and --decrypt are mutually exclusive")
        if self.safety and not self.encrypt:
            raise ValueError("--safety needs --encrypt (the marker is keyed by the encryption password)")
        return self

    @property
    def needs_password(self) -> bool:
        return self.encrypt or self.decrypt

    @property
    def staging_url(self) -> Optional[str]:
        """
        Staging store URL for the run.

        Encrypted and decrypted runs always stage, in memory unless told
        otherwise, so that the destination comparison uses the hash of the
        transformed bytes.
        """
        if self.tmp_url:
            return self.tmp_url
        if self.needs_password:
            return DEFAULT_STAGING_URL
        return None
