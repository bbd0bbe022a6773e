"""
Mirror Run — Counters and timing for one mirror invocation.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MirrorRun(BaseModel):
    """
    Outcome of one mirror run.

    ``skip_count`` is the configured number of leading objects to ignore;
    ``skipped_count`` is the number of objects left alone because the
    destination already had identical content.
    """

    skip_count: int = 0
    listed_count: int = 0
    skipped_count: int = 0
    copied_count: int = 0
    error_count: int = 0
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: Optional[datetime] = None

    @property
    def duration(self) -> timedelta:
        end = self.finished_at or utc_now()
        return end - self.started_at

    def finish(self) -> "MirrorRun":
        """Record the end time."""
        self.finished_at = utc_now()
        return self

    def summary(self) -> str:
        return (
            f"copied {self.copied_count} objects. "
            f"{self.error_count} errors. "
            f"duration: {self.duration}"
        )
