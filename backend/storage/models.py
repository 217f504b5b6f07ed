"""Storage configuration and the derived StoredFile record."""

import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from config import MIB

MAX_UPLOAD_BYTES = 100 * MIB
RETENTION_SECONDS = 24 * 60 * 60  # 24 hours
SWEEP_INTERVAL_SECONDS = 60 * 60  # Run every hour

Clock = Callable[[], float]


@dataclass(frozen=True)
class StorageConfig:
    """Everything a storage component needs, passed in at construction.

    ``clock`` returns seconds since the epoch; tests inject a fake one to
    compress or freeze time.
    """

    upload_dir: str
    max_bytes: int = MAX_UPLOAD_BYTES
    retention_seconds: float = RETENTION_SECONDS
    sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS
    clock: Clock = field(default=time.time, compare=False)

    @property
    def retention(self) -> timedelta:
        return timedelta(seconds=self.retention_seconds)

    def path_for(self, name: str) -> str:
        return os.path.join(self.upload_dir, name)

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)


@dataclass(frozen=True)
class StoredFile:
    """One file in the upload directory, derived from filesystem metadata.

    Nothing here is persisted: expiry and URL are recomputed on every read.
    """

    name: str
    size: int
    mimetype: str
    created_at: datetime
    expires_at: datetime

    def url(self, base_url: str) -> str:
        """Public URL for this file under the serving context's base URL."""
        return f"{base_url.rstrip('/')}/video/{self.name}"


def created_at_from_stat(st: os.stat_result) -> datetime:
    """Creation time of a stat result, in UTC.

    Uses the birth time where the platform reports one and falls back to
    the modification time (stored files are never rewritten after the
    upload completes).
    """
    ts = getattr(st, "st_birthtime", None)
    if ts is None:
        ts = st.st_mtime
    return datetime.fromtimestamp(ts, tz=timezone.utc)
