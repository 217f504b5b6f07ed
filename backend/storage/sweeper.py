"""Age-based eviction of stored files.

A file is expired once ``now >= created_at + retention``. Deletions are
best-effort: one failure is logged and the rest of the sweep carries on.
"""

import asyncio
import logging
import os

from storage.catalog import scan_directory, stat_regular_file
from storage.models import StorageConfig, created_at_from_stat

logger = logging.getLogger(__name__)


class RetentionSweeper:
    def __init__(self, config: StorageConfig):
        self.config = config

    async def _purge_if_expired(self, name: str, now) -> bool:
        path = self.config.path_for(name)
        try:
            st = await stat_regular_file(path)
        except OSError as e:
            logger.error(f"Sweep could not stat {name}: {e}")
            return False
        if st is None:
            return False
        if now < created_at_from_stat(st) + self.config.retention:
            return False

        try:
            await asyncio.to_thread(os.remove, path)
        except FileNotFoundError:
            # Removed concurrently by an explicit delete
            return False
        except OSError as e:
            logger.error(f"Sweep failed to delete {name}: {e}")
            return False
        logger.info(f"Cleaned up file: {name}")
        return True

    async def purge_expired(self) -> int:
        """Run one sweep and return the number of files deleted."""
        names = await scan_directory(self.config.upload_dir)
        now = self.config.now()
        results = await asyncio.gather(*(self._purge_if_expired(n, now) for n in names))
        deleted = sum(results)
        if deleted > 0:
            logger.info(f"Sweep complete: {deleted} expired file(s) deleted")
        return deleted
