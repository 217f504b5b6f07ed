"""List the upload directory as StoredFile records.

Every call re-reads the directory; there is no cache. Entries that vanish
between the scan and the stat (raced by the sweeper or an explicit
delete) are left out of the result.
"""

import asyncio
import logging
import os
import stat

from storage.errors import StorageIOError
from storage.models import StorageConfig, StoredFile, created_at_from_stat
from storage.naming import mimetype_for

logger = logging.getLogger(__name__)


async def scan_directory(upload_dir: str) -> list[str]:
    """Return the entry names of the upload directory.

    Raises:
        StorageIOError: If the directory cannot be read.
    """
    try:
        return await asyncio.to_thread(os.listdir, upload_dir)
    except OSError as e:
        raise StorageIOError(detail=f"Cannot read {upload_dir}: {e}") from e


async def stat_regular_file(path: str) -> os.stat_result | None:
    """Stat ``path``; None if it is gone or not a regular file."""
    try:
        st = await asyncio.to_thread(os.stat, path)
    except FileNotFoundError:
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return st


class Catalog:
    def __init__(self, config: StorageConfig):
        self.config = config

    async def _describe(self, name: str) -> StoredFile | None:
        st = await stat_regular_file(self.config.path_for(name))
        if st is None:
            return None
        created_at = created_at_from_stat(st)
        return StoredFile(
            name=name,
            size=st.st_size,
            mimetype=mimetype_for(name),
            created_at=created_at,
            expires_at=created_at + self.config.retention,
        )

    async def list(self) -> list[StoredFile]:
        """All stored files, newest first."""
        names = await scan_directory(self.config.upload_dir)
        try:
            described = await asyncio.gather(*(self._describe(n) for n in names))
        except OSError as e:
            raise StorageIOError(detail=f"Cannot stat upload entries: {e}") from e

        files = [f for f in described if f is not None]
        files.sort(key=lambda f: f.created_at, reverse=True)
        return files
