"""Explicit, permanent deletion of stored files."""

import asyncio
import logging
import os
from dataclasses import dataclass

from storage.catalog import scan_directory
from storage.errors import StorageIOError, StoredFileNotFound
from storage.models import StorageConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteAllResult:
    deleted: int
    failed: int


def _is_plain_name(name: str) -> bool:
    return (
        bool(name)
        and name not in (".", "..")
        and os.path.basename(name) == name
        and "\\" not in name
        and "\x00" not in name
    )


class Eraser:
    def __init__(self, config: StorageConfig):
        self.config = config

    async def delete_one(self, name: str) -> None:
        """Delete ``name`` from the upload directory.

        The delete is attempted directly; "does not exist" is reported as
        StoredFileNotFound, so a repeated delete is NotFound too.

        Raises:
            StoredFileNotFound: No such entry (or not a plain filename).
            StorageIOError: The filesystem refused the delete.
        """
        if not _is_plain_name(name):
            raise StoredFileNotFound(detail=f"Rejected name {name!r}")
        try:
            await asyncio.to_thread(os.remove, self.config.path_for(name))
        except FileNotFoundError as e:
            raise StoredFileNotFound(detail=f"{name} does not exist") from e
        except IsADirectoryError as e:
            raise StoredFileNotFound(detail=f"{name} is not a stored file") from e
        except OSError as e:
            raise StorageIOError(detail=f"Failed to delete {name}: {e}") from e
        logger.info(f"Deleted file: {name}")

    async def _delete_entry(self, name: str) -> bool | None:
        """True if removed, False on failure, None if there was nothing to remove."""
        try:
            await asyncio.to_thread(os.remove, self.config.path_for(name))
        except FileNotFoundError:
            # Already gone, e.g. swept concurrently
            return None
        except IsADirectoryError:
            return None
        except OSError as e:
            logger.error(f"Failed to delete {name}: {e}")
            return False
        return True

    async def delete_all(self) -> DeleteAllResult:
        """Delete every entry, continuing past individual failures.

        Raises:
            StorageIOError: If the directory itself cannot be read.
        """
        names = await scan_directory(self.config.upload_dir)
        results = await asyncio.gather(*(self._delete_entry(n) for n in names))
        result = DeleteAllResult(
            deleted=sum(1 for r in results if r is True),
            failed=sum(1 for r in results if r is False),
        )
        logger.info(f"Deleted all files: {result.deleted} deleted, {result.failed} failed")
        return result
