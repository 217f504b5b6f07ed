"""Persist an accepted upload stream under a generated name.

The size ceiling is enforced while streaming: the write stops as soon as
the limit is crossed and the partial file is removed. On any failure
the upload directory is left exactly as it was.
"""

import asyncio
import logging
import os
from typing import Protocol, Sequence

from config import MIB
from storage.errors import FileTooLarge, NoFileUploaded, StorageIOError, TooManyFiles
from storage.models import StorageConfig, StoredFile, created_at_from_stat
from storage.naming import check_mimetype, generate_name

logger = logging.getLogger(__name__)

CHUNK_SIZE = MIB  # 1 MB


class UploadStream(Protocol):
    """Anything with an async ``read(size)``, such as the multipart reader's file part."""

    async def read(self, size: int = -1) -> bytes: ...


class UploadPart(UploadStream, Protocol):
    filename: str | None
    content_type: str | None


class UploadStore:
    def __init__(self, config: StorageConfig):
        self.config = config

    async def accept(self, parts: Sequence[UploadPart]) -> StoredFile:
        """Store the single file part of a request.

        Raises:
            NoFileUploaded: No file part was sent.
            TooManyFiles: More than one file part was sent.
        """
        if not parts:
            raise NoFileUploaded()
        if len(parts) > 1:
            raise TooManyFiles(detail=f"{len(parts)} file parts in one request")
        part = parts[0]
        return await self.store(part, part.content_type, part.filename or "")

    async def store(
        self,
        stream: UploadStream | None,
        declared_mimetype: str | None,
        original_filename: str,
        max_bytes: int | None = None,
    ) -> StoredFile:
        """Write ``stream`` to a new uniquely named file.

        Args:
            stream: Upload body, read in CHUNK_SIZE pieces.
            declared_mimetype: Content type declared by the client.
            original_filename: Client filename, used for the extension only.
            max_bytes: Ceiling override; defaults to the configured maximum.

        Returns:
            The StoredFile describing the new file.

        Raises:
            NoFileUploaded, InvalidFileType, FileTooLarge, StorageIOError.
        """
        if stream is None:
            raise NoFileUploaded()
        mimetype = check_mimetype(declared_mimetype)
        limit = self.config.max_bytes if max_bytes is None else max_bytes

        name = generate_name(original_filename, self.config.clock)
        path = self.config.path_for(name)

        try:
            # "x" mode: never overwrite an existing entry
            fh = await asyncio.to_thread(open, path, "xb")
        except OSError as e:
            raise StorageIOError(detail=f"Cannot create {name}: {e}") from e

        completed = False
        size = 0
        try:
            while True:
                chunk = await stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > limit:
                    raise FileTooLarge.for_limit(limit, detail=f"Upload exceeded {limit} bytes")
                try:
                    await asyncio.to_thread(fh.write, chunk)
                except OSError as e:
                    raise StorageIOError(detail=f"Write to {name} failed: {e}") from e
            try:
                await asyncio.to_thread(fh.close)
                st = await asyncio.to_thread(os.stat, path)
            except OSError as e:
                raise StorageIOError(detail=f"Finalising {name} failed: {e}") from e
            completed = True
        finally:
            if not completed:
                await asyncio.to_thread(_discard, fh, path)

        created_at = created_at_from_stat(st)
        return StoredFile(
            name=name,
            size=size,
            mimetype=mimetype,
            created_at=created_at,
            expires_at=created_at + self.config.retention,
        )


def _discard(fh, path: str) -> None:
    """Close and remove a partially written upload."""
    try:
        fh.close()
    except OSError as e:
        logger.error(f"Failed to close partial upload {path}: {e}")
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Failed to remove partial upload {path}: {e}")
