"""Video upload, listing and deletion endpoints.

POST /upload               store one video (multipart field ``video``)
GET  /files                list stored videos, newest first   (API key)
GET  /delete?video=<name>  delete one video, or ``all``        (API key)
POST /purge                run a retention sweep now           (API key)
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from api.multipart import MultipartUpload
from auth.api_key import require_api_key
from config import settings
from storage import MissingParameter, StorageIOError, VideoStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])

UPLOAD_FIELD = "video"
DELETE_ALL = "all"


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileInfo(_ApiModel):
    filename: str
    size: int
    mimetype: str


class UploadResponse(_ApiModel):
    success: bool = True
    message: str
    video_url: str
    file_info: FileInfo


class FileEntry(_ApiModel):
    filename: str
    url: str
    size: int
    uploaded_at: datetime
    expires_at: datetime
    mimetype: str


class FileListResponse(_ApiModel):
    success: bool = True
    count: int
    files: list[FileEntry]


class DeleteResponse(_ApiModel):
    success: bool = True
    message: str
    deleted: int | None = None
    failed: int | None = None


class PurgeResponse(_ApiModel):
    success: bool = True
    deleted: int


def public_base_url(request: Request) -> str:
    """``{scheme}://{host}`` of the serving context, unless pinned in config."""
    if settings.public_base_url:
        return settings.public_base_url
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"


def _client_ip(request: Request) -> str:
    return getattr(request.state, "client_ip", "-")


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_video(request: Request, storage: VideoStorage = Depends(get_storage)):
    """Store a single uploaded video and return its public URL."""
    upload = MultipartUpload(request, UPLOAD_FIELD, max_file_bytes=storage.config.max_bytes)
    part = await upload.next_file()
    try:
        stored = await storage.store.accept([part] if part is not None else [])
    except StorageIOError as e:
        raise StorageIOError("Upload processing failed", detail=e.detail) from e

    logger.info(f"POST | IP: {_client_ip(request)} | VIDEO {stored.name}")
    return UploadResponse(
        message="Upload successful",
        video_url=stored.url(public_base_url(request)),
        file_info=FileInfo(filename=stored.name, size=stored.size, mimetype=stored.mimetype),
    )


@router.get("/files", response_model=FileListResponse, dependencies=[Depends(require_api_key)])
async def list_files(request: Request, storage: VideoStorage = Depends(get_storage)):
    """List every stored video with its size, upload time and expiry."""
    try:
        files = await storage.catalog.list()
    except StorageIOError as e:
        raise StorageIOError("Failed to retrieve files", detail=e.detail) from e

    base_url = public_base_url(request)
    logger.info(f"GET | IP: {_client_ip(request)} | FILES")
    return FileListResponse(
        count=len(files),
        files=[
            FileEntry(
                filename=f.name,
                url=f.url(base_url),
                size=f.size,
                uploaded_at=f.created_at,
                expires_at=f.expires_at,
                mimetype=f.mimetype,
            )
            for f in files
        ],
    )


@router.get(
    "/delete",
    response_model=DeleteResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
async def delete_video(
    request: Request,
    video: str | None = Query(None),
    storage: VideoStorage = Depends(get_storage),
):
    """Delete one stored video by name, or every video with ``video=all``."""
    if not video:
        raise MissingParameter("Missing video parameter")

    try:
        if video == DELETE_ALL:
            result = await storage.eraser.delete_all()
            logger.info(f"DELETE ALL | IP: {_client_ip(request)}")
            return DeleteResponse(
                message="All files deleted successfully" if result.failed == 0
                else "Some files could not be deleted",
                deleted=result.deleted,
                failed=result.failed,
            )

        await storage.eraser.delete_one(video)
    except StorageIOError as e:
        raise StorageIOError("Delete operation failed", detail=e.detail) from e

    logger.info(f"DELETE | IP: {_client_ip(request)} | VIDEO {video}")
    return DeleteResponse(message="File deleted successfully")


@router.post("/purge", response_model=PurgeResponse, dependencies=[Depends(require_api_key)])
async def purge_expired(request: Request, storage: VideoStorage = Depends(get_storage)):
    """Run one retention sweep immediately."""
    try:
        deleted = await storage.sweeper.purge_expired()
    except StorageIOError as e:
        raise StorageIOError("Cleanup failed", detail=e.detail) from e

    logger.info(f"PURGE | IP: {_client_ip(request)} | {deleted} deleted")
    return PurgeResponse(deleted=deleted)
