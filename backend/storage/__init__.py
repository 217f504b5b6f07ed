from .errors import (
    AccessNotConfigured,
    FileTooLarge,
    InvalidFileType,
    MalformedUpload,
    MissingParameter,
    NoFileUploaded,
    StorageError,
    StorageIOError,
    StoredFileNotFound,
    TooManyFiles,
)
from .models import StorageConfig, StoredFile
from .service import VideoStorage, get_storage

__all__ = [
    "AccessNotConfigured",
    "FileTooLarge",
    "InvalidFileType",
    "MalformedUpload",
    "MissingParameter",
    "NoFileUploaded",
    "StorageError",
    "StorageIOError",
    "StoredFileNotFound",
    "TooManyFiles",
    "StorageConfig",
    "StoredFile",
    "VideoStorage",
    "get_storage",
]
