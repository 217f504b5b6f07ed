"""Storage error taxonomy.

Client faults (bad input) are recoverable by retrying with corrected
input. Server faults are logged and their raw text is only exposed to
callers in development.
"""

from config import MIB


class StorageError(Exception):
    """Base exception for all storage lifecycle errors.

    Attributes:
        code: Stable error code (e.g. "LIMIT_FILE_SIZE").
        message: User-visible message.
        status_code: HTTP status the routing layer maps this to.
        client_fault: False for server-side faults.
    """

    code = "STORAGE_ERROR"
    message = "Storage operation failed"
    status_code = 500
    client_fault = False

    def __init__(self, message: str | None = None, detail: str | None = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(detail or self.message)


class InvalidFileType(StorageError):
    code = "INVALID_FILE_TYPE"
    message = "Invalid file type"
    status_code = 400
    client_fault = True


class FileTooLarge(StorageError):
    code = "LIMIT_FILE_SIZE"
    message = "File size exceeds limit"
    status_code = 413
    client_fault = True

    @classmethod
    def for_limit(cls, limit: int, detail: str | None = None) -> "FileTooLarge":
        """Error whose message names the configured ceiling, e.g. "100MB"."""
        if limit >= MIB and limit % MIB == 0:
            shown = f"{limit // MIB}MB"
        else:
            shown = f"{limit} bytes"
        return cls(f"File size exceeds {shown} limit", detail=detail)


class NoFileUploaded(StorageError):
    code = "NO_FILE"
    message = "No file uploaded"
    status_code = 400
    client_fault = True


class MalformedUpload(StorageError):
    code = "MALFORMED_UPLOAD"
    message = "Malformed upload"
    status_code = 400
    client_fault = True


class TooManyFiles(StorageError):
    code = "LIMIT_FILE_COUNT"
    message = "Only one file may be uploaded per request"
    status_code = 400
    client_fault = True


class MissingParameter(StorageError):
    code = "MISSING_PARAMETER"
    message = "Missing required parameter"
    status_code = 400
    client_fault = True


class StoredFileNotFound(StorageError):
    code = "FILE_NOT_FOUND"
    message = "File not found"
    status_code = 404
    client_fault = True


class StorageIOError(StorageError):
    """Disk write/read/delete failure (disk full, permission denied, ...)."""

    code = "IO_FAILURE"
    message = "Storage I/O failure"
    status_code = 500


class AccessNotConfigured(StorageError):
    """The shared secret is unset; privileged operations fail closed."""

    code = "SERVER_CONFIG_ERROR"
    message = "Server configuration error"
    status_code = 500
