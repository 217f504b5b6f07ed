"""Storage name generation and the upload type allow-list."""

import os
import secrets

from storage.errors import InvalidFileType
from storage.models import Clock

ALLOWED_MIMETYPES = frozenset({"video/mp4", "video/webm", "video/x-matroska"})

MIME_TYPES = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

RANDOM_BYTES = 4


def get_extension(filename: str) -> str:
    """Return the lowercase file extension including the dot, or ''."""
    return os.path.splitext(os.path.basename(filename or ""))[1].lower()


def generate_name(original_filename: str, clock: Clock) -> str:
    """Build ``<epoch-millis>_<8 hex chars><ext>`` for a new upload.

    Only the extension of the client filename is used; content is never
    inspected.
    """
    millis = int(clock() * 1000)
    return f"{millis}_{secrets.token_hex(RANDOM_BYTES)}{get_extension(original_filename)}"


def check_mimetype(declared: str | None) -> str:
    """Return the declared mimetype if it is allowed.

    Raises:
        InvalidFileType: For anything outside the allow-list.
    """
    mimetype = (declared or "").split(";", 1)[0].strip().lower()
    if mimetype not in ALLOWED_MIMETYPES:
        raise InvalidFileType(detail=f"Rejected upload with declared type {declared!r}")
    return mimetype


def mimetype_for(name: str) -> str:
    return MIME_TYPES.get(get_extension(name), DEFAULT_MIME_TYPE)
