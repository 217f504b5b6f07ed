"""Incremental multipart parsing for uploads.

The request body is pulled from the socket only as fast as the upload
store consumes the file part, so an oversized or chunked upload is cut
off at the ceiling instead of being spooled in full first. The whole
body, boundaries and other fields included, is capped as well.
"""

from collections import deque
from dataclasses import dataclass

from python_multipart.exceptions import FormParserError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import Request

from api.middleware import MULTIPART_OVERHEAD_BYTES
from storage.errors import FileTooLarge, MalformedUpload, NoFileUploaded, TooManyFiles


@dataclass
class _PartHeaders:
    field_name: str
    filename: str | None
    content_type: str | None


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


class MultipartUpload:
    """Pull-based reader over a ``multipart/form-data`` request body.

    Only file parts under ``field`` are handed out; every other part is
    skipped. A second file part anywhere in the body raises TooManyFiles,
    even after the first part has been fully read.
    """

    def __init__(self, request: Request, field: str, max_file_bytes: int):
        content_type, params = parse_options_header(request.headers.get("content-type"))
        if content_type != b"multipart/form-data":
            raise NoFileUploaded(detail=f"Not a multipart body: {content_type!r}")
        boundary = params.get(b"boundary")
        if not boundary:
            raise MalformedUpload(detail="Multipart body without a boundary")

        self.field = field
        self.max_file_bytes = max_file_bytes
        self.max_body_bytes = max_file_bytes + MULTIPART_OVERHEAD_BYTES
        self.file_parts = 0
        self.received = 0

        self._body = request.stream().__aiter__()
        self._body_done = False
        self._events: deque = deque()
        self._header_name = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        try:
            self._parser = MultipartParser(
                boundary,
                callbacks={
                    "on_part_begin": self._on_part_begin,
                    "on_part_data": self._on_part_data,
                    "on_part_end": self._on_part_end,
                    "on_header_field": self._on_header_field,
                    "on_header_value": self._on_header_value,
                    "on_header_end": self._on_header_end,
                    "on_headers_finished": self._on_headers_finished,
                },
            )
        except FormParserError as e:
            raise MalformedUpload(detail=str(e)) from e

    # Parser callbacks only record events; all decisions happen while pulling.

    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._events.append(("data", data[start:end]))

    def _on_part_end(self) -> None:
        self._events.append(("end", None))

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_name.lower()] = self._header_value
        self._header_name = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition"))
        if b"name" not in options:
            raise MalformedUpload(detail="Multipart part without a field name")
        filename = options.get(b"filename")
        content_type = self._headers.get(b"content-type")
        self._events.append((
            "headers",
            _PartHeaders(
                field_name=_decode(options[b"name"]),
                filename=_decode(filename) if filename is not None else None,
                content_type=_decode(content_type) if content_type is not None else None,
            ),
        ))

    async def _pull(self) -> bool:
        """Feed the next body chunk to the parser. False once the body is exhausted."""
        if self._body_done:
            return False
        try:
            chunk = await self._body.__anext__()
        except StopAsyncIteration:
            chunk = b""
        try:
            if not chunk:
                self._body_done = True
                self._parser.finalize()
                return bool(self._events)
            self.received += len(chunk)
            if self.received > self.max_body_bytes:
                raise FileTooLarge.for_limit(
                    self.max_file_bytes, detail=f"Request body exceeded {self.max_body_bytes} bytes"
                )
            self._parser.write(chunk)
        except FormParserError as e:
            raise MalformedUpload(detail=str(e)) from e
        return True

    async def _next_event(self):
        while not self._events:
            if not await self._pull():
                return None
        kind, value = self._events.popleft()
        if kind == "headers":
            if value.filename is not None:
                self.file_parts += 1
                if self.file_parts > 1:
                    raise TooManyFiles(detail="More than one file part in the request")
        return kind, value

    async def next_file(self) -> "UploadPartStream | None":
        """Advance to the upload's file part, or None if the body holds none."""
        while True:
            event = await self._next_event()
            if event is None:
                return None
            kind, value = event
            if kind == "headers" and value.filename is not None and value.field_name == self.field:
                return UploadPartStream(self, value)


class UploadPartStream:
    """The file part being uploaded, readable with ``await read(size)``.

    EOF is only reported once the rest of the body has been drained, so
    a trailing extra file part still fails the upload.
    """

    def __init__(self, upload: MultipartUpload, headers: _PartHeaders):
        self._upload = upload
        self._buffer = bytearray()
        self._part_done = False
        self.filename = headers.filename
        self.content_type = headers.content_type

    async def read(self, size: int = -1) -> bytes:
        while not self._buffer:
            event = await self._upload._next_event()
            if event is None:
                if not self._part_done:
                    raise MalformedUpload(detail="Request body ended inside the file part")
                return b""
            kind, value = event
            if self._part_done:
                continue
            if kind == "data":
                self._buffer.extend(value)
            elif kind == "end":
                self._part_done = True

        if size < 0 or size >= len(self._buffer):
            size = len(self._buffer)
        chunk = bytes(self._buffer[:size])
        del self._buffer[:size]
        return chunk
