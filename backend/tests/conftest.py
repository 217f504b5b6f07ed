"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches a real upload directory.
"""

import os
import tempfile
import time

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "UPLOAD_DIR": tempfile.mkdtemp(prefix="videodrop-test-"),
    "API_KEY": "test-api-key",
    "RATE_LIMIT": "10000/minute",
    "APP_ENV": "production",
})
os.environ.pop("PUBLIC_BASE_URL", None)

import pytest

from httpx import ASGITransport, AsyncClient

# Now safe to import application code
from storage import StorageConfig, VideoStorage, get_storage

API_KEY = "test-api-key"


class FakeClock:
    """Injectable clock starting at the real current time."""

    def __init__(self, start: float | None = None):
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpload:
    """Minimal stand-in for an UploadFile: async chunked reads over bytes."""

    def __init__(self, data: bytes, filename: str = "clip.mp4", content_type: str | None = "video/mp4"):
        self._data = data
        self._pos = 0
        self.filename = filename
        self.content_type = content_type
        self.reads = 0

    async def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if size < 0:
            size = len(self._data) - self._pos
        chunk = self._data[self._pos : self._pos + size]
        self._pos += len(chunk)
        return chunk


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upload_dir(tmp_path) -> str:
    d = tmp_path / "videos"
    d.mkdir()
    return str(d)


@pytest.fixture
def storage_config(upload_dir, clock) -> StorageConfig:
    return StorageConfig(upload_dir=upload_dir, clock=clock)


@pytest.fixture
def video_storage(storage_config) -> VideoStorage:
    return VideoStorage(storage_config)


@pytest.fixture
async def test_client(video_storage):
    """HTTPX async client wired to the FastAPI app, with storage override.

    The startup event is NOT run, so no background sweeper is started.
    """
    from main import app

    app.dependency_overrides[get_storage] = lambda: video_storage
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"X-API-Key": API_KEY}


@pytest.fixture
def make_upload():
    """Factory for FakeUpload streams."""
    return FakeUpload


@pytest.fixture
def place_file(upload_dir):
    """Drop a file straight into the upload directory, optionally backdated.

    ``mtime`` is whole epoch seconds so creation timestamps compare exactly.
    """

    def _place(name: str, data: bytes = b"\x00" * 16, mtime: int | None = None) -> str:
        path = os.path.join(upload_dir, name)
        with open(path, "wb") as f:
            f.write(data)
        if mtime is not None:
            os.utime(path, ns=(mtime * 1_000_000_000, mtime * 1_000_000_000))
        return path

    return _place


@pytest.fixture
def make_clock():
    """Factory for FakeClock instances pinned to a given start time."""
    return FakeClock
