"""Wires the storage components to one shared configuration."""

import logging
import os

from config import settings
from storage.catalog import Catalog
from storage.eraser import Eraser
from storage.models import StorageConfig
from storage.store import UploadStore
from storage.sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


class VideoStorage:
    """Store, Catalog, Sweeper and Eraser over a single upload directory."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.store = UploadStore(config)
        self.catalog = Catalog(config)
        self.sweeper = RetentionSweeper(config)
        self.eraser = Eraser(config)

    def init_upload_dir(self) -> None:
        """Create the upload directory. Raises OSError on failure."""
        os.makedirs(self.config.upload_dir, mode=0o755, exist_ok=True)
        logger.info(f"Upload directory initialized: {self.config.upload_dir}")


_storage: VideoStorage | None = None


def config_from_settings() -> StorageConfig:
    return StorageConfig(
        upload_dir=settings.upload_dir,
        max_bytes=settings.max_upload_bytes,
        retention_seconds=settings.retention_seconds,
        sweep_interval_seconds=settings.sweep_interval_seconds,
    )


def get_storage() -> VideoStorage:
    """FastAPI dependency returning the process-wide storage."""
    global _storage
    if _storage is None:
        _storage = VideoStorage(config_from_settings())
    return _storage
