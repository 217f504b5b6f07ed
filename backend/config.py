"""
Application configuration with Docker secrets support.

Secrets are read using the _read_secret() pattern:
  1. Direct env var (e.g., API_KEY)
  2. File-based env var (e.g., API_KEY_FILE → reads file path)
  3. Raises ValueError if neither is set
"""

import os
import logging

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., API_KEY)
        file_env_var: File path env var name (e.g., API_KEY_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    # Priority 1: Direct env var
    value = os.environ.get(env_var)
    if value:
        return value

    # Priority 2: File-based (Docker secrets pattern)
    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Storage
        self.upload_dir = os.path.abspath(os.environ.get("UPLOAD_DIR", "./public/videos"))
        self.max_upload_bytes = int(os.environ.get("MAX_UPLOAD_BYTES", str(100 * MIB)))
        self.retention_seconds = float(os.environ.get("RETENTION_SECONDS", "86400"))
        self.sweep_interval_seconds = float(os.environ.get("SWEEP_INTERVAL_SECONDS", "3600"))

        # HTTP surface
        self.frontend_url = os.environ.get("FRONTEND_URL", "*")
        self.public_base_url = os.environ.get("PUBLIC_BASE_URL", "").rstrip("/") or None
        self.rate_limit = os.environ.get("RATE_LIMIT", "100/15 minutes")
        self.rate_limit_storage_uri = os.environ.get("RATE_LIMIT_STORAGE_URI", "memory://")

        self.app_env = os.environ.get("APP_ENV", "production").lower()

        # Secrets (loaded lazily on first access via properties)
        self._api_key: str | None = None

    @property
    def debug(self) -> bool:
        """Expose raw error text in 500 responses only in development."""
        return self.app_env == "development"

    @property
    def api_key(self) -> str | None:
        """Shared secret for listing and deletion. None when not configured."""
        if self._api_key is None:
            try:
                self._api_key = _read_secret("API_KEY")
            except ValueError:
                return None
        return self._api_key


settings = Settings()
