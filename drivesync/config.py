"""Configuration management for drivesync.

Settings are read from environment variables first and from the config file
``~/.config/drivesync/config`` second. The file holds simple ``KEY=value``
lines.
"""

import os
from pathlib import Path
from typing import Optional

DEFAULT_API_URL = "https://app.drime.cloud/api/v1"

API_KEY_ENV = "DRIVESYNC_API_KEY"
API_URL_ENV = "DRIVESYNC_API_URL"

_API_KEY_FIELD = "DRIVESYNC_API_KEY"
_API_URL_FIELD = "DRIVESYNC_API_URL"


class Config:
    """Configuration manager for drivesync."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/drivesync
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "drivesync"
        self.config_dir = config_dir
        self.config_file = config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        """Read ``KEY=value`` pairs from the config file."""
        values: dict[str, str] = {}
        if not self.config_file.exists():
            return values

        for line in self.config_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip().strip('"').strip("'")
        return values

    @property
    def api_key(self) -> Optional[str]:
        """API key from environment or config file."""
        return os.environ.get(API_KEY_ENV) or self._read_file().get(_API_KEY_FIELD)

    @property
    def api_url(self) -> str:
        """API base URL from environment, config file, or the default."""
        return (
            os.environ.get(API_URL_ENV)
            or self._read_file().get(_API_URL_FIELD)
            or DEFAULT_API_URL
        )

    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return bool(self.api_key)

    def get_config_path(self) -> Path:
        """Get the path of the config file."""
        return self.config_file

    def save_api_key(self, api_key: str) -> None:
        """Persist the API key, keeping any other settings in the file.

        The file is created with owner-only permissions since it holds a
        credential.

        Args:
            api_key: API key to store
        """
        values = self._read_file()
        values[_API_KEY_FIELD] = api_key

        self.config_dir.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{key}={value}\n" for key, value in values.items())

        fd = os.open(self.config_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(self.config_file, 0o600)


config = Config()
