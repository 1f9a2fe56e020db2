"""Per-user configuration and credential storage for the Winnie CLI."""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional


class ConfigError(Exception):
    """Base exception for configuration-related errors."""
    pass


class Config:
    """Per-user configuration directory for the Winnie CLI.

    Holds the API credentials in ~/.winnie/credentials.json. The file is
    always rewritten whole through a temporary file, so an interrupted
    command never leaves half-written credentials behind.
    """

    DEFAULT_CONFIG_DIR = "~/.winnie"
    CREDENTIALS_FILE = "credentials.json"

    def __init__(self, config_dir: Optional[str] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Custom configuration directory. Defaults to ~/.winnie
        """
        self.config_dir = Path(config_dir or os.path.expanduser(self.DEFAULT_CONFIG_DIR))
        self.credentials_file = self.config_dir / self.CREDENTIALS_FILE

    def _ensure_config_dir(self) -> None:
        """Ensure configuration directory exists with proper permissions."""
        try:
            self.config_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create config directory {self.config_dir}: {e}")

    def _load_json_file(self, file_path: Path) -> Dict[str, Any]:
        """Load JSON file, returning an empty dict when it doesn't exist.

        Raises:
            ConfigError: If file exists but cannot be parsed
        """
        if not file_path.exists():
            return {}

        try:
            data = json.loads(file_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load {file_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Failed to load {file_path}: expected a JSON object")
        return data

    def _save_json_file(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Atomically save data to a JSON file readable only by the owner.

        Raises:
            ConfigError: If save operation fails
        """
        self._ensure_config_dir()
        temp_path = file_path.with_suffix(file_path.suffix + ".tmp")
        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            temp_path.replace(file_path)
        except OSError as e:
            raise ConfigError(f"Failed to save {file_path}: {e}")

    def load_credentials(self) -> Dict[str, Any]:
        """Load stored credentials ({} when logged out)."""
        return self._load_json_file(self.credentials_file)

    def save_credentials(self, email: str, token: str) -> None:
        """Store the API token obtained at login.

        Raises:
            ValueError: If token is empty
            ConfigError: If save operation fails
        """
        if not token:
            raise ValueError("Token cannot be empty")
        self._save_json_file(self.credentials_file, {"email": email, "token": token})

    def clear_credentials(self) -> None:
        """Forget stored credentials."""
        try:
            self.credentials_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ConfigError(f"Failed to remove {self.credentials_file}: {e}")

    @property
    def token(self) -> Optional[str]:
        return self.load_credentials().get("token")

    @property
    def email(self) -> Optional[str]:
        return self.load_credentials().get("email")
