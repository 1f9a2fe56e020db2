"""CLI settings and environment variables."""

import logging
import os
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


class Settings:
    """Process-wide settings for the Winnie CLI.

    Read once when the root command starts and handed to everything that
    needs it through the session.
    """

    def __init__(self, env_file: Optional[Path] = None) -> None:
        """Initialize settings from environment variables.

        Args:
            env_file: Optional .env file. Defaults to ./.env
        """
        self._load_env_file(env_file or Path.cwd() / ".env")

        self.api_url = os.getenv("WINNIE_API_URL", "https://api.winniecloud.com/apiv2").rstrip("/")
        self.admin_url = os.getenv("WINNIE_ADMIN_URL", "https://admin.winniecloud.com").rstrip("/")
        self.config_dir = os.path.expanduser(os.getenv("WINNIE_CONFIG_DIR", "~/.winnie"))

        self.http_timeout = _float_env("WINNIE_HTTP_TIMEOUT", 30.0)

        # Deployment polling bounds
        self.poll_interval = _float_env("WINNIE_POLL_INTERVAL", 2.0)
        self.poll_max_interval = _float_env("WINNIE_POLL_MAX_INTERVAL", 10.0)
        self.poll_timeout = _float_env("WINNIE_POLL_TIMEOUT", 900.0)

        self.debug = os.getenv("WINNIE_DEBUG", "false").lower() in ("true", "1", "yes")

    def _load_env_file(self, env_file: Path) -> None:
        """Load a .env file; variables already set in the environment win."""
        if not env_file.exists():
            return
        try:
            with open(env_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        key = key.strip()
                        value = value.strip().strip('"').strip("'")
                        if key and not os.getenv(key):
                            os.environ[key] = value
        except OSError as e:
            logger.debug("Ignoring unreadable env file %s: %s", env_file, e)

    def billing_url(self, organization_name: str) -> str:
        """Page where an organization's billing details are edited."""
        return f"{self.admin_url}/organizations/{organization_name}/edit"

