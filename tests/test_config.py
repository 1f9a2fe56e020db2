"""Tests for configuration management."""

import json
import os
import stat
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from winnie.core.settings import Settings
from winnie.utils.config import Config, ConfigError


class TestConfig:
    """Test the Config class."""

    def test_init_default_config_dir(self):
        """Test initialization with default config directory."""
        config = Config()

        assert config.config_dir == Path("~/.winnie").expanduser()
        assert config.credentials_file == config.config_dir / "credentials.json"

    def test_init_does_not_create_directory(self):
        """Test the directory is only created when saving."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(os.path.join(temp_dir, "winnie"))

            assert not config.config_dir.exists()

    def test_load_credentials_empty(self):
        """Test loading credentials when logged out."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(temp_dir)

            assert config.load_credentials() == {}
            assert config.token is None
            assert config.email is None

    def test_save_credentials(self):
        """Test saving credentials to an owner-only file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(os.path.join(temp_dir, "winnie"))

            config.save_credentials("megan@example.com", "abc")

            assert json.loads(config.credentials_file.read_text()) == {"email": "megan@example.com", "token": "abc"}
            assert stat.S_IMODE(config.credentials_file.stat().st_mode) == 0o600
            assert stat.S_IMODE(config.config_dir.stat().st_mode) == 0o700
            assert config.token == "abc"
            assert config.email == "megan@example.com"
            assert not config.credentials_file.with_suffix(".json.tmp").exists()

    def test_save_empty_token(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            with pytest.raises(ValueError, match="Token cannot be empty"):
                Config(temp_dir).save_credentials("megan@example.com", "")

    def test_load_invalid_json(self):
        """Test loading a corrupt credentials file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(temp_dir)
            config.credentials_file.write_text("{ invalid json")

            with pytest.raises(ConfigError, match="Failed to load"):
                config.load_credentials()

    def test_load_non_object(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(temp_dir)
            config.credentials_file.write_text("[]")

            with pytest.raises(ConfigError, match="expected a JSON object"):
                config.load_credentials()

    def test_clear_credentials(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(temp_dir)
            config.save_credentials("megan@example.com", "abc")

            config.clear_credentials()
            config.clear_credentials()

            assert not config.credentials_file.exists()

    def test_mkdir_failure(self):
        """Test saving fails when the directory can't be created."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = Config(os.path.join(temp_dir, "winnie"))

            with patch("pathlib.Path.mkdir", side_effect=OSError("Permission denied")):
                with pytest.raises(ConfigError, match="Failed to create config directory"):
                    config.save_credentials("megan@example.com", "abc")


class TestSettings:
    """Test the Settings class."""

    def test_defaults(self, tmp_path, monkeypatch):
        for name in ("WINNIE_API_URL", "WINNIE_ADMIN_URL", "WINNIE_POLL_TIMEOUT", "WINNIE_DEBUG"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(env_file=tmp_path / ".env")

        assert settings.api_url == "https://api.winniecloud.com/apiv2"
        assert settings.poll_timeout == 900.0
        assert settings.debug is False
        assert settings.billing_url("acme") == "https://admin.winniecloud.com/organizations/acme/edit"

    def test_env_file(self, tmp_path, monkeypatch):
        """Test .env values apply unless already set."""
        monkeypatch.setenv("WINNIE_API_URL", "")
        monkeypatch.setenv("WINNIE_POLL_INTERVAL", "5")
        env_file = tmp_path / ".env"
        env_file.write_text('# local API\nWINNIE_API_URL="http://localhost:3000/apiv2/"\nWINNIE_POLL_INTERVAL=1\n')

        settings = Settings(env_file=env_file)

        assert settings.api_url == "http://localhost:3000/apiv2"
        assert settings.poll_interval == 5.0

    def test_invalid_number(self, tmp_path, monkeypatch):
        monkeypatch.setenv("WINNIE_HTTP_TIMEOUT", "soon")

        with pytest.raises(ValueError, match="WINNIE_HTTP_TIMEOUT must be a number"):
            Settings(env_file=tmp_path / ".env")
