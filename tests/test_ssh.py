"""Tests for SSH keys and operations."""

import base64
import hashlib
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from winnie.utils.ssh import SSHError, SSHOperations, SshKey


class TestSshKey:
    """Test the SshKey class."""

    def test_explicit_path(self, tmp_path):
        key_file = tmp_path / "id_rsa.pub"

        key = SshKey(str(key_file))

        assert key.path == key_file
        assert not key.exists()

    def test_default_path_when_none_exist(self):
        """Test the first default is used when no key exists."""
        with patch("pathlib.Path.exists", return_value=False):
            key = SshKey()

        assert key.path == Path("~/.ssh/id_rsa.pub").expanduser()

    def test_content_stripped(self, tmp_path):
        key_file = tmp_path / "id_ed25519.pub"
        key_file.write_text("ssh-ed25519 AAAA megan@laptop\n")

        assert SshKey(str(key_file)).content == "ssh-ed25519 AAAA megan@laptop"

    def test_content_missing_file(self, tmp_path):
        with pytest.raises(SSHError, match="Failed to read"):
            SshKey(str(tmp_path / "missing.pub")).content

    def test_fingerprint(self, tmp_path):
        """Test the MD5 fingerprint of the decoded key blob."""
        blob = b"\x00\x00\x00\x07ssh-rsa\x00\x01\x02"
        key_file = tmp_path / "id_rsa.pub"
        key_file.write_text(f"ssh-rsa {base64.b64encode(blob).decode()} megan@laptop\n")
        digest = hashlib.md5(blob).hexdigest()

        fingerprint = SshKey(str(key_file)).fingerprint

        assert fingerprint.replace(":", "") == digest
        assert len(fingerprint.split(":")) == 16

    @pytest.mark.parametrize("content", ["ssh-rsa", "ssh-rsa abc"])
    def test_fingerprint_invalid_key(self, tmp_path, content):
        key_file = tmp_path / "id_rsa.pub"
        key_file.write_text(content)

        with pytest.raises(SSHError, match="not a valid public key"):
            SshKey(str(key_file)).fingerprint


class TestSSHOperations:
    """Test SSH operations functionality."""

    def test_init_with_defaults(self):
        ssh_ops = SSHOperations("tunnel.example.com")

        assert ssh_ops.host == "tunnel.example.com"
        assert ssh_ops.port == 22
        assert ssh_ops.user == "root"

    def test_from_tunnel(self):
        """Test building from the API's tunnel description."""
        ssh_ops = SSHOperations.from_tunnel({"host": "tunnel.example.com", "port": "2222", "user": "foo"})

        assert ssh_ops.host == "tunnel.example.com"
        assert ssh_ops.port == 2222
        assert ssh_ops.user == "foo"

    @pytest.mark.parametrize("tunnel", [{"port": 22, "user": "foo"}, {"host": "h", "port": "x", "user": "foo"}])
    def test_from_tunnel_invalid(self, tunnel):
        with pytest.raises(SSHError, match="Invalid tunnel description"):
            SSHOperations.from_tunnel(tunnel)

    def test_build_ssh_command_basic(self):
        """Test building basic SSH command."""
        ssh_ops = SSHOperations("tunnel.example.com", 2222, "foo")

        cmd = ssh_ops._build_ssh_command()

        assert cmd == [
            "ssh",
            "-o", "StrictHostKeyChecking=no",
            "-o", "UserKnownHostsFile=/dev/null",
            "-o", "LogLevel=ERROR",
            "-o", "ConnectTimeout=10",
            "-o", "ServerAliveInterval=60",
            "-o", "ServerAliveCountMax=3",
            "-p", "2222",
            "foo@tunnel.example.com",
        ]

    def test_build_ssh_command_with_tty_and_command(self):
        ssh_ops = SSHOperations("tunnel.example.com")

        cmd = ssh_ops._build_ssh_command("start_console", tty=True)

        assert cmd[-3:] == ["-t", "root@tunnel.example.com", "start_console"]

    @patch("subprocess.run")
    def test_execute_interactive(self, mock_run):
        """Test interactive sessions return the SSH exit code."""
        mock_run.return_value = Mock(returncode=3)
        ssh_ops = SSHOperations("tunnel.example.com")

        assert ssh_ops.execute_interactive("dbconsole") == 3

        cmd = mock_run.call_args[0][0]
        assert "-t" in cmd
        assert cmd[-1] == "dbconsole"

    @patch("subprocess.run", side_effect=FileNotFoundError("ssh"))
    def test_execute_interactive_missing_ssh(self, mock_run):
        with pytest.raises(SSHError, match="Failed to start interactive SSH session"):
            SSHOperations("tunnel.example.com").execute_interactive()

    @patch("subprocess.run", side_effect=KeyboardInterrupt)
    def test_execute_interactive_interrupted(self, mock_run):
        assert SSHOperations("tunnel.example.com").execute_interactive() == 130
