"""SSH keys and interactive SSH sessions to cloud servers."""

import base64
import binascii
import hashlib
import logging
import subprocess
from pathlib import Path
from typing import Dict, Any, List, Optional


logger = logging.getLogger(__name__)


class SSHError(Exception):
    """SSH operation failed."""
    pass


class SshKey:
    """The user's public SSH key, uploaded at login and removed at logout."""

    DEFAULT_PATHS = (
        "~/.ssh/id_rsa.pub",
        "~/.ssh/id_ed25519.pub",
        "~/.ssh/id_ecdsa.pub",
    )

    def __init__(self, path: Optional[str] = None) -> None:
        """Initialize the key.

        Args:
            path: Path to the public key (first existing default if None)
        """
        self.path = Path(path).expanduser() if path else self._find_public_key()

    def _find_public_key(self) -> Path:
        for key_path in self.DEFAULT_PATHS:
            expanded_path = Path(key_path).expanduser()
            if expanded_path.exists():
                return expanded_path
        return Path(self.DEFAULT_PATHS[0]).expanduser()

    def exists(self) -> bool:
        return self.path.exists()

    @property
    def content(self) -> str:
        try:
            return self.path.read_text().strip()
        except OSError as e:
            raise SSHError(f"Failed to read {self.path}: {e}")

    @property
    def fingerprint(self) -> str:
        """MD5 fingerprint as printed by ``ssh-keygen -l -E md5``."""
        parts = self.content.split()
        if len(parts) < 2:
            raise SSHError(f"{self.path} is not a valid public key")
        try:
            blob = base64.b64decode(parts[1].encode("ascii"))
        except (binascii.Error, ValueError):
            raise SSHError(f"{self.path} is not a valid public key")
        digest = hashlib.md5(blob).hexdigest()
        return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


class SSHOperations:
    """Interactive SSH sessions to a cloud server reached through a tunnel."""

    def __init__(self, host: str, port: int = 22, user: str = "root") -> None:
        """Initialize SSH operations for a tunnel endpoint.

        Args:
            host: Tunnel host
            port: Tunnel port
            user: SSH user
        """
        self.host = host
        self.port = port
        self.user = user

    @classmethod
    def from_tunnel(cls, tunnel: Dict[str, Any]) -> "SSHOperations":
        """Build from the API's tunnel description ({host, port, user})."""
        try:
            return cls(tunnel["host"], int(tunnel.get("port", 22)), tunnel["user"])
        except (KeyError, TypeError, ValueError) as e:
            raise SSHError(f"Invalid tunnel description: {e}")

    def _build_ssh_command(self, command: Optional[str] = None, tty: bool = False) -> List[str]:
        """Build SSH command with proper options.

        Args:
            command: Command to execute (None for interactive session)
            tty: Whether to allocate a TTY

        Returns:
            SSH command as list of strings
        """
        ssh_cmd = ["ssh"]

        ssh_cmd.extend([
            "-o", "StrictHostKeyChecking=no",
            "-o", "UserKnownHostsFile=/dev/null",
            "-o", "LogLevel=ERROR",
            "-o", "ConnectTimeout=10",
            "-o", "ServerAliveInterval=60",
            "-o", "ServerAliveCountMax=3",
            "-p", str(self.port),
        ])

        if tty:
            ssh_cmd.append("-t")

        ssh_cmd.append(f"{self.user}@{self.host}")

        if command:
            ssh_cmd.append(command)

        return ssh_cmd

    def execute_interactive(self, command: Optional[str] = None) -> int:
        """Start an interactive SSH session.

        Args:
            command: Optional command to run in the interactive session

        Returns:
            Exit code of the SSH session

        Raises:
            SSHError: If SSH session fails to start
        """
        ssh_cmd = self._build_ssh_command(command, tty=True)
        logger.debug("Running %s", " ".join(ssh_cmd))
        try:
            result = subprocess.run(ssh_cmd)
            return result.returncode
        except OSError as e:
            raise SSHError(f"Failed to start interactive SSH session: {e}")
        except KeyboardInterrupt:
            return 130
