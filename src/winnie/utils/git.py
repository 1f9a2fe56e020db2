"""Git operations on the current project repository."""

import logging
import os
import subprocess
from typing import List, Optional


logger = logging.getLogger(__name__)


class GitError(Exception):
    """Git command failed."""
    pass


class GitRepository:
    """Thin wrapper over the ``git`` binary for one working directory."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or os.getcwd()

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        cmd: List[str] = ["git", *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.path)
        try:
            result = subprocess.run(cmd, cwd=self.path, capture_output=True, text=True)
        except OSError as e:
            raise GitError(f"Failed to run git: {e}")
        if check and result.returncode != 0:
            raise GitError(result.stderr.strip() or f"git {' '.join(args)} failed")
        return result

    def is_repository(self) -> bool:
        try:
            result = self._run("rev-parse", "--is-inside-work-tree", check=False)
        except GitError:
            return False
        return result.returncode == 0 and result.stdout.strip() == "true"

    def remote_exists(self, name: str) -> bool:
        result = self._run("remote", check=False)
        return name in result.stdout.split()

    def add_remote(self, name: str, url: str) -> None:
        """Add a remote, replacing an existing one with the same name."""
        if self.remote_exists(name):
            self._run("remote", "rm", name)
        self._run("remote", "add", name, url)

    def remove_remote(self, name: str) -> None:
        self._run("remote", "rm", name)

    def remote_for_url(self, url: str) -> Optional[str]:
        """Name of the remote pointing at ``url``, if any."""
        result = self._run("remote", "-v", check=False)
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[1] == url:
                return parts[0]
        return None

    def fetch(self, remote: str) -> None:
        self._run("fetch", remote)

    def user_email(self) -> Optional[str]:
        result = self._run("config", "--get", "user.email", check=False)
        return result.stdout.strip() or None
