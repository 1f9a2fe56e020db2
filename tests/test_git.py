"""Tests for git operations."""

import subprocess
from unittest.mock import patch

import pytest

from winnie.utils.git import GitError, GitRepository


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


class TestGitRepository:
    """Test the GitRepository class."""

    @patch("subprocess.run")
    def test_is_repository(self, mock_run):
        mock_run.return_value = completed("true\n")

        assert GitRepository("/src/shop").is_repository()
        mock_run.assert_called_once_with(
            ["git", "rev-parse", "--is-inside-work-tree"], cwd="/src/shop", capture_output=True, text=True,
        )

    @patch("subprocess.run", side_effect=FileNotFoundError("git"))
    def test_is_repository_without_git(self, mock_run):
        assert not GitRepository("/src/shop").is_repository()

    @patch("subprocess.run")
    def test_add_remote_replaces_existing(self, mock_run):
        """Test an existing remote of the same name is removed first."""
        mock_run.side_effect = [completed("origin\nwinnie\n"), completed(), completed()]

        GitRepository("/src/shop").add_remote("winnie", "git@git.winniecloud.com:foo.git")

        commands = [c[0][0] for c in mock_run.call_args_list]
        assert commands == [
            ["git", "remote"],
            ["git", "remote", "rm", "winnie"],
            ["git", "remote", "add", "winnie", "git@git.winniecloud.com:foo.git"],
        ]

    @patch("subprocess.run")
    def test_remote_for_url(self, mock_run):
        mock_run.return_value = completed(
            "origin\tgit@github.com:megan/shop.git (fetch)\n"
            "winnie\tgit@git.winniecloud.com:foo.git (fetch)\n"
        )
        repository = GitRepository("/src/shop")

        assert repository.remote_for_url("git@git.winniecloud.com:foo.git") == "winnie"
        assert repository.remote_for_url("git@git.winniecloud.com:bar.git") is None

    @patch("subprocess.run")
    def test_failure_raises(self, mock_run):
        mock_run.return_value = completed(returncode=128, stderr="fatal: No such remote 'winnie'\n")

        with pytest.raises(GitError, match="No such remote"):
            GitRepository("/src/shop").remove_remote("winnie")

    @patch("subprocess.run")
    def test_user_email_unset(self, mock_run):
        mock_run.return_value = completed(returncode=1)

        assert GitRepository("/src/shop").user_email() is None
