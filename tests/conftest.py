"""Shared fixtures: a session with a mocked API client, git and terminal."""

from unittest.mock import Mock

import pytest
from click.testing import CliRunner

from winnie.api.client import Client
from winnie.cli.main import cli
from winnie.cli.output import console
from winnie.cli.session import Session
from winnie.core.prompts import Prompter
from winnie.core.settings import Settings
from winnie.utils.cloudfile import Cloudfile
from winnie.utils.config import Config
from winnie.utils.git import GitRepository


class ScriptedPrompter(Prompter):
    """Prompter answering from prepared lists and recording every question."""

    def __init__(self, answers=(), secrets=()):
        super().__init__(console)
        self.answers = list(answers)
        self.secrets = list(secrets)
        self.questions = []

    def ask(self, text):
        self.questions.append(text)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    def ask_secret(self, text):
        self.questions.append(text)
        if not self.secrets:
            raise EOFError
        return self.secrets.pop(0)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    for name in ("WINNIE_API_URL", "WINNIE_ADMIN_URL", "WINNIE_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(env_file=tmp_path / ".env")
    settings.poll_interval = 0
    settings.poll_max_interval = 0
    return settings


@pytest.fixture
def client():
    client = Mock(spec=Client)
    client.token = "abc"
    return client


@pytest.fixture
def repository(tmp_path):
    repository = Mock(spec=GitRepository)
    repository.path = str(tmp_path)
    repository.is_repository.return_value = True
    repository.remote_exists.return_value = False
    repository.remote_for_url.return_value = None
    repository.user_email.return_value = None
    return repository


@pytest.fixture
def prompter():
    return ScriptedPrompter()


@pytest.fixture
def session(settings, client, repository, prompter, tmp_path):
    return Session(
        settings=settings,
        config=Config(str(tmp_path / "config")),
        client=client,
        cloudfile=Cloudfile(str(tmp_path)),
        repository=repository,
        prompter=prompter,
    )


@pytest.fixture
def cloudfile(session):
    """Write a Cloudfile declaring the given clouds."""
    def write(*code_names):
        session.cloudfile.path.write_text("".join(f"{code_name}:\n" for code_name in code_names))
    return write


@pytest.fixture
def invoke(session):
    """Run the CLI against the fixture session."""
    runner = CliRunner()

    def run(*args, input=None):
        return runner.invoke(cli, list(args), obj={"session": session}, input=input)
    return run
