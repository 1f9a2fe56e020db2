"""Per-invocation session handed to every command."""

import logging
import sys
from dataclasses import dataclass
from typing import Callable, NoReturn, Optional

import click

from winnie.api import APIError
from winnie.api.client import Client
from winnie.core.deployment import DeploymentPoller
from winnie.core.errors import ErrorKind, Forbidden, GatewayTimeout, Locked, NotFound, Unauthorized, \
    ValidationFailed, classify
from winnie.core.models import Cloud
from winnie.core.prompts import Prompter
from winnie.core.resolver import resolve
from winnie.core.settings import Settings
from winnie.utils.cloudfile import Cloudfile
from winnie.utils.config import Config
from winnie.utils.git import GitRepository
from .narratives import Narrative, locked
from .output import abort, console, fail, print_clouds, say


logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "You are not logged in. To log in use: `winnie login`"


@dataclass
class Session:
    """Everything a command needs, built once when the CLI starts."""

    settings: Settings
    config: Config
    client: Client
    cloudfile: Cloudfile
    repository: GitRepository
    prompter: Prompter

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "Session":
        settings = settings or Settings()
        config = Config(settings.config_dir)
        return cls(
            settings=settings,
            config=config,
            client=Client(settings.api_url, token=config.token, timeout=settings.http_timeout),
            cloudfile=Cloudfile(),
            repository=GitRepository(),
            prompter=Prompter(console),
        )

    def poller(self) -> DeploymentPoller:
        return DeploymentPoller(
            self.client,
            interval=self.settings.poll_interval,
            max_interval=self.settings.poll_max_interval,
            timeout=self.settings.poll_timeout,
        )


def get_session(ctx: click.Context) -> Session:
    return ctx.obj["session"]


def require_login(session: Session) -> None:
    if not session.client.token:
        fail(NOT_LOGGED_IN)


def require_git_repository(session: Session) -> None:
    if not session.repository.is_repository():
        fail("Current directory is not a git repository. "
             "You need to initialize repository with `git init`.")


def command_name() -> str:
    """The running command as typed after ``winnie``, e.g. ``deploys show``."""
    ctx = click.get_current_context()
    parts = ctx.command_path.split(" ", 1)
    return parts[1] if len(parts) > 1 else parts[0]


def resolve_cloud(session: Session, explicit: Optional[str]) -> str:
    """Target cloud of a cloud-scoped command; exits when it is ambiguous."""
    target = resolve(session.cloudfile.clouds(), explicit)
    if isinstance(target, str):
        logger.debug("Resolved target cloud %s", target)
        return target

    command = command_name()
    if target.multiple:
        say("You have multiple clouds in Cloudfile.", style="red")
        say(f"Select cloud using `winnie {command} --cloud {target.candidates[0]}`")
        say("Available clouds:")
        for code_name in target.candidates:
            say(f" * {code_name}")
        sys.exit(1)

    say("You have to specify cloud.", style="red")
    say(f"Select cloud using `winnie {command} --cloud CLOUD_NAME`")
    try:
        clouds = [Cloud.from_api(data) for data in session.client.apps()]
    except APIError as e:
        exit_on_api_error(e)
    print_clouds(clouds)
    sys.exit(1)


def exit_on_api_error(
    error: APIError,
    code_name: Optional[str] = None,
    narrate: Optional[Callable[[ErrorKind], Narrative]] = None,
) -> NoReturn:
    """Render a failed API call and exit 1, or re-raise it.

    The command's own ``narrate`` is consulted first; then the narratives
    every command shares. Kinds nobody renders are re-raised unchanged.
    """
    kind = classify(error)
    logger.debug("API call failed with %r", kind)

    lines = narrate(kind) if narrate else None
    if lines is not None:
        abort(lines)

    if isinstance(kind, Unauthorized):
        fail(NOT_LOGGED_IN)
    if isinstance(kind, GatewayTimeout):
        fail("Winnie Cloud is temporarily unavailable, please try again later")
    if isinstance(kind, Locked):
        abort(locked(kind))
    if isinstance(kind, NotFound) and kind.resource == "cloud" and code_name:
        fail(f"You have no access to '{code_name}' cloud defined in Cloudfile")
    if isinstance(kind, Forbidden) and code_name:
        fail(kind.message or f"You have no access to '{code_name}' cloud")
    if isinstance(kind, ValidationFailed):
        fail(*kind.messages())
    raise error
