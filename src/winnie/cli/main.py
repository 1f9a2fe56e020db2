"""Main CLI interface for Winnie Cloud."""

import logging
import shlex
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn
from rich.table import Table

from winnie import __version__
from winnie.api import APIError
from winnie.core.deployment import PollTimeoutError
from winnie.core.errors import Unauthorized, ValidationFailed, classify
from winnie.core.models import (
    DATABASE_CHOICES,
    SIZES,
    Backup,
    Cloud,
    Deployment,
    Member,
    Organization,
    Region,
    Zone,
    code_name_from_directory,
    parse_databases,
)
from winnie.core.prompts import (
    ask_for_code_name,
    ask_for_databases,
    ask_for_email,
    ask_for_new_organization,
    ask_for_organization,
    ask_for_password,
    ask_for_region,
    ask_for_remote_name,
    confirm_by_name,
)
from winnie.utils.cloudfile import CloudfileError
from winnie.utils.config import ConfigError
from winnie.utils.git import GitError
from winnie.utils.ssh import SSHError, SSHOperations, SshKey
from .narratives import (
    add_failure,
    backup_download_failure,
    backup_failure,
    db_server_failure,
    deploy_log_hint,
    invitation_failure,
    login_failure,
    redeploy_failure,
    start_failure,
    statistics_failure,
    stop_failure,
    tunnel_failure,
)
from .output import console, deployment_outcome, fail, print_clouds, say, setup_logging
from .session import Session, exit_on_api_error, get_session, require_git_repository, require_login, resolve_cloud


logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "winnie"
HELP_ADD = "Try `winnie help add` for more information"

cloud_option = click.option("--cloud", "-c", help="Specify cloud")
server_option = click.option("--server", "-s", help="Specify virtual server, it's random by default")


class WinnieGroup(click.Group):
    """Root group turning interrupts and local failures into exit status 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except (KeyboardInterrupt, EOFError, click.Abort):
            say()
            say("Operation cancelled by user", style="yellow")
            sys.exit(1)
        except PollTimeoutError as e:
            fail(f"Timed out waiting for cloud {e.code_name} after {e.timeout:.0f}s.",
                 f"Check {deploy_log_hint(e.code_name)} for the deployment progress")
        except (CloudfileError, ConfigError, GitError, SSHError) as e:
            say(f"✗ {e}", style="red")
            if ctx.obj and ctx.obj.get("debug"):
                console.print_exception()
            sys.exit(1)


@click.group(cls=WinnieGroup)
@click.version_option(version=__version__)
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Winnie - command line interface to Winnie Cloud.

    Create, deploy and manage your clouds, organizations and backups.
    """
    ctx.ensure_object(dict)
    if "session" not in ctx.obj:
        ctx.obj["session"] = Session.create()
    session = get_session(ctx)
    ctx.call_on_close(session.client.close)

    debug = debug or session.settings.debug
    ctx.obj["debug"] = debug
    setup_logging(debug)

    if debug:
        console.print("[dim]Debug mode enabled[/dim]")


@cli.command(name="help")
@click.argument("command_name", required=False)
@click.pass_context
def help_command(ctx: click.Context, command_name: Optional[str]) -> None:
    """Describe available commands or one specific command."""
    root = ctx.parent
    if not command_name:
        click.echo(root.get_help())
        return

    command = cli.get_command(root, command_name)
    if command is None:
        fail(f"Could not find command \"{command_name}\".")
    with click.Context(command, info_name=command_name, parent=root) as command_ctx:
        click.echo(command.get_help(command_ctx))


# Account

@cli.command()
@click.argument("email", required=False)
@click.option("--key", "key_path", help="Path to your public SSH key")
@click.pass_context
def register(ctx: click.Context, email: Optional[str], key_path: Optional[str]) -> None:
    """Register new account."""
    session = get_session(ctx)
    prompter = session.prompter
    key = SshKey(key_path)

    if email:
        say(f"Registering with email: {email}")
    else:
        email = ask_for_email(prompter, session.repository.user_email())
    if not email:
        fail("Email can't be blank, please try again")

    password = ask_for_password(prompter)
    if not prompter.confirm("Do you accept the Terms of Service of Winnie Cloud (yes/no): "):
        fail("You must accept the Terms of Service to use Winnie Cloud")

    ssh_key = key.content if key.exists() else None
    if ssh_key:
        say(f"Uploading your public SSH key from {key.path}")
    try:
        session.client.register(email, password, ssh_key)
    except APIError as e:
        exit_on_api_error(e)

    say("Successfully registered!", style="green")
    say("Check you mailbox for email address confirmation", style="green")


@cli.command()
@click.argument("email", required=False)
@click.option("--key", "key_path", help="Path to your public SSH key")
@click.pass_context
def login(ctx: click.Context, email: Optional[str], key_path: Optional[str]) -> None:
    """Log into Winnie Cloud."""
    session = get_session(ctx)
    client = session.client
    key = SshKey(key_path)

    if not key.exists():
        fail(f"No such file or directory - {key.path}", "Use ssh-keygen to generate ssh key pair")

    email = email or ask_for_email(session.prompter, session.repository.user_email())
    if not email:
        fail("Email can't be blank, please try again")
    password = ask_for_password(session.prompter, with_confirmation=False)

    try:
        token = client.authorize(email, password)
    except APIError as e:
        exit_on_api_error(e, narrate=login_failure)
    session.config.save_credentials(email, token)

    _upload_ssh_key(session, key)
    say("Login successful", style="green")
    print_clouds(_fetch_clouds(session))


def _upload_ssh_key(session: Session, key: SshKey) -> None:
    """Upload the key unless the account already has it; a rejected key logs out again."""
    client = session.client
    try:
        if client.ssh_key_uploaded(key.fingerprint):
            say(f"Your SSH key from {key.path} is already uploaded")
            return
        say(f"Uploading your public SSH key from {key.path}")
        client.add_ssh_key(key.content)
    except APIError as e:
        kind = classify(e)
        if not isinstance(kind, ValidationFailed):
            exit_on_api_error(e)
        for message in kind.messages():
            say(message, style="red")
        session.config.clear_credentials()
        try:
            client.logout()
        except APIError as logout_error:
            logger.debug("Ignoring failed logout after rejected key: %s", logout_error)
        sys.exit(1)


@cli.command()
@click.option("--key", "key_path", help="Path to your public SSH key")
@click.pass_context
def logout(ctx: click.Context, key_path: Optional[str]) -> None:
    """Logout from Winnie Cloud."""
    session = get_session(ctx)
    require_login(session)
    client = session.client
    key = SshKey(key_path)

    try:
        if key.exists() and client.ssh_key_uploaded(key.fingerprint):
            client.delete_ssh_key(key.fingerprint)
            say("Your public SSH key has been removed from Winnie Cloud")
        client.logout()
    except APIError as e:
        # An expired session is as good as logged out
        if not isinstance(classify(e), Unauthorized):
            exit_on_api_error(e)

    session.config.clear_credentials()
    say("You have been successfully logged out")


# Clouds

def _fetch_clouds(session: Session) -> List[Cloud]:
    try:
        return [Cloud.from_api(data) for data in session.client.apps()]
    except APIError as e:
        exit_on_api_error(e)


def _fetch_cloud(session: Session, code_name: str) -> Tuple[Cloud, Dict[str, Any]]:
    try:
        data = session.client.app(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name)
    return Cloud.from_api(data), data


@cli.command(name="list")
@click.pass_context
def list_clouds(ctx: click.Context) -> None:
    """List available clouds."""
    session = get_session(ctx)
    require_login(session)
    print_clouds(_fetch_clouds(session))


cli.add_command(list_clouds, name="status")


@cli.command()
@click.option("--code-name", "-c", help="Unique code-name of your cloud")
@click.option("--databases", "-d", multiple=True, help=f"List of databases of your choice ({', '.join(DATABASE_CHOICES)})")
@click.option("--size", "-s", type=click.Choice(SIZES), help="Server size")
@click.option("--redeem-code", "-r", help="Redeem code for free credits")
@click.option("--referral-code", help="Referral code for additional credit")
@click.option("--organization", "-o", help="Add cloud to existing organization")
@click.option("--region", help="Create cloud in given region")
@click.option("--zone", hidden=True, help="Create cloud in given zone")
@click.pass_context
def add(
    ctx: click.Context,
    code_name: Optional[str],
    databases: Tuple[str, ...],
    size: Optional[str],
    redeem_code: Optional[str],
    referral_code: Optional[str],
    organization: Optional[str],
    region: Optional[str],
    zone: Optional[str],
) -> None:
    """Add a new cloud."""
    session = get_session(ctx)
    prompter = session.prompter

    selected_databases = None
    if databases:
        selected_databases = parse_databases(" ".join(databases))
        if selected_databases is None:
            fail(f"Unknown database kind. Supported are: {', '.join(DATABASE_CHOICES)}", HELP_ADD)
    if region and zone:
        fail("Only one of --region and --zone can be given", HELP_ADD)

    require_login(session)
    require_git_repository(session)

    code_name = code_name or ask_for_code_name(prompter, code_name_from_directory(session.repository.path))
    if selected_databases is None:
        selected_databases = ask_for_databases(prompter)
    try:
        if not organization:
            organization = ask_for_organization(prompter, session.client, code_name, redeem_code, referral_code)
    except APIError as e:
        exit_on_api_error(e)
    placement = Zone(zone) if zone else Region(region or ask_for_region(prompter))

    try:
        cloud = Cloud(
            code_name=code_name,
            organization_name=organization,
            placement=placement,
            databases=tuple(selected_databases),
            size=size or "small",
        )
    except ValueError as e:
        fail(str(e), HELP_ADD)

    try:
        response = session.client.create_app(cloud.to_payload())
    except APIError as e:
        exit_on_api_error(e, narrate=lambda kind: add_failure(kind, cloud))
    created = Cloud.from_api({**cloud.to_payload(), **(response or {})})

    say(f"Cloud '{cloud.code_name}' created in '{cloud.organization_name}' organization", style="green")
    say()

    say("Creating Cloudfile", style="green")
    session.cloudfile.add(cloud)

    remote = DEFAULT_REMOTE
    if created.git_url:
        remote = ask_for_remote_name(prompter, session.repository.remote_exists, DEFAULT_REMOTE)
        say(f"Running: git remote add {remote} {created.git_url}")
        session.repository.add_remote(remote, created.git_url)

    if created.credit > 0 or not created.details_present:
        say()
        say("Billing information", style="green")
        if created.credit > 0:
            say(f"{int(created.credit)} Euro credit remaining.")
        if not created.details_present:
            say("Remember to provide billing details before trial ends.")
            say(session.settings.billing_url(cloud.organization_name))

    say()
    say("Project is now configured for use with Winnie Cloud:", style="green")
    say("You can review changes using", style="green")
    say("  git status")
    say()
    say("When you make sure all settings are correct, add changes to your repository:", style="green")
    say("  git add .")
    say('  git commit -m "Application added to Winnie Cloud"')
    say()
    say("Deploy to your cloud using:", style="green")
    say(f"  git push {remote} master")


@cli.command()
@cloud_option
@click.pass_context
def info(ctx: click.Context, cloud: Optional[str]) -> None:
    """Show basic information about cloud."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    details, _ = _fetch_cloud(session, code_name)

    say(f"Cloud {code_name}:", style="bold")
    if details.placement is not None:
        say(f"  {details.placement.flag.capitalize()}: {details.placement.name}")
    state = details.state_description or details.state or "unknown"
    if details.deploy_failed:
        state += f" (deployment log: `winnie deploys show last -c {code_name}`)"
    say(f"  State: {state}")

    git_info = details.git_info
    if git_info.get("deployed_commit_sha"):
        say(f"  Deployed commit sha: {git_info['deployed_commit_sha']}")
        say(f"  Deployed commit message: {git_info.get('deployed_commit_message', '')}")
        say(f"  Deployed by: {git_info.get('deployed_push_author', '')}")
    if details.git_url:
        say(f"  Repository URL: {details.git_url}")
    if details.web_server_ip:
        say(f"  Web server IP: {', '.join(details.web_server_ip)}")

    try:
        statistics = session.client.statistics(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=statistics_failure)
    _print_statistics(statistics)


def _print_statistics(statistics: List[Dict[str, Any]]) -> None:
    if not statistics:
        return
    say("  Statistics:")
    for server in statistics:
        load = server.get("load") or {}
        cpu = server.get("cpu") or {}
        memory = server.get("memory") or {}
        swap = server.get("swap") or {}
        say(f"    {server.get('name')}:")
        say(f"      Load average: 1m: {load.get('avg01')}, 5m: {load.get('avg05')}, 15m: {load.get('avg15')}")
        say(f"      CPU: {cpu.get('wait')}%, MEM: {memory.get('percent')}%, SWAP: {swap.get('percent')}%")


def _deployment_id(response: Dict[str, Any]) -> str:
    return str(response["deployment"]["id"])


def _watch_deployment(session: Session, code_name: str, response: Dict[str, Any]) -> Deployment:
    """Poll the deployment started by ``response``, printing its messages."""
    try:
        return session.poller().poll(
            code_name,
            _deployment_id(response),
            on_message=lambda message: say(f" ---> {message}", style="green"),
        )
    except APIError as e:
        exit_on_api_error(e, code_name)


def _billing_url(session: Session, code_name: str) -> str:
    details, _ = _fetch_cloud(session, code_name)
    return session.settings.billing_url(details.organization_name or "")


@cli.command()
@cloud_option
@click.pass_context
def start(ctx: click.Context, cloud: Optional[str]) -> None:
    """Start the cloud."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)

    try:
        response = session.client.start_cloud(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=lambda kind: start_failure(
            kind, code_name, DEFAULT_REMOTE, lambda: _billing_url(session, code_name)))

    say(f"Starting cloud {code_name}.", style="green")
    deployment = _watch_deployment(session, code_name, response)
    deployment_outcome("Starting cloud", code_name, deployment.succeeded)


@cli.command()
@cloud_option
@click.pass_context
def stop(ctx: click.Context, cloud: Optional[str]) -> None:
    """Shutdown the cloud."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)

    if not session.prompter.confirm(f"Are you sure you want to shut down '{code_name}' cloud (yes/no): "):
        fail("Operation cancelled by user")
    say()

    try:
        response = session.client.stop_cloud(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=lambda kind: stop_failure(kind, code_name))

    deployment = _watch_deployment(session, code_name, response)
    deployment_outcome("Stopping cloud", code_name, deployment.succeeded)


@cli.command()
@cloud_option
@click.pass_context
def redeploy(ctx: click.Context, cloud: Optional[str]) -> None:
    """Redeploy application."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)

    try:
        response = session.client.redeploy(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=lambda kind: redeploy_failure(kind, code_name))

    say(f"Redeploying your application for cloud '{code_name}'", style="green")
    deployment = _watch_deployment(session, code_name, response)
    deployment_outcome("Cloud redeploy", code_name, deployment.succeeded)


@cli.command()
@cloud_option
@click.pass_context
def setup(ctx: click.Context, cloud: Optional[str]) -> None:
    """Set up git remotes for deployment on Winnie Cloud."""
    session = get_session(ctx)
    require_login(session)
    require_git_repository(session)
    code_name = resolve_cloud(session, cloud)
    details, _ = _fetch_cloud(session, code_name)
    repository = session.repository
    if not details.git_url:
        fail(f"Cloud {code_name} has no git repository yet")

    say(f"Setting up {code_name} cloud", style="green")
    remote = ask_for_remote_name(session.prompter, repository.remote_exists, DEFAULT_REMOTE)
    say(f"Running: git remote add {remote} {details.git_url}")
    repository.add_remote(remote, details.git_url)
    say(f"Running: git fetch {remote}")
    repository.fetch(remote)
    say("Your application is set up.", style="green")


@cli.command()
@cloud_option
@click.pass_context
def delete(ctx: click.Context, cloud: Optional[str]) -> None:
    """Delete the cloud."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)

    say("You are going to:")
    say(f" * remove all files stored in the persistent storage for {code_name},")
    say(f" * remove all database data for {code_name},")
    say(f" * remove {code_name} cloud from Winnie Cloud")
    say()
    say("This action is permanent and can not be undone.", style="red")
    say()
    if not confirm_by_name(session.prompter, code_name):
        fail("The name does not match. Operation aborted.")

    details, _ = _fetch_cloud(session, code_name)
    try:
        session.client.delete_app(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name)
    say("Scheduling application delete - done")

    repository = session.repository
    remote = None
    if details.git_url and repository.is_repository():
        remote = repository.remote_for_url(details.git_url)
    if remote:
        repository.remove_remote(remote)
        say("Removing git remote - done")
    else:
        say("Missing git remote")


@cli.command(name="open")
@cloud_option
@click.pass_context
def open_cloud(ctx: click.Context, cloud: Optional[str]) -> None:
    """Open application page in browser."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    _, data = _fetch_cloud(session, code_name)

    url = f"http://{data.get('domain') or code_name + '.winnie.io'}"
    say(f"Opening {url}")
    click.launch(url)


# Remote consoles

def _run_remote(
    ctx: click.Context,
    cloud: Optional[str],
    server: Optional[str],
    kind: str,
    label: str,
    command: Optional[str] = None,
    database: bool = False,
) -> None:
    """Open an interactive SSH session on one of the cloud's virtual servers."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)

    fetch = session.client.configured_db_server if database else session.client.tunnel
    narrate = db_server_failure if database else tunnel_failure
    try:
        tunnel = fetch(code_name, kind, server)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=lambda error_kind: narrate(error_kind, code_name, label, server))

    returncode = SSHOperations.from_tunnel(tunnel).execute_interactive(command)
    if returncode:
        sys.exit(returncode)


@cli.command(name="console")
@cloud_option
@server_option
@click.pass_context
def remote_console(ctx: click.Context, cloud: Optional[str], server: Optional[str]) -> None:
    """Open application console."""
    _run_remote(ctx, cloud, server, "console", "console", command="start_console")


@cli.command()
@cloud_option
@server_option
@click.pass_context
def ssh(ctx: click.Context, cloud: Optional[str], server: Optional[str]) -> None:
    """Log into virtual server."""
    _run_remote(ctx, cloud, server, "ssh", "ssh console")


@cli.command()
@cloud_option
@server_option
@click.pass_context
def dbconsole(ctx: click.Context, cloud: Optional[str], server: Optional[str]) -> None:
    """Run rails dbconsole."""
    _run_remote(ctx, cloud, server, "db_server", "dbconsole", command="dbconsole", database=True)


@cli.command()
@cloud_option
@server_option
@click.pass_context
def mongoconsole(ctx: click.Context, cloud: Optional[str], server: Optional[str]) -> None:
    """Run MongoDB console."""
    _run_remote(ctx, cloud, server, "mongodb", "MongoDB console", command="mongo", database=True)


@cli.command(name="redis-cli")
@cloud_option
@server_option
@click.pass_context
def redis_cli(ctx: click.Context, cloud: Optional[str], server: Optional[str]) -> None:
    """Run redis-cli."""
    _run_remote(ctx, cloud, server, "redis", "redis-cli", command="redis-cli", database=True)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("task", nargs=-1, required=True, type=click.UNPROCESSED)
@cloud_option
@server_option
@click.pass_context
def rake(ctx: click.Context, task: Tuple[str, ...], cloud: Optional[str], server: Optional[str]) -> None:
    """Run rake task."""
    _run_remote(ctx, cloud, server, "rake", "rake task", command=f"rake_runner {shlex.quote(' '.join(task))}")


# Deployment logs

@cli.group(name="deploys")
def deploys_group() -> None:
    """View deploy logs."""
    pass


@deploys_group.command(name="list")
@cloud_option
@click.pass_context
def deploys_list(ctx: click.Context, cloud: Optional[str]) -> None:
    """Lists deploy logs."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    try:
        logs = session.client.deploy_logs(code_name)
    except APIError as e:
        exit_on_api_error(e, code_name)

    if not logs:
        say("No deploy logs available")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("ID", style="cyan")
    table.add_column("Date", style="dim")
    table.add_column("Author")
    table.add_column("Status")
    for log in logs:
        status = "[red]failed[/red]" if log.get("failed") else "[green]succeeded[/green]"
        table.add_row(str(log.get("id", "")), str(log.get("created_at", "")), log.get("author") or "", status)

    say("Available deploy logs", style="green")
    console.print(table)


@deploys_group.command(name="show")
@click.argument("log_id", default="last")
@cloud_option
@click.pass_context
def deploys_show(ctx: click.Context, log_id: str, cloud: Optional[str]) -> None:
    """Show specific deploy log (the last one by default)."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    try:
        log = session.client.deploy_log(code_name, log_id)
    except APIError as e:
        exit_on_api_error(e, code_name)

    say(f"Log for deploy done on {log.get('created_at', 'unknown date')}", style="green")
    if log.get("author"):
        say(f"  Author: {log['author']}")
    if log.get("commit_sha"):
        say(f"  Commit: {log['commit_sha']}")
    say()
    for message in log.get("messages") or ():
        say(f" ---> {message}")
    if log.get("failed"):
        say("Deployment failed", style="red")


# Organizations and collaborators

@cli.group(name="organization")
def organization_group() -> None:
    """View organizations."""
    pass


@organization_group.command(name="list")
@click.pass_context
def organization_list(ctx: click.Context) -> None:
    """Lists organizations."""
    session = get_session(ctx)
    require_login(session)
    try:
        organizations = [Organization.from_api(data) for data in session.client.organizations()]
    except APIError as e:
        exit_on_api_error(e)

    if not organizations:
        say("You have no organizations yet", style="green")
        return

    say("You have access to the following organizations and clouds:", style="green")
    for organization in organizations:
        say(f"  {organization.name}", style="bold")
        if not organization.apps:
            say("    no clouds")
        for row in _organization_rows(organization):
            say(row)


def _organization_rows(organization: Organization) -> List[str]:
    width = max((len(app.code_name) for app in organization.apps), default=0)
    return [f"    {app.code_name.ljust(width)}  |  {app.state_description or app.state or ''}"
            for app in organization.apps]


@organization_group.command(name="add")
@click.option("--redeem-code", "-r", help="Redeem code for free credits")
@click.option("--referral-code", help="Referral code for additional credit")
@click.pass_context
def organization_add(ctx: click.Context, redeem_code: Optional[str], referral_code: Optional[str]) -> None:
    """Add a new organization."""
    session = get_session(ctx)
    require_login(session)
    default_name = code_name_from_directory(session.repository.path).rsplit("-production", 1)[0]
    try:
        ask_for_new_organization(session.prompter, session.client, default_name, redeem_code, referral_code)
    except APIError as e:
        exit_on_api_error(e)


@cli.group(name="user")
def user_group() -> None:
    """Manage collaborators."""
    pass


@user_group.command(name="list")
@click.pass_context
def user_list(ctx: click.Context) -> None:
    """List users with access to organizations."""
    session = get_session(ctx)
    require_login(session)
    try:
        organizations = [Organization.from_api(data) for data in session.client.organizations()]
        members = {org.name: [Member.from_api(m) for m in session.client.members(org.name)]
                   for org in organizations}
    except APIError as e:
        exit_on_api_error(e)

    say("Organizations with users:", style="green")
    for organization_name, organization_members in members.items():
        say(f"  {organization_name}", style="bold")
        for member in organization_members:
            role = "owner" if member.owner else "member"
            suffix = "" if member.active else " (invited)"
            say(f"    {member.email} ({role}){suffix}")


@user_group.command(name="add")
@click.argument("email", required=False)
@click.option("--organization", "-o", required=True, help="Specify organization")
@click.option("--owner", is_flag=True, help="Give new user owner rights")
@click.pass_context
def user_add(ctx: click.Context, email: Optional[str], organization: str, owner: bool) -> None:
    """Add new user to organization."""
    session = get_session(ctx)
    require_login(session)
    email = email or ask_for_email(session.prompter)
    if not email:
        fail("Email can't be blank, please try again")

    try:
        session.client.send_invitation(organization, email, owner)
    except APIError as e:
        exit_on_api_error(e, narrate=lambda kind: invitation_failure(kind, organization))
    say(f"Sending invitation to {email} to work on {organization} organization", style="green")


# Backups

@cli.group(name="backup")
def backup_group() -> None:
    """Manage database backups."""
    pass


@backup_group.command(name="list")
@cloud_option
@click.pass_context
def backup_list(ctx: click.Context, cloud: Optional[str]) -> None:
    """List available database backups."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    try:
        backups = [Backup.from_api(data) for data in session.client.database_backups(code_name)]
    except APIError as e:
        exit_on_api_error(e, code_name)

    if not backups:
        say("No database backups available")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Filename", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Size", style="green")
    table.add_column("State", style="dim")
    for backup in backups:
        table.add_row(backup.filename, backup.kind or "", backup.human_size or str(backup.size), backup.state or "")

    say(f"Available backups for {code_name}:", style="green")
    console.print(table)


@backup_group.command(name="create")
@click.argument("kind", required=False, type=click.Choice(DATABASE_CHOICES[:-1]))
@cloud_option
@click.pass_context
def backup_create(ctx: click.Context, kind: Optional[str], cloud: Optional[str]) -> None:
    """Create backup of given database (all databases by default)."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    try:
        session.client.request_backup(code_name, kind)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=backup_failure)
    say("Backup requested. It can take up to several minutes for the backup process to finish.", style="green")


@backup_group.command(name="get")
@click.argument("filename", default="last")
@cloud_option
@click.pass_context
def backup_get(ctx: click.Context, filename: str, cloud: Optional[str]) -> None:
    """Download database backup (the last one by default)."""
    session = get_session(ctx)
    require_login(session)
    code_name = resolve_cloud(session, cloud)
    client = session.client

    try:
        backups = [Backup.from_api(data) for data in client.database_backups(code_name)]
        if filename == "last":
            if not backups:
                fail("No database backups available")
            backup = backups[-1]
        else:
            backup = next((b for b in backups if b.filename == filename), Backup(filename))
        url = client.download_backup_url(code_name, backup.filename)
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=backup_download_failure)

    destination = Path.cwd() / backup.filename
    say(f"Downloading backup to {destination}", style="green")
    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(backup.filename, total=backup.size or None)
            client.download_file(
                url,
                destination,
                on_progress=lambda done, total: progress.update(task, completed=done, total=total),
            )
    except APIError as e:
        exit_on_api_error(e, code_name, narrate=backup_download_failure)
    except OSError as e:
        fail(f"Failed to save {destination}: {e}")
    say(f"Backup file saved to {destination}", style="green")


if __name__ == "__main__":
    cli()
