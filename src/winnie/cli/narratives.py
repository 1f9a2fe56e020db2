"""What each command tells the user when an API call fails.

Every function takes an error kind and returns the lines to print, or
None when the command has no narrative of its own for that kind.
"""

import shlex
from typing import Callable, List, NamedTuple, Optional

from winnie.core.errors import Conflict, ErrorKind, Forbidden, GatewayTimeout, Locked, NotFound, Unauthorized, \
    ValidationFailed
from winnie.core.models import Cloud


class Line(NamedTuple):
    text: str
    style: Optional[str] = "red"


def plain(text: str) -> Line:
    return Line(text, None)


Narrative = Optional[List[Line]]


def deploy_log_hint(code_name: str) -> str:
    return f"`winnie deploys show last --cloud {code_name}`"


def locked(kind: Locked) -> List[Line]:
    return [Line("Deployment is currently blocked:"), Line(kind.message)]


def start_failure(kind: ErrorKind, code_name: str, remote_name: str, billing_url: Callable[[], str]) -> Narrative:
    """Start refused by the API. Unknown conflict states read like ``no_code``."""
    if isinstance(kind, Locked):
        return locked(kind)
    if not isinstance(kind, Conflict):
        return None

    state = kind.state
    if state == "running":
        return [Line(f"Not starting: cloud '{code_name}' is already running")]
    if state == "deploying":
        return [Line(f"Not starting: cloud '{code_name}' is currently deploying")]
    if state == "deploy_failed":
        return [
            Line("Not starting: deployment failed"),
            Line("Support has been notified"),
            Line(f"Check {deploy_log_hint(code_name)} for reasons of failure"),
        ]
    if state == "not_enough_resources":
        return [Line("Sorry, There are no resources for your servers.\n"
                     "We have been notified about it. We will be adding new resources shortly")]
    if state == "no_billing":
        return [
            Line(f"Please fill in billing details to start {code_name}."),
            Line(f"Visit: {billing_url()}"),
        ]
    if state == "turning_off":
        return [Line(f"Not starting: cloud '{code_name}' is turning off.\n"
                     "Wait until cloud is in 'turned off' state and try again.")]
    return [
        Line("Not starting: no source code provided"),
        Line("Push source code using:"),
        plain(f"`git push {remote_name} master`"),
    ]


def stop_failure(kind: ErrorKind, code_name: str) -> Narrative:
    """Stop refused by the API. Unknown conflict states read like ``no_code``."""
    if not isinstance(kind, Conflict):
        return None
    if kind.state == "deploying":
        return [Line("Your cloud is currently being deployed and it can not be stopped.")]
    if kind.state == "turning_off":
        return [Line("Your cloud is turning off.")]
    return [
        Line("You need to deploy your cloud first."),
        plain("More information can be found at:"),
        plain("https://winniecloud.com/documentation/deployment"),
    ]


REDEPLOY_NOT_RUNNING_STATES = ("no_code", "no_billing", "turned_off")


def redeploy_failure(kind: ErrorKind, code_name: str) -> Narrative:
    """Redeploy refused by the API. Unknown conflict states are not narrated."""
    if isinstance(kind, Locked):
        return locked(kind)
    if not isinstance(kind, Conflict):
        return None
    if kind.state == "deploying":
        return [Line("Your application is being redeployed at the moment")]
    if kind.state in REDEPLOY_NOT_RUNNING_STATES:
        return [
            Line(f"Cloud {code_name} is not running"),
            plain(f"Start your cloud with `winnie start --cloud {code_name}`"),
        ]
    return None


def add_command(cloud: Cloud) -> str:
    """Invocation that re-creates ``cloud`` with the same attributes."""
    databases = ",".join(cloud.databases) or "none"
    parts = [
        "winnie add",
        f"--code-name={shlex.quote(cloud.code_name)}",
        f"--databases={shlex.quote(databases)}",
        f"--organization={shlex.quote(cloud.organization_name or '')}",
        f"--size={cloud.size}",
    ]
    if cloud.placement is not None:
        parts.append(f"--{cloud.placement.flag}={shlex.quote(cloud.placement.name)}")
    return " ".join(parts)


def add_failure(kind: ErrorKind, cloud: Cloud) -> Narrative:
    if isinstance(kind, Conflict):
        return [Line(kind.error or f"Cloud '{cloud.code_name}' can not be created right now")]
    if isinstance(kind, ValidationFailed):
        lines = [Line(message) for message in kind.messages()]
        lines.append(plain(""))
        lines.append(Line("Fix errors in the below command and type it again to create your cloud"))
        lines.append(Line(add_command(cloud)))
        return lines
    if isinstance(kind, Forbidden):
        return [Line(f"You have to be the owner of '{cloud.organization_name}' organization to add clouds")]
    if isinstance(kind, NotFound) and kind.resource == "organization":
        return organization_not_found(cloud.organization_name or "")
    return None


def organization_not_found(organization_name: str) -> List[Line]:
    return [
        Line(f"Organization '{organization_name}' not found"),
        Line("You can list organizations you have access to with `winnie organization list`"),
    ]


def tunnel_failure(kind: ErrorKind, code_name: str, label: str, server: Optional[str]) -> Narrative:
    """Console, ssh and rake need running virtual servers."""
    if isinstance(kind, Conflict):
        return [Line(f"Cloud {code_name} is not running. Cannot run {label}.")]
    if isinstance(kind, NotFound) and kind.resource == "virtual_server" and server:
        return [Line(f"Virtual server '{server}' not found or not configured for running {label}")]
    return None


def db_server_failure(kind: ErrorKind, code_name: str, label: str, server: Optional[str]) -> Narrative:
    """Database consoles need a deployed database server."""
    if isinstance(kind, Conflict):
        return [Line(f"Cloud {code_name} wasn't deployed properly. Can not run {label}.")]
    if isinstance(kind, NotFound) and kind.resource == "virtual_server" and server:
        return [Line(f"Virtual server '{server}' not found or not configured for running {label}")]
    return None


def login_failure(kind: ErrorKind) -> Narrative:
    """Wrong credentials come with a reset link, unconfirmed accounts don't."""
    if not isinstance(kind, Unauthorized):
        return None
    lines = [Line(kind.error or "Wrong email or password")]
    if kind.wrong_credentials:
        lines.append(Line("You can reset password by using link:"))
        lines.append(Line(kind.url))
    return lines


def invitation_failure(kind: ErrorKind, organization_name: str) -> Narrative:
    if isinstance(kind, Forbidden):
        return [Line(f"You have to be the owner of '{organization_name}' organization to add users")]
    if isinstance(kind, NotFound) and kind.resource == "organization":
        return organization_not_found(organization_name)
    return None


def backup_failure(kind: ErrorKind) -> Narrative:
    if isinstance(kind, Conflict):
        return [Line("Backup can only be created for running clouds")]
    return None


def backup_download_failure(kind: ErrorKind) -> Narrative:
    if isinstance(kind, NotFound):
        return [Line("Backup not found"), plain("You can list available backups with `winnie backup list` command")]
    return None


def statistics_failure(kind: ErrorKind) -> Narrative:
    if isinstance(kind, GatewayTimeout):
        return [Line("Server statistics temporarily unavailable")]
    return None
