"""Console output shared by all commands."""

import logging
import sys
from typing import Iterable, List, NoReturn, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler

from winnie.core.models import Cloud
from .narratives import Line, deploy_log_hint


console = Console(soft_wrap=True)


def setup_logging(debug: bool) -> None:
    """Route ``winnie`` loggers to the console through rich."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("winnie")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def say(text: str = "", style: Optional[str] = None) -> None:
    console.print(text, style=style, markup=False, highlight=False)


def print_lines(lines: Iterable[Line]) -> None:
    for line in lines:
        say(line.text, style=line.style)


def fail(*messages: str) -> NoReturn:
    """Print the messages in red and exit with status 1."""
    for message in messages:
        say(message, style="red")
    sys.exit(1)


def abort(lines: Sequence[Line]) -> NoReturn:
    print_lines(lines)
    sys.exit(1)


def cloud_rows(clouds: Sequence[Cloud]) -> List[str]:
    """Aligned "name | state" rows for cloud listings."""
    width = max((len(cloud.code_name) for cloud in clouds), default=0)
    rows = []
    for cloud in clouds:
        row = f"  {cloud.code_name.ljust(width)}  |  {cloud.state_description or cloud.state or ''}"
        if cloud.deploy_failed:
            row += f" (deployment log: `winnie deploys show last -c {cloud.code_name}`)"
        rows.append(row)
    return rows


def print_clouds(clouds: Sequence[Cloud]) -> None:
    if not clouds:
        say("You have no clouds yet", style="green")
        return
    say("You have following clouds available:", style="green")
    for row in cloud_rows(clouds):
        say(row)


def deployment_outcome(action: str, code_name: str, succeeded: bool) -> None:
    """Final line after polling a start, stop or redeploy."""
    if succeeded:
        say(f"{action} successful", style="green")
    else:
        fail(f"{action} failed. See logs with {deploy_log_hint(code_name)}")
