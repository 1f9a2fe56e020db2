"""Interactive "ask until valid" workflows used by add, login and register.

Every workflow talks to the terminal only through a prompter, so tests
drive them with a scripted sequence of answers.
"""

import logging
from typing import Callable, List, Optional, Sequence, TypeVar

import click
from rich.console import Console

from winnie.api import ValidationError
from winnie.api.client import Client
from .errors import ValidationFailed
from .models import DATABASE_CHOICES, DEFAULT_DATABASES, REGIONS, Organization, parse_databases


logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidAnswer(Exception):
    """Raised by validators; the message (if any) is shown as a warning."""
    pass


class Prompter:
    """Line based terminal I/O on a rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def ask(self, text: str) -> str:
        """Print ``text`` and read one line (EOFError at end of input)."""
        return self.console.input(text, markup=False)

    def ask_secret(self, text: str) -> str:
        return click.prompt(text, hide_input=True, prompt_suffix=" ", default="", show_default=False)

    def confirm(self, text: str) -> bool:
        return self.ask(text).strip().lower() in ("yes", "y")

    def say(self, text: str = "", style: Optional[str] = None) -> None:
        self.console.print(text, style=style, markup=False, highlight=False)

    def success(self, text: str) -> None:
        self.say(text, style="green")

    def warn(self, text: str) -> None:
        self.say(text, style="yellow")

    def error(self, text: str) -> None:
        self.say(text, style="red")


def ask_until_valid(
    prompter: Prompter,
    question: str,
    validate: Callable[[str], T],
    default: Optional[str] = None,
    retry_question: Optional[str] = None,
    before_ask: Optional[Callable[[], None]] = None,
) -> T:
    """Ask until ``validate`` accepts the answer.

    Blank answers are replaced by ``default`` before validation. A
    rejected answer is discarded whole; the validator's message is shown
    as a warning and ``retry_question`` (or the same question) is asked
    again.
    """
    current = question
    while True:
        if before_ask:
            before_ask()
        answer = prompter.ask(current).strip()
        if not answer and default is not None:
            answer = default
        try:
            return validate(answer)
        except InvalidAnswer as e:
            logger.debug("Rejected answer %r to %r", answer, question)
            if str(e):
                prompter.warn(str(e))
            current = retry_question or question


def ask_for_code_name(prompter: Prompter, default: str) -> str:
    def validate(answer: str) -> str:
        if not answer:
            raise InvalidAnswer("Code name can't be blank")
        return answer

    return ask_until_valid(prompter, f"Cloud code name ({default} - default): ", validate, default=default)


def ask_for_databases(prompter: Prompter) -> List[str]:
    """Ask which databases the cloud uses; ``none`` anywhere means no database."""
    kinds = ", ".join(DATABASE_CHOICES)

    def validate(answer: str) -> List[str]:
        selected = parse_databases(answer)
        if selected is None:
            raise InvalidAnswer()
        return selected

    return ask_until_valid(
        prompter,
        f"Which databases do you want to use {kinds} ({DEFAULT_DATABASES[0]} - default): ",
        validate,
        default=" ".join(DEFAULT_DATABASES),
        retry_question=f"Unknown database kind. Supported are: {kinds}: ",
    )


def ask_for_region(prompter: Prompter, regions: Sequence[str] = REGIONS) -> str:
    """Ask for a region; answers are upper-cased, blank picks the first region."""
    prompter.say("Select region for this cloud:")
    prompter.say()

    def list_regions() -> None:
        prompter.say("available regions:")
        for region in regions:
            prompter.say(f"  ∙ {region}")
        prompter.say()

    def validate(answer: str) -> str:
        selected = answer.upper()
        if selected not in regions:
            raise InvalidAnswer(f"{selected} region is not available")
        return selected

    return ask_until_valid(prompter, f"Region ({regions[0]} - default): ", validate,
                           default=regions[0], before_ask=list_regions)


def ask_for_organization(
    prompter: Prompter,
    client: Client,
    default_name: str,
    redeem_code: Optional[str] = None,
    referral_code: Optional[str] = None,
) -> str:
    """Pick an existing organization by name, or create a new one on blank."""
    organizations = [Organization.from_api(data) for data in client.organizations()]
    if not organizations:
        return ask_for_new_organization(prompter, client, default_name, redeem_code, referral_code)

    names = [organization.name for organization in organizations]
    prompter.say("Select organization for this cloud:")
    prompter.say()

    while True:
        prompter.say("existing organizations:")
        for name in names:
            prompter.say(f"  ∙ {name}")
        prompter.success("Or leave empty to create a new organization")
        prompter.say()

        selected = prompter.ask("Organization: ").strip()
        if selected in names:
            return selected
        if not selected:
            prompter.say()
            return ask_for_new_organization(prompter, client, default_name, redeem_code, referral_code)
        prompter.say()
        prompter.warn(f"{selected} organization does not exist")


def ask_for_new_organization(
    prompter: Prompter,
    client: Client,
    default_name: str,
    redeem_code: Optional[str] = None,
    referral_code: Optional[str] = None,
) -> str:
    """Create an organization, asking again while the API rejects the name."""
    while True:
        name = prompter.ask(f"Organization name ({default_name} - default): ").strip() or default_name
        try:
            client.create_organization(name, redeem_code=redeem_code, referral_code=referral_code)
        except ValidationError as e:
            for message in ValidationFailed(tuple(e.errors)).messages():
                prompter.error(message)
            continue
        prompter.success(f"Organization '{name}' created")
        return name


def ask_for_remote_name(prompter: Prompter, remote_exists: Callable[[str], bool], default: str) -> str:
    """Name of the git remote to add; asks before overwriting an existing one."""
    if not remote_exists(default):
        return default
    if prompter.confirm(f"Git remote {default} exists, overwrite (yes/no): "):
        return default

    def validate(answer: str) -> str:
        if not answer:
            raise InvalidAnswer("Remote name can't be blank")
        return answer

    return ask_until_valid(prompter, "Specify remote name: ", validate)


def confirm_by_name(prompter: Prompter, code_name: str) -> bool:
    """Destructive actions require re-typing the exact code name."""
    return prompter.ask("Please confirm with the name of the cloud: ").strip() == code_name


def ask_for_email(prompter: Prompter, guess: Optional[str] = None) -> Optional[str]:
    """Ask for an email, suggesting ``guess``; None when left blank without one."""
    question = f"Email ({guess} - default): " if guess else "Email: "
    email = prompter.ask(question).strip() or guess
    return email or None


def ask_for_password(prompter: Prompter, with_confirmation: bool = True) -> str:
    """Ask for a password; with confirmation, re-ask until both match and are non-blank."""
    while True:
        password = prompter.ask_secret("Password:")
        if not with_confirmation:
            return password
        confirmation = prompter.ask_secret("Password confirmation:")
        if not password:
            prompter.error("Password can't be blank")
        elif password != confirmation:
            prompter.error("Password and password confirmation don't match, please type them again")
        else:
            return password
