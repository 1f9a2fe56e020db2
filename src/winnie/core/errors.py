"""Classification of API failures into a closed set of error kinds.

Commands never inspect failure bodies themselves: they call
``classify`` once and decide what to print from the kind they get back.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from winnie.api import APIError, StatusClass


@dataclass(frozen=True)
class Unauthorized:
    """Session invalid or expired, or wrong login credentials."""

    error: Optional[str] = None
    url: Optional[str] = None

    @property
    def wrong_credentials(self) -> bool:
        """Login failed on email/password, so a reset link is offered."""
        return self.url is not None


@dataclass(frozen=True)
class Forbidden:
    message: str = ""


@dataclass(frozen=True)
class NotFound:
    resource: Optional[str] = None
    message: str = ""


@dataclass(frozen=True)
class ValidationFailed:
    errors: Tuple[Tuple[str, str], ...] = ()

    def messages(self) -> List[str]:
        """Human readable "Field reason" lines, one per field error."""
        return [format_field_error(field, reason) for field, reason in self.errors]


@dataclass(frozen=True)
class Conflict:
    state: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Locked:
    message: str = ""


@dataclass(frozen=True)
class GatewayTimeout:
    message: str = ""


@dataclass(frozen=True)
class Unexpected:
    """Anything else. Always re-raised, never rendered as a canned message."""

    failure: APIError


ErrorKind = Union[Unauthorized, Forbidden, NotFound, ValidationFailed, Conflict, Locked, GatewayTimeout, Unexpected]


def format_field_error(field: str, reason: str) -> str:
    """Render one field error, e.g. ("code_name", "is taken") -> "Code name is taken"."""
    humanized = field.replace("_", " ").strip()
    if humanized:
        humanized = humanized[0].upper() + humanized[1:]
    return f"{humanized} {reason}".strip()


def classify(failure: APIError) -> ErrorKind:
    """Map a typed API failure onto its error kind.

    Total over every ``APIError``: combinations that match no kind become
    ``Unexpected`` so the caller re-raises them.
    """
    status = failure.status_class

    if status is StatusClass.UNAUTHORIZED:
        return Unauthorized(error=failure.error or failure.message or None, url=failure.url)
    if status is StatusClass.FORBIDDEN:
        return Forbidden(message=failure.message)
    if status is StatusClass.NOT_FOUND:
        return NotFound(resource=failure.resource, message=failure.message)
    if status is StatusClass.VALIDATION_FAILED:
        if not failure.errors:
            return Unexpected(failure)
        return ValidationFailed(errors=tuple(failure.errors))
    if status is StatusClass.CONFLICT:
        return Conflict(state=failure.state, error=failure.error)
    if status is StatusClass.LOCKED:
        return Locked(message=failure.message)
    if status is StatusClass.GATEWAY_TIMEOUT:
        return GatewayTimeout(message=failure.message)
    return Unexpected(failure)
