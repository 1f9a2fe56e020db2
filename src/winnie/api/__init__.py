"""Winnie Cloud API client and its failure types."""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class StatusClass(str, Enum):
    """Normalized class of a failed API call."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    LOCKED = "locked"
    VALIDATION_FAILED = "validation_failed"
    GATEWAY_TIMEOUT = "gateway_timeout"
    UNKNOWN = "unknown"


def _field_errors(raw: Any) -> List[Tuple[str, str]]:
    """Normalize the ``errors`` body into (field, reason) pairs.

    Accepts a list of [field, reason] pairs, a mapping of field to one or
    more reasons, or bare strings (kept with an empty field).
    """
    if not raw:
        return []
    if isinstance(raw, dict):
        pairs = []
        for field, reasons in raw.items():
            if not isinstance(reasons, (list, tuple)):
                reasons = [reasons]
            pairs.extend((str(field), str(reason)) for reason in reasons)
        return pairs
    if not isinstance(raw, (list, tuple)):
        raw = [raw]

    pairs = []
    for entry in raw:
        if isinstance(entry, (list, tuple)) and len(entry) == 2:
            pairs.append((str(entry[0]), str(entry[1])))
        elif isinstance(entry, (list, tuple)):
            pairs.append(("", " ".join(str(part) for part in entry)))
        else:
            pairs.append(("", str(entry)))
    return pairs


class APIError(Exception):
    """Base exception for failed Winnie Cloud API calls.

    Carries the normalized failure body: the human readable ``message``,
    field ``errors`` as (field, reason) pairs, the ``resource`` a lookup
    failed on, the cloud ``state`` reported with conflicts, and the
    server-authored ``error`` text and ``url`` where present.
    """

    status_class = StatusClass.UNKNOWN

    def __init__(self, body: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None) -> None:
        self.body: Dict[str, Any] = dict(body or {})
        self.status_code = status_code
        self.message: str = self.body.get("message") or ""
        self.errors: List[Tuple[str, str]] = _field_errors(self.body.get("errors"))
        self.resource: Optional[str] = self.body.get("resource")
        self.state: Optional[str] = self.body.get("state")
        self.error: Optional[str] = self.body.get("error")
        self.url: Optional[str] = self.body.get("url")
        super().__init__(self.message or self.error or self.status_class.value)


class UnauthorizedError(APIError):
    """Raised when the session is missing, invalid or expired."""
    status_class = StatusClass.UNAUTHORIZED


class ForbiddenError(APIError):
    """Raised when the user lacks the role required for a resource."""
    status_class = StatusClass.FORBIDDEN


class NotFoundError(APIError):
    """Raised when a resource doesn't exist or is not accessible."""
    status_class = StatusClass.NOT_FOUND


class ConflictError(APIError):
    """Raised when the resource's current state forbids the operation."""
    status_class = StatusClass.CONFLICT


class LockedError(APIError):
    """Raised when deployments are administratively blocked."""
    status_class = StatusClass.LOCKED


class ValidationError(APIError):
    """Raised when submitted attributes fail server-side validation."""
    status_class = StatusClass.VALIDATION_FAILED


class GatewayTimeoutError(APIError):
    """Raised when an upstream service timed out."""
    status_class = StatusClass.GATEWAY_TIMEOUT


class TransportFailure(APIError):
    """Raised when the API could not be reached at all."""
    status_class = StatusClass.UNKNOWN


STATUS_ERRORS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    423: LockedError,
    504: GatewayTimeoutError,
}


def error_for_status(status_code: int, body: Optional[Dict[str, Any]] = None) -> APIError:
    """Build the typed failure for a non-2xx response."""
    error_class = STATUS_ERRORS.get(status_code, APIError)
    return error_class(body, status_code=status_code)
