"""Error taxonomy for area operations.

Every failure surfaced to the views is an ``AreaAdminError`` tagged with an
``ErrorKind``. Views branch on ``error.kind`` instead of inspecting exception
types or attributes, and ``describe_error`` turns any of them into the message
shown in a notification.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

NETWORK_ERROR_MESSAGE = (
    "Network error: Server did not respond. Please check your connection."
)


class ErrorKind(str, Enum):
    """Discriminator for ``AreaAdminError``."""

    VALIDATION = "validation"
    HTTP = "http"
    TRANSPORT = "transport"
    UNEXPECTED = "unexpected"


class AreaAdminError(Exception):
    """Base class for every error raised by the area client and views."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error as a tagged variant."""
        return {"kind": self.kind.value, "message": self.message}


class FieldValidationError(AreaAdminError):
    """Client-side validation failed; no request was sent."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field_errors: Dict[str, List[str]]) -> None:
        fields = ", ".join(sorted(field_errors))
        super().__init__(f"Invalid fields: {fields}")
        self.field_errors = field_errors

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["field_errors"] = self.field_errors
        return payload


class HttpError(AreaAdminError):
    """The backend answered with a non-2xx status."""

    kind = ErrorKind.HTTP

    def __init__(self, status: int, body: Any = None, reason: str = "") -> None:
        super().__init__(f"{status} {reason}".strip())
        self.status = status
        self.body = body
        self.reason = reason

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"status": self.status, "body": self.body})
        return payload


class TransportError(AreaAdminError):
    """The request was sent but no response came back."""

    kind = ErrorKind.TRANSPORT


class UnexpectedError(AreaAdminError):
    """Anything else that went wrong while building or sending a request."""

    kind = ErrorKind.UNEXPECTED


def format_field_errors(body: Dict[str, Any]) -> str:
    """Render a field-keyed error map as ``field: msg, other: msg``.

    A list of messages for one field is joined with a bare comma.
    """
    parts = []
    for field, errors in body.items():
        if isinstance(errors, (list, tuple)):
            errors = ",".join(str(error) for error in errors)
        parts.append(f"{field}: {errors}")
    return ", ".join(parts)


def describe_error(
    error: BaseException, failure_prefix: str, unexpected_prefix: Optional[str] = None
) -> str:
    """Build the user-facing message for a failed operation.

    Args:
        error: The error raised by the operation.
        failure_prefix: Prefix for backend rejections, e.g.
            ``"Failed to create area"``.
        unexpected_prefix: Prefix for unexpected failures, e.g.
            ``"Error creating area"``. Defaults to ``failure_prefix``.

    Returns:
        str: The message to show in a notification.
    """
    unexpected_prefix = unexpected_prefix or failure_prefix
    kind = getattr(error, "kind", ErrorKind.UNEXPECTED)

    if kind is ErrorKind.HTTP:
        if error.is_client_error and isinstance(error.body, dict) and error.body:
            return f"{failure_prefix}: {format_field_errors(error.body)}"
        return f"{failure_prefix}: {error.status} {error.reason}".rstrip()
    if kind is ErrorKind.TRANSPORT:
        return NETWORK_ERROR_MESSAGE
    if kind is ErrorKind.VALIDATION:
        return f"{failure_prefix}: {format_field_errors(error.field_errors)}"

    message = getattr(error, "message", None) or str(error)
    return f"{unexpected_prefix}: {message}"
