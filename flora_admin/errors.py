"""Error types and backend error normalization."""

import json
from enum import Enum
from typing import Any

import httpx

CANNOT_DELETE_DEFAULT_MESSAGE = "Cannot delete default location. Please set another location as default first."


class ErrorKind(str, Enum):
    """Classification of a failure."""

    CLIENT = "client"
    SERVER = "server"
    TRANSPORT = "transport"
    VALIDATION = "validation"


class FloraError(Exception):
    """Base class for all flora-admin errors.

    Every error carries a ``kind`` and a human readable ``message``, which is
    the normalized shape handed to the coordinator and shown to the user.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.code = code

    @property
    def retryable(self) -> bool:
        """Whether another attempt could succeed."""
        return self.kind in (ErrorKind.SERVER, ErrorKind.TRANSPORT)

    def to_dict(self) -> dict[str, str]:
        """Return the normalized {kind, message} shape."""
        return {"kind": self.kind.value, "message": self.message}


class RemoteError(FloraError):
    """The remote resource API returned an error or could not be reached."""


class ValidationError(FloraError):
    """Input rejected locally before any remote call."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorKind.VALIDATION)


class MutationInProgressError(FloraError):
    """Another coordinated mutation on the same relation has not settled yet."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"A change to {key} is already in progress", ErrorKind.CLIENT)
        self.key = key


def require_positive_id(value: Any, name: str) -> int:
    """Coerce an entity id to a positive int or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}: {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}: {value!r}") from None
    if number <= 0 or (isinstance(value, float) and number != value):
        raise ValidationError(f"Invalid {name}: {name} must be a positive number, received {value!r}")
    return number


def _parse_body(body: str) -> dict[str, Any]:
    if not body:
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        return {"message": body}
    if isinstance(data, dict):
        return data
    return {"message": body}


def normalize_error(status_code: int, body: str, reason: str = "", location: str | None = None) -> RemoteError:
    """Translate a non-2xx HTTP response into a single RemoteError.

    Backend bodies are JSON keyed variously as ``details``, ``error`` or
    ``message``, or plain text. The first non-empty of those wins, then the
    HTTP reason phrase. Redirects are client errors: the request never
    reached the resource.
    """
    if 300 <= status_code < 400:
        target = location or "another URL"
        return RemoteError(f"Unexpected redirect to {target}", ErrorKind.CLIENT, status_code=status_code)

    data = _parse_body(body)
    code = data.get("code") if isinstance(data.get("code"), str) else None

    if code == "cannot_delete_default":
        message = CANNOT_DELETE_DEFAULT_MESSAGE
    else:
        message = ""
        for field_name in ("details", "error", "message"):
            value = data.get(field_name)
            if value:
                message = value if isinstance(value, str) else json.dumps(value)
                break
        if not message:
            message = reason or f"HTTP {status_code}"

    kind = ErrorKind.SERVER if status_code >= 500 else ErrorKind.CLIENT
    return RemoteError(message, kind, status_code=status_code, code=code)


def from_transport_error(error: httpx.TransportError) -> RemoteError:
    """Wrap a network level failure, which carries no status code."""
    message = str(error) or error.__class__.__name__
    return RemoteError(message, ErrorKind.TRANSPORT)
