"""
Client Errors

Every failure the API client reports is an ApiError tagged with an
ErrorKind, so callers branch on the kind instead of on status arithmetic.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    NETWORK = "network"
    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    OTHER = "other"


USER_MESSAGES = {
    ErrorKind.NETWORK: "Unable to reach the server. Check that the API is running.",
    ErrorKind.NOT_FOUND: "Resource not found.",
    ErrorKind.CONFLICT: "This email address is already in use.",
    ErrorKind.RATE_LIMITED: "Too many requests. Please wait before trying again.",
    ErrorKind.SERVER: "Server error. Please try again later.",
}


def classify(status: int, details: Optional[List[Dict[str, Any]]] = None) -> ErrorKind:
    if status == 0:
        return ErrorKind.NETWORK
    if status == 400:
        return ErrorKind.VALIDATION if details else ErrorKind.BAD_REQUEST
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 409:
        return ErrorKind.CONFLICT
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status >= 500:
        return ErrorKind.SERVER
    return ErrorKind.OTHER


class ApiError(Exception):
    """
    Normalized API failure.

    status 0 means the request never produced a usable HTTP response
    (server unreachable, connection dropped, timeout).
    """

    def __init__(
        self,
        message: str,
        status: int,
        details: Optional[List[Dict[str, Any]]] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details
        self.original_error = original_error
        self.kind = classify(status, details)

    @property
    def is_network_error(self) -> bool:
        return self.kind is ErrorKind.NETWORK

    @property
    def is_validation_error(self) -> bool:
        return self.kind is ErrorKind.VALIDATION

    @property
    def is_server_error(self) -> bool:
        return self.kind is ErrorKind.SERVER

    def user_message(self) -> str:
        """Message suitable for showing to an end user."""
        if self.kind is ErrorKind.VALIDATION:
            first = self.details[0]
            if isinstance(first, dict):
                return first.get("message") or first.get("msg") or self.message
            return str(first)
        return USER_MESSAGES.get(self.kind, self.message)

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value}, status={self.status}, message={self.message!r})"
