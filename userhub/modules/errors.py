"""
UserHub - Exceptions

Every error the HTTP layer turns into a JSON envelope.
"""
from typing import Any, Dict, List, Optional


class UserHubError(Exception):
    """Base exception for errors rendered as an error envelope"""
    status_code = 500
    error = "Internal server error"

    def __init__(self, error: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(error or self.error)
        if error:
            self.error = error
        self.details = details

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientInputError(UserHubError):
    """Raised for a malformed id, query parameter, body or failed field validation"""
    status_code = 400
    error = "Bad request"


class NotFoundError(UserHubError):
    """Raised when a user (or route) does not exist"""
    status_code = 404
    error = "User not found"


class ConflictError(UserHubError):
    """Raised when an email is already held by another user"""
    status_code = 409
    error = "Email already exists"


class PayloadTooLargeError(UserHubError):
    """Raised when a request body exceeds the configured maximum"""
    status_code = 413
    error = "Request body too large"


class RateLimitedError(UserHubError):
    """Raised when a client address exceeds its request budget"""
    status_code = 429
    error = "Too many requests, please try again later."

    def __init__(self, retry_after: int, error: Optional[str] = None):
        super().__init__(error)
        self.retry_after = retry_after


class InternalError(UserHubError):
    """Raised for unexpected faults"""
    status_code = 500
    error = "Internal server error"
