"""
User Validation

Stateless field checks shared by the server (authoritative) and the client
(pre-flight only). The first violation wins and is returned, never raised.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .user import ROLES

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationIssue:
    """A single field violation."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


def _is_missing(data: Dict[str, Any], key: str) -> bool:
    return data.get(key) is None or data.get(key) == ""


def validate_user_data(data: Any, partial: bool = False) -> Optional[ValidationIssue]:
    """
    Check a create (partial=False) or update (partial=True) payload.

    In partial mode only the keys present in data are checked.
    Returns None when the payload is valid.
    """
    if not isinstance(data, dict):
        return ValidationIssue("body", "Request body must be a JSON object")

    if not partial and _is_missing(data, "name"):
        return ValidationIssue("name", "Name is required")
    if "name" in data:
        name = data["name"]
        if not isinstance(name, str) or not NAME_MIN_LENGTH <= len(name.strip()) <= NAME_MAX_LENGTH:
            return ValidationIssue(
                "name",
                f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            )

    if not partial and _is_missing(data, "email"):
        return ValidationIssue("email", "Email is required")
    if "email" in data:
        email = data["email"]
        if not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
            return ValidationIssue("email", "Valid email is required")

    if "role" in data and data["role"] not in ROLES:
        return ValidationIssue("role", "Role must be either user or admin")

    return None


def normalize_user_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Trim the name, lower-case the email and drop unknown keys. Call after validation."""
    normalized: Dict[str, Any] = {}
    if "name" in data:
        normalized["name"] = data["name"].strip()
    if "email" in data:
        normalized["email"] = normalize_email(data["email"])
    if "role" in data:
        normalized["role"] = data["role"]
    return normalized


def normalize_email(email: str) -> str:
    return email.strip().lower()
