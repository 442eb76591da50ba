"""
Domain Models

Pure data models and validation rules for user entities.
"""

from .user import User, ROLES, DEFAULT_ROLE
from .validation import (
    ValidationIssue,
    validate_user_data,
    normalize_user_data,
    normalize_email,
)

__all__ = [
    "User",
    "ROLES",
    "DEFAULT_ROLE",
    "ValidationIssue",
    "validate_user_data",
    "normalize_user_data",
    "normalize_email",
]
