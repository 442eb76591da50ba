"""
Data Access Layer (Repositories)

Repositories hold the user records.
"""

from .user_repository import UserRepository, SEED_USERS

__all__ = [
    "UserRepository",
    "SEED_USERS",
]
