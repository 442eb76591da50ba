"""
UserHub Client

API client, response cache and headless UI controller.
"""

from .errors import ApiError, ErrorKind
from .cache import ResponseCache
from .api_client import ApiClient, CachedApiClient
from .controller import UserManagementController

__all__ = [
    "ApiError",
    "ErrorKind",
    "ResponseCache",
    "ApiClient",
    "CachedApiClient",
    "UserManagementController",
]
