"""
UserHub API Client

Async wrapper around the REST API. Every call returns the parsed success
envelope or raises ApiError; raw httpx exceptions never escape.
"""
import copy
import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from userhub.client.cache import ResponseCache
from userhub.client.errors import ApiError
from userhub.modules.config import Settings
from userhub.modules.users.domain.validation import validate_user_data

logger = logging.getLogger("userhub.client")

DEFAULT_BASE_URL = "http://localhost:3000"
API_PREFIX = "/api/v1"
USER_ID_PATTERN = re.compile(r"-?[0-9]+")


class ApiClient:
    """Client for the user management API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_prefix: str = API_PREFIX,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None
    ) -> Dict[str, Any]:
        """Issue a request and return the decoded JSON envelope."""
        logger.debug(f"[ApiClient.request] {method} {endpoint} params={params}")
        try:
            response = await self._http.request(
                method,
                endpoint,
                params=params,
                content=json.dumps(body) if body is not None else None,
            )
        except httpx.HTTPError as e:
            logger.debug(f"[ApiClient.request] transport failure: {e}")
            raise ApiError("Network error or server unavailable", 0, original_error=e)

        try:
            data = response.json()
        except ValueError as e:
            if response.is_success:
                raise ApiError("Invalid response from server", 0, original_error=e)
            raise ApiError("Request failed", response.status_code, original_error=e)

        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            details = data.get("details") if isinstance(data, dict) else None
            raise ApiError(error or "Request failed", response.status_code, details)

        return data

    @staticmethod
    def _require_id(user_id: Any) -> int:
        if isinstance(user_id, int) and not isinstance(user_id, bool):
            return user_id
        if isinstance(user_id, str) and USER_ID_PATTERN.fullmatch(user_id.strip()):
            return int(user_id.strip())
        raise ApiError("Invalid user ID", 400)

    @staticmethod
    def _check(user_data: Any, partial: bool) -> None:
        issue = validate_user_data(user_data, partial=partial)
        if issue:
            raise ApiError("Validation error", 400, [issue.to_dict()])

    async def check_health(self) -> Dict[str, Any]:
        return await self.request("GET", "/health")

    async def get_users(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Get all users, optionally filtered by role and capped by limit."""
        filters = filters or {}
        params = {}
        if filters.get("role"):
            params["role"] = filters["role"]
        if filters.get("limit"):
            params["limit"] = filters["limit"]
        return await self.request("GET", f"{self.api_prefix}/users", params=params or None)

    async def get_user(self, user_id: Any) -> Dict[str, Any]:
        uid = self._require_id(user_id)
        return await self.request("GET", f"{self.api_prefix}/users/{uid}")

    async def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        self._check(user_data, partial=False)
        return await self.request("POST", f"{self.api_prefix}/users", body=user_data)

    async def update_user(self, user_id: Any, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Update a user; only the supplied fields are validated."""
        uid = self._require_id(user_id)
        self._check(user_data, partial=True)
        return await self.request("PUT", f"{self.api_prefix}/users/{uid}", body=user_data)

    async def delete_user(self, user_id: Any) -> Dict[str, Any]:
        uid = self._require_id(user_id)
        return await self.request("DELETE", f"{self.api_prefix}/users/{uid}")

    async def test_connection(self) -> Dict[str, Any]:
        """Never raises: reports whether the API answered its health check."""
        try:
            await self.check_health()
            return {"success": True, "message": "API is accessible"}
        except ApiError as e:
            return {"success": False, "message": e.message}


class CachedApiClient(ApiClient):
    """
    API client that caches user listings.

    Any successful mutation clears the whole cache.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_prefix: str = API_PREFIX,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[ResponseCache] = None
    ):
        super().__init__(base_url, api_prefix=api_prefix, timeout=timeout, transport=transport)
        self.cache = cache if cache is not None else ResponseCache()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "CachedApiClient":
        """Build a client from USERHUB_API_URL, USERHUB_CLIENT_TIMEOUT and USERHUB_CACHE_TTL_SECONDS."""
        return cls(
            settings.api_url,
            api_prefix=settings.api_prefix,
            timeout=settings.client_timeout,
            cache=ResponseCache(ttl=settings.cache_ttl_seconds),
            **kwargs
        )

    @staticmethod
    def cache_key(filters: Optional[Dict[str, Any]]) -> str:
        return "users-" + json.dumps(filters or {}, sort_keys=True)

    async def get_users(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        key = self.cache_key(filters)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"[CachedApiClient.get_users] cache hit {key}")
            return copy.deepcopy(cached)

        result = await super().get_users(filters)
        # Callers get their own copy; the cached envelope is never handed out
        self.cache.set(key, copy.deepcopy(result))
        return result

    async def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        result = await super().create_user(user_data)
        self.cache.clear()
        return result

    async def update_user(self, user_id: Any, user_data: Dict[str, Any]) -> Dict[str, Any]:
        result = await super().update_user(user_id, user_data)
        self.cache.clear()
        return result

    async def delete_user(self, user_id: Any) -> Dict[str, Any]:
        result = await super().delete_user(user_id)
        self.cache.clear()
        return result
