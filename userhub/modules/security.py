"""
HTTP Policies

Cross-cutting request policies owned by the HTTP layer: per-address rate
limiting, request body size ceiling, restrictive default headers, the
request log and the last-resort 500 envelope.
"""
import logging
import math
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from userhub.modules.config import Settings
from userhub.modules.errors import InternalError, PayloadTooLargeError, RateLimitedError

logger = logging.getLogger("userhub.http")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}

BODY_METHODS = {"POST", "PUT", "PATCH"}


class RateLimiter:
    """Rolling-window request counter keyed by client address."""

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> Optional[int]:
        """
        Record a request for key.

        Returns None when allowed, otherwise the number of seconds until the
        oldest request in the window expires.
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return max(1, math.ceil(self.window_seconds - (now - hits[0])))
            hits.append(now)
            return None

    def _sweep(self, now: float) -> None:
        """Forget addresses whose latest request has left the window. Caller holds the lock."""
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def tracked_addresses(self) -> int:
        with self._lock:
            return len(self._hits)

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            hits = self._hits.get(key, ())
            live = sum(1 for stamp in hits if now - stamp < self.window_seconds)
        return max(0, self.max_requests - live)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _error_response(error, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_envelope(), headers=headers)


def internal_error_response(request: Request, exc: Exception, settings: Settings) -> JSONResponse:
    """500 envelope; the exception text is only exposed in development."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    content = InternalError().to_envelope()
    content["message"] = str(exc) if settings.is_development else "Something went wrong"
    return JSONResponse(status_code=500, content=content, headers=SECURITY_HEADERS)


def _too_large(request: Request, size: str) -> JSONResponse:
    logger.warning(f"Rejected {request.method} {request.url.path}: body of {size} bytes")
    return _error_response(PayloadTooLargeError())


def install_http_policies(app: FastAPI, settings: Settings, limiter: RateLimiter) -> None:
    """
    Register the policy middleware on app.

    Starlette runs the last registered middleware first, so registration
    order here is innermost first.
    """

    @app.middleware("http")
    async def catch_unexpected_errors(request: Request, call_next):
        # Innermost, so the 500 envelope still passes through the header and CORS policies
        try:
            return await call_next(request)
        except Exception as e:
            return internal_error_response(request, e, settings)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length is not None:
            if length.isdigit() and int(length) > settings.max_body_bytes:
                return _too_large(request, length)
        elif request.method in BODY_METHODS:
            # No declared length (chunked upload): count while reading
            chunks = []
            received = 0
            async for chunk in request.stream():
                received += len(chunk)
                if received > settings.max_body_bytes:
                    return _too_large(request, f"more than {settings.max_body_bytes}")
                chunks.append(chunk)
            # Same cache Request.body() fills, so the endpoint reads the buffered body
            request._body = b"".join(chunks)
        return await call_next(request)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        address = client_address(request)
        retry_after = limiter.hit(address)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {address}")
            error = RateLimitedError(retry_after)
            return _error_response(error, headers={
                "Retry-After": str(error.retry_after),
                "X-RateLimit-Limit": str(limiter.max_requests),
                "X-RateLimit-Remaining": "0",
            })
        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(limiter.remaining(address))
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        logger.info(f"{timestamp} - {request.method} {request.url.path}")
        return await call_next(request)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
