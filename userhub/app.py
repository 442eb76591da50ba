import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from userhub import __version__
from userhub.modules.config import Settings
from userhub.modules.errors import ClientInputError, NotFoundError, UserHubError
from userhub.modules.security import RateLimiter, install_http_policies, internal_error_response
from userhub.modules.system_endpoints import router as system_router
from userhub.modules.users.api import user_router
from userhub.modules.users.repositories.user_repository import UserRepository
from userhub.modules.users.services.user_service import UserService

logger = logging.getLogger("userhub.app")


def _requested_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[UserRepository] = None,
    limiter: Optional[RateLimiter] = None
) -> FastAPI:
    """
    Build the API application.

    The repository is owned by the returned app; pass one in to share or
    inspect it (tests build a fresh one per app).
    """
    settings = settings or Settings.from_env()
    repository = repository or UserRepository()
    limiter = limiter or RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"UserHub API ready: {repository.count()} users loaded, environment={settings.environment}")
        yield
        # Shutdown
        logger.info("UserHub API shutting down")

    app = FastAPI(title="UserHub", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.repository = repository
    app.state.user_service = UserService(repository)
    app.state.rate_limiter = limiter
    app.state.started_at = time.monotonic()

    install_http_policies(app, settings, limiter)

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    app.include_router(system_router)
    app.include_router(user_router, prefix=settings.api_prefix)

    @app.exception_handler(UserHubError)
    async def handle_userhub_error(request: Request, exc: UserHubError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.debug(f"Rejected request body on {request.url.path}: {exc.errors()}")
        error = ClientInputError("Invalid JSON body")
        return JSONResponse(status_code=error.status_code, content=error.to_envelope())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods on known paths are both "not found"
        if exc.status_code in (404, 405):
            error = NotFoundError("Endpoint not found")
            content = error.to_envelope()
            content["path"] = _requested_path(request)
            return JSONResponse(status_code=404, content=content)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # Only reached for faults raised by the policy middleware itself
        return internal_error_response(request, exc, settings)

    return app
