"""
Configuration

Runtime settings read from the environment (and an optional .env file).
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _env(*names: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty environment variable among names."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip() != "":
            return value.strip()
    return default


def _env_int(name: str, default: int, *aliases: str) -> int:
    raw = _env(name, *aliases)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


@dataclass
class Settings:
    """Server and client settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    api_prefix: str = "/api/v1"
    api_version: str = "v1"
    cors_origins: List[str] = field(default_factory=lambda: _split_origins(DEFAULT_CORS_ORIGINS))
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100
    max_body_bytes: int = 10 * 1024
    log_level: str = "INFO"

    # Client side
    api_url: str = "http://localhost:3000"
    client_timeout: float = 10.0
    cache_ttl_seconds: float = 30.0

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from USERHUB_* variables (HOST/PORT/ENVIRONMENT also honoured)."""
        settings = cls(
            host=_env("USERHUB_HOST", "HOST", default="0.0.0.0"),
            port=_env_int("USERHUB_PORT", 3000, "PORT"),
            environment=_env("USERHUB_ENV", "ENVIRONMENT", default="development"),
            api_prefix=_env("USERHUB_API_PREFIX", default="/api/v1").rstrip("/"),
            api_version=_env("USERHUB_API_VERSION", default="v1"),
            cors_origins=_split_origins(_env("USERHUB_CORS_ORIGINS", default=DEFAULT_CORS_ORIGINS)),
            rate_limit_window_seconds=_env_int("USERHUB_RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            rate_limit_max_requests=_env_int("USERHUB_RATE_LIMIT_MAX_REQUESTS", 100),
            max_body_bytes=_env_int("USERHUB_MAX_BODY_BYTES", 10 * 1024),
            log_level=_env("USERHUB_LOG_LEVEL", default="INFO").upper(),
            api_url=_env("USERHUB_API_URL", default="http://localhost:3000").rstrip("/"),
            client_timeout=_env_float("USERHUB_CLIENT_TIMEOUT", 10.0),
            cache_ttl_seconds=_env_float("USERHUB_CACHE_TTL_SECONDS", 30.0),
        )
        if settings.rate_limit_window_seconds <= 0:
            raise ValueError("USERHUB_RATE_LIMIT_WINDOW_SECONDS must be positive")
        if settings.rate_limit_max_requests <= 0:
            raise ValueError("USERHUB_RATE_LIMIT_MAX_REQUESTS must be positive")
        if settings.max_body_bytes <= 0:
            raise ValueError("USERHUB_MAX_BODY_BYTES must be positive")
        return settings
