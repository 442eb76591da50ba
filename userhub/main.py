"""
Server entry point: `python -m userhub`.
"""
import logging

import uvicorn

from userhub.app import create_app
from userhub.modules.config import Settings
from userhub.modules.logging_setup import configure_logging

logger = logging.getLogger("userhub.main")


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    app = create_app(settings)

    base_url = f"http://{settings.host}:{settings.port}"
    logger.info(f"Server running on {base_url}")
    logger.info(f"Health check: {base_url}/health")
    logger.info(f"API endpoint: {base_url}{settings.api_prefix}")
    logger.info(f"Environment: {settings.environment}")

    # uvicorn handles SIGINT/SIGTERM and drains in-flight requests
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
