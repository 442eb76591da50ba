"""
Logging Setup

Process-wide logging configuration for the server entry point.
"""
import logging

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s :: %(message)s'


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
    # uvicorn's access log duplicates the request logging middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
