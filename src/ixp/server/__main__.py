"""
IXP Server - Main Entry Point
Run with `python -m ixp.server`.
"""

import uvicorn

from ..core import configure_logging, get_logger, get_settings
from .app import create_app

logger = get_logger(__name__)


def main() -> None:
    """Entry point - load settings, configure logging, serve."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)

    app = create_app(settings)
    logger.info("listening", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
