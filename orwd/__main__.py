"""Entry point for running the orwd daemon.

This module provides the ``python -m orwd`` entry point.
"""

import logging
import sys

import uvicorn

from orw_library.config import load_config

from .main import configure_logging
from .main import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the orwd daemon.

    Loads configuration and starts the uvicorn server.
    """
    configure_logging()
    try:
        config = load_config()

        uvicorn.run(
            create_app(config),
            host=config.daemon.host,
            port=config.daemon.port,
            log_level=config.daemon.log_level.lower(),
        )

    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to start daemon: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
