"""Configuration loader for orw.

Handles loading configuration from the YAML file, environment variables,
and defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..storage.paths import get_config_dir
from .models import Config

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to configuration file (may not exist yet)
    """
    return get_config_dir() / "orw.yaml"


def load_config(config_path: Path | None = None) -> Config:
    """Load orw configuration.

    Loads configuration with the following precedence (highest to lowest):
    1. Environment variables (ORW_*)
    2. Configuration file (if exists)
    3. Default values

    Args:
        config_path: Optional path to configuration file. If None, uses default location.

    Returns:
        Loaded configuration
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        logger.info(f"Loading configuration from {config_path}")
        try:
            config = Config.load_from_file(config_path)
        except ValueError as e:
            logger.error(f"Failed to load config from {config_path}: {e}")
            logger.info("Using default configuration")
            config = Config()
    else:
        logger.info(f"No configuration file found at {config_path}, using defaults")
        config = Config()

    logger.info(
        f"Configuration loaded: port={config.daemon.port}, "
        f"interval={config.watcher.interval_seconds}s, database={config.storage.database_path}"
    )
    return config
