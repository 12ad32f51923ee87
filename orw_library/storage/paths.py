"""Path resolution for orw storage locations.

This module provides path resolution based on the ORW_HOME environment variable,
following an XDG-like directory structure within that root.

Contract:
- Inputs: Environment variables (ORW_HOME)
- Outputs: Resolved Path objects
- Side Effects: Creates directories if they don't exist
"""

import os
from pathlib import Path


def get_home_dir() -> Path:
    """Get ORW_HOME from environment.

    Returns:
        Path to root directory (default: .orw)
    """
    root = os.environ.get("ORW_HOME", ".orw")
    return Path(root).resolve()


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($ORW_HOME/config)
    """
    config_dir = get_home_dir() / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_state_dir() -> Path:
    """Get state directory holding the snapshot database.

    Returns:
        Path to state directory ($ORW_HOME/state)
    """
    state_dir = get_home_dir() / "state"
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir


def get_cache_dir() -> Path:
    """Get cache directory for materialized responses.

    Returns:
        Path to cache directory ($ORW_HOME/cache)
    """
    cache_dir = get_home_dir() / "cache"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir
