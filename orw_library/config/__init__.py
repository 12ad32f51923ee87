"""Configuration module for orw_library.

Public Interface:
    - Config: Complete configuration model
    - DaemonConfig, WatcherConfig, StorageConfig: Configuration sections
    - load_config: Load configuration
    - get_config_path: Get config file path
"""

from .loader import get_config_path
from .loader import load_config
from .models import Config
from .models import DaemonConfig
from .models import StorageConfig
from .models import WatcherConfig

__all__ = [
    "Config",
    "DaemonConfig",
    "WatcherConfig",
    "StorageConfig",
    "load_config",
    "get_config_path",
]
