"""Path resolution for orw storage locations.

Public Interface:
    - get_home_dir: Get ORW_HOME
    - get_config_dir: Get config directory
    - get_state_dir: Get state directory (database)
    - get_cache_dir: Get cache directory (materialized responses)
"""

from .paths import get_cache_dir
from .paths import get_config_dir
from .paths import get_home_dir
from .paths import get_state_dir

__all__ = [
    "get_home_dir",
    "get_config_dir",
    "get_state_dir",
    "get_cache_dir",
]
