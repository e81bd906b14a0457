"""Configuration management"""

from .loader import invalidate_config_cache, load_config
from .schema import (
    A2UIEngineConfig,
    RetrySettings,
    RouterSettings,
    SurfaceSettings,
    TransportSettings,
)

__all__ = [
    "A2UIEngineConfig",
    "RetrySettings",
    "RouterSettings",
    "SurfaceSettings",
    "TransportSettings",
    "invalidate_config_cache",
    "load_config",
]
