"""Core configuration for redirectname."""

from redirectname.core.config import (
    ServerConfig,
    flatten_config,
    load_config_from_file,
)

__all__ = [
    "ServerConfig",
    "load_config_from_file",
    "flatten_config",
]
