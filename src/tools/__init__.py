"""Configuration tools."""

from .config_loader import ConfigLoader, get_config, get_cluster_settings

__all__ = [
    "ConfigLoader",
    "get_config",
    "get_cluster_settings",
]
