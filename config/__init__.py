"""
Configuration module for embedstore.

This module provides configuration management including
loading settings from YAML files and environment variables.

Example:
    >>> from config import Settings, load_config
    >>> from embedstore import Store
    >>>
    >>> settings = load_config()
    >>> store = Store.from_settings(settings)
"""

from .settings import (
    Settings,
    load_config,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "load_config",
    "get_default_config_path",
]
