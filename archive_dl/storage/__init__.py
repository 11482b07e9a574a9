"""
Storage Layer.

This package handles all data persistence: the per-destination URL cache and
the optional configuration file.
"""

from .config_manager import ConfigManager
from .url_cache import UrlCache, resolve_urls

__all__ = ["ConfigManager", "UrlCache", "resolve_urls"]
