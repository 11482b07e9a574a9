"""
Archive API Layer.

This package handles all communication with the archive.org metadata API.
"""

from .client import ArchiveAPIClient, build_download_url

__all__ = ["ArchiveAPIClient", "build_download_url"]
