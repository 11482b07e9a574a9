"""
Listing modes: print the manifest or the download URLs without downloading.
"""

from collections.abc import AsyncIterator

from archive_dl.api.client import ArchiveAPIClient
from archive_dl.models.config import DownloadConfig
from archive_dl.storage.url_cache import resolve_urls
from archive_dl.utils.formatting import format_manifest_line


async def list_all(api_client: ArchiveAPIClient, identifier: str) -> AsyncIterator[str]:
    """Yields '<name> <size>' for each file, always fetching fresh metadata."""
    for entry in await api_client.fetch_manifest(identifier):
        yield format_manifest_line(entry.name, entry.size)


async def list_urls(
    config: DownloadConfig, api_client: ArchiveAPIClient
) -> AsyncIterator[str]:
    """Yields the resolved download URLs. May create the destination's URL cache."""
    for url in await resolve_urls(config, api_client):
        yield url
