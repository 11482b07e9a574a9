"""
A sentinel-file cache for the download URL list of an item.

The cache lives at `<destination>/source.txt`, one URL per line. Its existence
is the only validity signal: entries never expire and are not keyed by
identifier, so pointing a second item at the same destination reuses the first
item's list. A mismatch is logged as a warning but the cached list is returned
unchanged. Delete the file (or call `clear`) to force a fresh fetch.
"""

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from archive_dl.models.config import DownloadConfig

log = logging.getLogger(__name__)

CACHE_FILENAME = "source.txt"

UrlFetcher = Callable[[], Awaitable[list[str]]]


class UrlCache:
    """Reads and writes the URL list sentinel file of a destination directory."""

    def __init__(self, destination: str | Path):
        self.destination = Path(destination)
        self.path = self.destination / CACHE_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> list[str]:
        """Returns the cached URLs verbatim, skipping blank lines."""
        with open(self.path, encoding="utf-8") as f:
            return [line.rstrip("\r\n") for line in f if line.strip()]

    def write(self, urls: list[str]) -> bool:
        """
        Persists the URL list. Returns False without writing when the
        destination directory does not exist.
        """
        if not self.destination.is_dir():
            log.debug(
                f"Destination '{self.destination}' does not exist, not caching URLs."
            )
            return False
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("\n".join(urls) + "\n" if urls else "")
        log.debug(f"Cached {len(urls)} URLs to {self.path}")
        return True

    def clear(self) -> bool:
        """Removes the sentinel file. Returns True if a file was removed."""
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return False

    async def get_or_fetch(self, identifier: str, fetch: UrlFetcher) -> list[str]:
        """
        Returns the cached URLs if the sentinel exists, otherwise awaits `fetch`,
        stores the result and returns it.
        """
        if self.exists():
            urls = self.read()
            log.debug(f"Loaded {len(urls)} URLs from cache {self.path}")
            marker = f"/download/{identifier}/"
            if urls and marker not in urls[0]:
                log.warning(
                    f"[yellow]Cached URL list in {self.path} does not look like it"
                    f" belongs to '{identifier}'. Delete it to fetch again.[/yellow]"
                )
            return urls

        urls = await fetch()
        self.write(urls)
        return urls


async def resolve_urls(config: DownloadConfig, api_client) -> list[str]:
    """
    Returns the download URLs for the configured item, reading them from the
    destination's cache file when present and fetching the manifest otherwise.
    """
    cache = UrlCache(config.destination)
    return await cache.get_or_fetch(
        config.identifier,
        lambda: api_client.fetch_download_urls(config.identifier),
    )
