"""
Async client for the archive.org item metadata API.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from archive_dl import __version__
from archive_dl.exceptions import MetadataError
from archive_dl.models.config import DEFAULT_BASE_URL
from archive_dl.models.manifest import FileEntry
from archive_dl.utils.codec import encode

log = logging.getLogger(__name__)


def build_download_url(
    identifier: str, filename: str, base_url: str = DEFAULT_BASE_URL
) -> str:
    """Returns the download URL of a file within an item. Pure, no I/O."""
    return f"{base_url}/download/{identifier}/{encode(filename)}"


class ArchiveAPIClient:
    """
    Fetches and parses item manifests from the metadata endpoint.

    A request that fails, or a body that is not a JSON object with a `files`
    array, raises MetadataError. There is no retry.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url.rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "User-Agent": f"archive-dl/{__version__}",
                    "Accept": "application/json",
                },
                timeout=aiohttp.ClientTimeout(total=60, connect=15, sock_read=30),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "ArchiveAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def metadata_url(self, identifier: str) -> str:
        return f"{self.base_url}/metadata/{identifier}"

    def download_url(self, identifier: str, filename: str) -> str:
        return build_download_url(identifier, filename, self.base_url)

    async def fetch_metadata(self, identifier: str) -> Dict[str, Any]:
        """Returns the raw metadata document for an item."""
        await self._initialize_session()
        url = self.metadata_url(identifier)
        log.debug(f"Fetching metadata: {url}")
        try:
            async with self._session.get(url) as r:
                r.raise_for_status()
                # archive.org sometimes labels JSON as text/plain
                data = await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise MetadataError(
                f"Failed to fetch metadata for '{identifier}': {e}"
            ) from e
        except ValueError as e:
            raise MetadataError(
                f"Metadata for '{identifier}' is not valid JSON: {e}"
            ) from e

        if not isinstance(data, dict):
            raise MetadataError(f"Unexpected metadata format for '{identifier}'.")
        return data

    async def fetch_manifest(self, identifier: str) -> List[FileEntry]:
        """Returns the item's files in the order the service lists them."""
        data = await self.fetch_metadata(identifier)
        files = data.get("files")
        if not isinstance(files, list):
            raise MetadataError(f"No files found for identifier '{identifier}'.")

        entries = []
        for raw in files:
            if not isinstance(raw, dict) or not raw.get("name"):
                log.debug(f"Skipping manifest entry without a name: {raw!r}")
                continue
            try:
                entries.append(FileEntry(name=raw["name"], size=raw.get("size")))
            except ValidationError as e:
                raise MetadataError(
                    f"Invalid manifest entry for '{identifier}': {raw.get('name')}"
                ) from e
        log.debug(f"Manifest for '{identifier}' has {len(entries)} files.")
        return entries

    async def fetch_download_urls(self, identifier: str) -> List[str]:
        """Fetches the manifest and maps every file to its download URL."""
        manifest = await self.fetch_manifest(identifier)
        return [self.download_url(identifier, entry.name) for entry in manifest]
