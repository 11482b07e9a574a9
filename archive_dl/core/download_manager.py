"""
The main orchestrator: resolves an item's URLs, plans the batch and runs it.
"""

import logging
from pathlib import Path

from rich.markup import escape

from archive_dl.api.client import ArchiveAPIClient
from archive_dl.cli.progress_manager import ProgressManager
from archive_dl.exceptions import DestinationError
from archive_dl.models.config import DownloadConfig
from archive_dl.models.stats import DownloadStats
from archive_dl.storage.url_cache import resolve_urls
from archive_dl.transfer.invoker import TransferInvoker

from .planner import plan

log = logging.getLogger(__name__)


def check_destination(destination: str) -> None:
    """Raises DestinationError unless the destination is an existing directory."""
    if not Path(destination).is_dir():
        raise DestinationError(f"Destination directory does not exist: {destination}")


class DownloadManager:
    """Orchestrates a full download run for one item."""

    def __init__(
        self,
        config: DownloadConfig,
        api_client: ArchiveAPIClient,
        progress_manager: ProgressManager | None = None,
    ):
        self.config = config
        self.api_client = api_client
        self.invoker = TransferInvoker(config, progress_manager)

    @property
    def stats(self) -> DownloadStats:
        return self.invoker.stats

    async def execute_downloads(self) -> int:
        """Downloads every file of the item. Returns the batch exit status."""
        check_destination(self.config.destination)

        urls = await resolve_urls(self.config, self.api_client)
        if not urls:
            log.warning(
                f"[yellow]No files to download for '{escape(self.config.identifier)}'."
                "[/yellow]"
            )
            self.invoker.write_invocation_record([])
            return 0

        batch = plan(urls, self.config.destination)
        log.info(
            f"Downloading {len(batch)} files with up to {self.config.jobs}"
            " parallel transfers..."
        )
        return await self.invoker.execute(batch)
