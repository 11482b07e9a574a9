"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from archive_dl import __version__
from archive_dl.api.client import ArchiveAPIClient
from archive_dl.core.download_manager import DownloadManager, check_destination
from archive_dl.core.listing import list_all, list_urls
from archive_dl.exceptions import IdentifierError
from archive_dl.models.config import DEFAULT_JOBS, DownloadConfig
from archive_dl.storage.config_manager import ConfigManager
from archive_dl.transfer.downloader import close_connection_pool

from .formatters import print_summary_panel
from .progress_manager import ProgressManager

# stdout is reserved for listing output.
console = Console(stderr=True)

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("archive_dl")

app = typer.Typer(
    name="archive-dl",
    help="Download the files of an archive.org item, in parallel and resumably.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "archive-dl"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def configure_logging(quiet: bool, debug: bool) -> None:
    if quiet:
        level = "WARNING"
    elif debug:
        level = "DEBUG"
    else:
        level = "INFO"
    logging.getLogger("archive_dl").setLevel(level)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"archive-dl {__version__}")
        raise typer.Exit()


async def _list_async(config: DownloadConfig) -> None:
    async with ArchiveAPIClient(config.base_url) as api_client:
        if config.list_mode == "all":
            lines = list_all(api_client, config.identifier)
        else:
            lines = list_urls(config, api_client)
        async for line in lines:
            typer.echo(line)


async def _download_async(config: DownloadConfig) -> int:
    async with ArchiveAPIClient(config.base_url) as api_client:
        async with ProgressManager(
            console=console, enabled=not config.quiet
        ) as progress_manager:
            manager = DownloadManager(config, api_client, progress_manager)
            try:
                status = await manager.execute_downloads()
            finally:
                await close_connection_pool()

    if not config.quiet and manager.stats.files_total:
        print_summary_panel(console, manager.stats)
    return status


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def download(
    identifier: str | None = typer.Argument(
        None, help="Identifier of the archive.org item.", show_default=False
    ),
    destination: str = typer.Argument(
        ".", help="Destination directory (default: current directory)."
    ),
    quiet: bool = typer.Option(
        False, "-q", "--quiet", help="Do not output any message."
    ),
    force: bool = typer.Option(
        False, "-f", "--force", help="Overwrite existing files instead of resuming."
    ),
    jobs: int | None = typer.Option(
        None,
        "-j",
        "--jobs",
        min=1,
        help=f"Number of parallel downloads (default: {DEFAULT_JOBS}).",
        show_default=False,
    ),
    list_files: bool = typer.Option(
        False, "--list", help="List available files with their sizes and exit."
    ),
    list_only_urls: bool = typer.Option(
        False, "--list-urls", help="List available URLs only (useful for piping)."
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Show version information and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> int:
    """
    Download files from archive.org with a given identifier.

    Example: [cyan]archive-dl "archiveteam-warrior-20210509" /tmp[/cyan]
    """
    if not identifier or not identifier.strip():
        raise IdentifierError("Identifier not provided")

    if list_only_urls:
        list_mode = "urls"
    elif list_files:
        list_mode = "all"
    else:
        list_mode = "none"

    cli_options = {
        "identifier": identifier,
        "destination": destination,
        "quiet": quiet or None,
        "force": force or None,
        "jobs": jobs,
        "list_mode": list_mode,
    }
    config = ConfigManager(CONFIG_FILE).load_config(cli_options)
    configure_logging(config.quiet, debug)

    if config.is_listing:
        asyncio.run(_list_async(config))
        return 0

    check_destination(config.destination)
    log.info("Downloading files from archive.org...")
    return asyncio.run(_download_async(config))
