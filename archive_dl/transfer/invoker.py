"""
Runs a download plan as one bounded, concurrent batch and records an
equivalent curl invocation next to the downloaded files.
"""

import asyncio
import logging
import os
import shlex
from pathlib import Path

from rich.markup import escape

from archive_dl.cli.progress_manager import ProgressManager
from archive_dl.exceptions import TransferError
from archive_dl.models.config import DownloadConfig
from archive_dl.models.manifest import PlanEntry
from archive_dl.models.stats import DownloadStats

from .downloader import Downloader

log = logging.getLogger(__name__)

INVOCATION_FILENAME = "download.sh"


def build_invocation(plan: list[PlanEntry], config: DownloadConfig) -> str:
    """
    Renders the batch as a curl command line, one continuation line per entry.
    Running it reproduces the transfer with the same quiet/force/jobs settings.
    """
    cmd = [
        "curl",
        "-L",
        "--create-dirs",
        "--parallel",
        "--parallel-max",
        str(config.jobs),
        "--parallel-immediate",
    ]
    cmd.append("-s" if config.quiet else "--progress-bar")
    if not config.force:
        cmd.extend(["-C", "-"])

    lines = [" ".join(cmd)]
    lines.extend(
        f"{shlex.quote(entry.url)} -o {shlex.quote(entry.output_path)}"
        for entry in plan
    )
    return "#!/bin/sh\n" + " \\\n  ".join(lines) + "\n"


def dedupe_plan(plan: list[PlanEntry]) -> list[PlanEntry]:
    """
    Keeps only the last entry for each output path, preserving the order of the
    survivors. Dropped entries are logged.
    """
    last_index = {entry.output_path: i for i, entry in enumerate(plan)}
    kept = []
    for i, entry in enumerate(plan):
        if last_index[entry.output_path] == i:
            kept.append(entry)
        else:
            log.warning(
                f"[yellow]Output path collision for '{escape(entry.output_path)}':"
                f" skipping {escape(entry.url)}[/yellow]"
            )
    return kept


def _is_within(path: str, directory: str) -> bool:
    base = Path(directory).resolve()
    target = Path(path).resolve()
    return target != base and base in target.parents


class TransferInvoker:
    """
    Downloads every plan entry with at most `config.jobs` transfers in flight.

    Failures are counted, not raised: the aggregate result is an exit status.
    """

    def __init__(
        self,
        config: DownloadConfig,
        progress_manager: ProgressManager | None = None,
        downloader: Downloader | None = None,
    ):
        self.config = config
        self.progress_manager = progress_manager
        self.downloader = downloader or Downloader(max_workers=config.jobs)
        self.stats = DownloadStats()

    @property
    def invocation_path(self) -> Path:
        return Path(self.config.destination) / INVOCATION_FILENAME

    def write_invocation_record(self, plan: list[PlanEntry]) -> Path:
        """Overwrites `<destination>/download.sh` with the batch command."""
        path = self.invocation_path
        with open(path, "w", encoding="utf-8") as f:
            f.write(build_invocation(plan, self.config))
        log.debug(f"Wrote invocation record to {path}")
        return path

    async def execute(self, plan: list[PlanEntry]) -> int:
        """Runs the whole batch and returns 0 on full success, 1 otherwise."""
        self.write_invocation_record(plan)

        entries = dedupe_plan(plan)
        self.stats.files_total = len(entries)
        if self.progress_manager:
            self.progress_manager.initialize_session(total_files=len(entries))

        semaphore = asyncio.Semaphore(self.config.jobs)
        tasks = [self._transfer(entry, semaphore) for entry in entries]
        await asyncio.gather(*tasks)

        return self.stats.exit_status

    async def _transfer(self, entry: PlanEntry, semaphore: asyncio.Semaphore) -> None:
        name = os.path.basename(entry.output_path)
        async with semaphore:
            task_id = None
            if self.progress_manager:
                task_id = self.progress_manager.add_file_task(name)
            success = False
            try:
                if not _is_within(entry.output_path, self.config.destination):
                    raise TransferError(
                        f"Refusing to write outside destination: {entry.output_path}"
                    )
                result = await self.downloader.download_file(
                    entry.url,
                    entry.output_path,
                    resume=not self.config.force,
                    progress_manager=self.progress_manager,
                    task_id=task_id,
                )
                success = True
                if result.already_complete:
                    self.stats.record_already_complete()
                    log.debug(f"Already complete: {escape(entry.output_path)}")
                else:
                    self.stats.record_success(result.bytes_written, result.resumed)
                    log.debug(
                        f"{'Resumed' if result.resumed else 'Downloaded'}"
                        f" {escape(entry.output_path)} ({result.bytes_written} bytes)"
                    )
            except TransferError as e:
                self.stats.record_failure(entry.output_path, str(e))
                log.error(
                    f"[red]✗ Failed to download '{escape(name)}':"
                    f" {escape(str(e))}[/red]"
                )
            except Exception as e:
                self.stats.record_failure(entry.output_path, str(e))
                log.error(
                    f"[red]✗ An unexpected error occurred for '{escape(name)}':"
                    f" {escape(str(e))}[/red]",
                    exc_info=log.getEffectiveLevel() == logging.DEBUG,
                )
            finally:
                if self.progress_manager and task_id is not None:
                    self.progress_manager.remove_task(task_id, success=success)
