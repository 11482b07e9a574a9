"""
Manages a Rich progress display for concurrent file downloads: one bar for the
whole batch plus one bar per active transfer.
"""

import asyncio

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    BarColumn,
    DownloadColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)


class ProgressManager:
    """
    Tracks active downloads. With `enabled=False` (quiet mode) nothing is drawn.
    """

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=False,
        )
        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            console=console,
        )

        self._finished = 0
        self._failed = 0
        self._overall_task_id: TaskID | None = None
        self._live: Live | None = None

    def initialize_session(self, total_files: int):
        if self.enabled:
            self._overall_task_id = self.overall_progress.add_task(
                "Overall Progress", total=total_files, start=True
            )

    def add_file_task(self, description: str, total_size: int | None = None) -> TaskID:
        if not self.enabled:
            return None
        if len(description) > 40:
            description = description[:37] + "..."
        return self.progress.add_task(description, total=total_size, start=True)

    def update_task_progress(self, task_id: TaskID, completed: int):
        if task_id is not None and self.enabled:
            self.progress.update(task_id, completed=completed)

    def update_task_total(self, task_id: TaskID, total: int):
        if task_id is not None and self.enabled:
            self.progress.update(task_id, total=total)

    def remove_task(self, task_id: TaskID, success: bool = True):
        self._finished += 1
        if not success:
            self._failed += 1
        if task_id is None or not self.enabled:
            return
        try:
            self.progress.remove_task(task_id)
        except KeyError:
            pass
        if self._overall_task_id is not None:
            description = "Overall Progress"
            if self._failed:
                description += f" [red]({self._failed} failed)[/red]"
            self.overall_progress.update(
                self._overall_task_id,
                completed=self._finished,
                description=description,
            )

    async def __aenter__(self):
        if self.enabled:
            self._live = Live(
                Group(self.overall_progress, self.progress),
                console=self.console,
                refresh_per_second=10,
            )
            self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.1)
            self._live.stop()
            self._live = None
