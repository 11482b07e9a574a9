"""
Dataclass for tracking download session statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Tracks the outcome of every plan entry in a download session."""

    files_total: int = 0
    files_completed: int = 0
    files_resumed: int = 0
    files_already_complete: int = 0
    files_failed: int = 0
    bytes_downloaded: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list, repr=False)
    _start_time: float = field(default_factory=time.monotonic, repr=False)

    def record_success(self, nbytes: int, resumed: bool = False) -> None:
        self.files_completed += 1
        self.bytes_downloaded += nbytes
        if resumed:
            self.files_resumed += 1

    def record_already_complete(self) -> None:
        self.files_already_complete += 1

    def record_failure(self, output_path: str, reason: str) -> None:
        self.files_failed += 1
        self.failures.append((output_path, reason))

    @property
    def duration(self) -> float:
        return time.monotonic() - self._start_time

    @property
    def exit_status(self) -> int:
        """0 when nothing failed, 1 otherwise."""
        return 1 if self.files_failed else 0
