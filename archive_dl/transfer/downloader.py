"""
Handles the low-level downloading of files over HTTP with resume support.
"""

import asyncio
import logging
import os
from dataclasses import dataclass

import aiofiles
import aiohttp
from rich.progress import TaskID

from archive_dl import __version__
from archive_dl.cli.progress_manager import ProgressManager
from archive_dl.exceptions import TransferError

log = logging.getLogger(__name__)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()

CHUNK_SIZE = 262144  # 256 KB


async def get_connection_pool(max_workers: int = 4) -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    This function ensures that only one connection pool is created for the
    lifetime of the application run.

    Args:
        max_workers: Maximum concurrent connections (should match config.jobs).
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=max_workers * 2,
            limit_per_host=max_workers,
            ttl_dns_cache=600,
            keepalive_timeout=30,
            enable_cleanup_closed=True,
        )
        # No total timeout: large items can take hours.
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
        _connection_pool = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={
                "User-Agent": f"archive-dl/{__version__}",
                # Byte ranges must refer to the stored representation.
                "Accept-Encoding": "identity",
            },
        )
        log.debug(f"Created download pool with limit_per_host={max_workers}")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared downloader connection pool closed.")


@dataclass
class TransferResult:
    """What happened to one file."""

    output_path: str
    bytes_written: int = 0
    resumed: bool = False
    already_complete: bool = False


class Downloader:
    """
    A resumable single-file downloader.

    With resume enabled and a non-empty file already on disk, the request asks
    for the remaining bytes only. A 206 reply is appended, a 416 reply means the
    file is already whole, and a plain 200 reply rewrites the file from scratch.
    There is no retry: a failed file is left as is and resumes on the next run.
    """

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers

    async def download_file(
        self,
        url: str,
        destination_path: str,
        resume: bool = True,
        progress_manager: ProgressManager | None = None,
        task_id: TaskID | None = None,
    ) -> TransferResult:
        existing = 0
        if resume:
            existing = await asyncio.to_thread(_local_size, destination_path)

        headers = {}
        if existing > 0:
            headers["Range"] = f"bytes={existing}-"

        result = TransferResult(output_path=destination_path)
        try:
            session = await get_connection_pool(self.max_workers)
            async with session.get(
                url, headers=headers, allow_redirects=True
            ) as response:
                if existing > 0 and response.status == 416:
                    log.debug(
                        f"'{os.path.basename(destination_path)}' is already complete."
                    )
                    result.already_complete = True
                    if progress_manager and task_id is not None:
                        progress_manager.update_task_total(task_id, total=existing)
                        progress_manager.update_task_progress(
                            task_id, completed=existing
                        )
                    return result

                response.raise_for_status()

                if existing > 0 and response.status == 206:
                    mode = "ab"
                    offset = existing
                    result.resumed = True
                else:
                    if existing > 0:
                        log.debug(
                            f"Server ignored range request for "
                            f"'{os.path.basename(destination_path)}', restarting."
                        )
                    mode = "wb"
                    offset = 0

                content_length = response.headers.get("Content-Length")
                if progress_manager and task_id is not None and content_length:
                    progress_manager.update_task_total(
                        task_id, total=offset + int(content_length)
                    )

                await asyncio.to_thread(_ensure_parent, destination_path)
                async with aiofiles.open(destination_path, mode) as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        await f.write(chunk)
                        result.bytes_written += len(chunk)
                        if progress_manager and task_id is not None:
                            progress_manager.update_task_progress(
                                task_id, completed=offset + result.bytes_written
                            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferError(f"{url}: {e or type(e).__name__}") from e
        except OSError as e:
            raise TransferError(f"{destination_path}: {e}") from e
        return result


def _local_size(path: str) -> int:
    try:
        return os.path.getsize(path) if os.path.isfile(path) else 0
    except OSError:
        return 0


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
