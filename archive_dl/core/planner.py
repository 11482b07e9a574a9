"""
Turns a list of download URLs into (url, output path) jobs.
"""

import posixpath
from urllib.parse import urlsplit

from pathvalidate import sanitize_filename

from archive_dl.models.manifest import PlanEntry
from archive_dl.utils.codec import decode


def url_basename(url: str) -> str:
    """Returns the last path segment of a URL, still percent-encoded."""
    return posixpath.basename(urlsplit(url).path.rstrip("/"))


def local_name(url: str) -> str:
    """
    Decodes the URL's last segment into a local relative path. Encoded '/' in
    remote names become subdirectories. Characters the local platform cannot
    store are removed from each segment.
    """
    parts = decode(url_basename(url)).split("/")
    return "/".join(sanitize_filename(part, platform="auto") for part in parts)


def plan(urls: list[str], destination: str) -> list[PlanEntry]:
    """
    Builds one PlanEntry per URL, in input order. Duplicates are kept; the
    transfer step decides which entry wins for a given output path.
    """
    prefix = destination.rstrip("/") if destination else "."
    return [
        PlanEntry(url=url, output_path=f"{prefix}/{local_name(url)}") for url in urls
    ]
