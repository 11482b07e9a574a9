"""
Records describing an item's manifest and the download plan derived from it.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, field_validator


class FileEntry(BaseModel):
    """One file of a remote item, as listed by the metadata endpoint."""

    name: str
    size: int | None = None

    class Config:
        frozen = True

    @field_validator("size", mode="before")
    @classmethod
    def coerce_size(cls, v: Any) -> int | None:
        """The metadata API reports sizes as strings; missing or blank means unknown."""
        if v is None or v == "":
            return None
        return int(v)


@dataclass(frozen=True)
class PlanEntry:
    """A single download job: where to fetch from and where to write."""

    url: str
    output_path: str
