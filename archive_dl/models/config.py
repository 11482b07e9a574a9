"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from typing import Literal

from pydantic import BaseModel, field_validator

DEFAULT_BASE_URL = "https://archive.org"
DEFAULT_JOBS = 4
MAX_JOBS = 300


class DownloadConfig(BaseModel):
    """
    A validated, immutable configuration for a single run. Built once by the CLI
    and passed explicitly to every component.
    """

    identifier: str
    destination: str = "."

    # Download Settings
    quiet: bool = False
    force: bool = False
    jobs: int = DEFAULT_JOBS
    base_url: str = DEFAULT_BASE_URL

    # Listing
    list_mode: Literal["none", "all", "urls"] = "none"

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Identifiers are opaque but must be non-empty and a single path segment."""
        if not v:
            raise ValueError("Identifier cannot be empty.")
        if "/" in v:
            raise ValueError(f"Identifier cannot contain '/': {v}")
        return v

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if not v:
            return "."
        return v

    @field_validator("jobs")
    @classmethod
    def validate_jobs(cls, v: int) -> int:
        """Ensures a reasonable number of parallel downloads."""
        if v < 1 or v > MAX_JOBS:
            raise ValueError(f"Jobs must be between 1 and {MAX_JOBS}.")
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @property
    def is_listing(self) -> bool:
        return self.list_mode != "none"

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns the keys that may be set from the INI file."""
        return {"jobs", "base_url", "quiet", "force"}
