"""
Manages loading and validation of the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from archive_dl.exceptions import ConfigurationError
from archive_dl.models.config import DownloadConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """
    Merges the INI config file with command-line options into a DownloadConfig.

    The file is optional. Values given on the command line take precedence over
    values from the file, which take precedence over the model defaults.
    """

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> DownloadConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.
            Keys with a None value are treated as not given.

        Returns:
            A validated DownloadConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
                config_from_file = self._get_config_as_dict()
            except (configparser.Error, ValueError) as e:
                raise ConfigurationError(
                    f"Error parsing configuration file '{self.config_file_path}': {e}"
                ) from e
            log.debug(f"Loaded configuration from {self.config_file_path}")

        if cli_options:
            config_from_file.update(
                {k: v for k, v in cli_options.items() if v is not None}
            )

        try:
            return DownloadConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the known keys of the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        unknown = set(section.keys()) - DownloadConfig.get_ini_keys()
        if unknown:
            log.warning(
                f"[yellow]Ignoring unknown config keys: {', '.join(sorted(unknown))}"
                "[/yellow]"
            )

        values: dict[str, Any] = {}
        if "jobs" in section:
            values["jobs"] = section.getint("jobs")
        if "base_url" in section:
            values["base_url"] = section.get("base_url")
        if "quiet" in section:
            values["quiet"] = section.getboolean("quiet")
        if "force" in section:
            values["force"] = section.getboolean("force")
        return values
