"""
Manages loading and saving of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from img_fetcher.exceptions import ConfigurationError
from img_fetcher.models.config import DEFAULT_USER_AGENT, FetchConfig

log = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "attribute": "src",
    "output_dir": ".",
    "max_workers": 8,
    "sequential": False,
    "timeout": 30.0,
    "user_agent": DEFAULT_USER_AGENT,
}


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> FetchConfig:
        """
        Loads persistent settings from the INI file, applies CLI overrides, and
        validates the result. A missing file means built-in defaults.

        Args:
            cli_options: A dictionary of options provided via the command line.
                Must include ``source_url`` and ``selector``.

        Returns:
            A validated FetchConfig object.

        Raises:
            ConfigurationError: If the file cannot be parsed or validation fails.
        """
        settings = self._get_config_as_dict()
        if cli_options:
            settings.update(cli_options)

        try:
            return FetchConfig(
                **settings, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a complete configuration file.

        Args:
            settings: Values to store instead of the defaults.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}
        settings = settings or {}

        for key in sorted(FetchConfig.get_ini_keys()):
            value = settings.get(key, DEFAULTS.get(key))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        if not self.config_file_path.is_file():
            log.debug(f"No config file at '{self.config_file_path}'; using defaults.")
            return dict(DEFAULTS)

        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
            section = self._parser["DEFAULT"]
            return {
                "attribute": section.get("attribute", DEFAULTS["attribute"]),
                "output_dir": section.get("output_dir", DEFAULTS["output_dir"]),
                "max_workers": section.getint("max_workers", DEFAULTS["max_workers"]),
                "sequential": section.getboolean("sequential", DEFAULTS["sequential"]),
                "timeout": section.getfloat("timeout", DEFAULTS["timeout"]),
                "user_agent": section.get("user_agent", DEFAULTS["user_agent"]),
            }
        except (configparser.Error, ValueError) as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e
