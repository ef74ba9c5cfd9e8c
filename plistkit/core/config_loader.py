"""Configuration loader for plistkit.yaml files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .log import get_logger
from .types import DiffOptions

logger = get_logger(__name__)

CONFIG_FILE_NAME = "plistkit.yaml"

_BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class LoggingOptions:
    """Logging section of the configuration.

    Attributes:
        level: Level name such as ``"INFO"``.
        file: Optional log file path (``~`` allowed).
        max_size_mb: Size at which the log file rotates, 0 for never.
        backups: Number of rotated log files to keep.
    """

    level: str = "INFO"
    file: Optional[str] = None
    max_size_mb: int = 0
    backups: int = 0

    @property
    def max_bytes(self) -> int:
        return self.max_size_mb * _BYTES_PER_MB

    @staticmethod
    def from_dict(d: Optional[Dict[str, Any]]) -> "LoggingOptions":
        if not d:
            return LoggingOptions()
        return LoggingOptions(
            level=str(d.get("level") or "INFO").upper(),
            file=d.get("file"),
            max_size_mb=int(d.get("max_size_mb") or 0),
            backups=int(d.get("backups") or 0),
        )


class ConfigLoader:
    """Handles loading and parsing of plistkit.yaml configuration files."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize config loader.

        Args:
            config_path: Path to plistkit.yaml file. If None, looks in current
                directory and parent directories.
        """
        self.config_path = self._find_config_file(config_path)
        self._config: Optional[Dict[str, Any]] = None

    def _find_config_file(
        self, config_path: Optional[Union[str, Path]] = None
    ) -> Optional[Path]:
        if config_path is not None:
            path = Path(config_path).expanduser()
            if path.exists():
                return path
            return None

        current = Path.cwd()
        while current != current.parent:
            candidate = current / CONFIG_FILE_NAME
            if candidate.exists():
                return candidate
            current = current.parent

        # Check root directory
        candidate = current / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

        return None

    def load(self) -> Dict[str, Any]:
        """Load the configuration file.

        Returns:
            Parsed configuration dictionary, or empty dict if no config file.

        Raises:
            ValueError: If the config file is invalid YAML or not a mapping.
        """
        if self.config_path is None:
            return {}

        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(
                f"Invalid {CONFIG_FILE_NAME} at {self.config_path}: {e}"
            ) from e
        except OSError as e:
            logger.warning("Could not read %s: %s", self.config_path, e)
            return {}

        if not isinstance(loaded, dict):
            raise ValueError(
                f"Invalid {CONFIG_FILE_NAME} at {self.config_path}: expected a mapping"
            )
        self._config = loaded
        return self._config

    def settings_path(self) -> Optional[Path]:
        """Path of the default settings document, if configured."""
        value = self.load().get("settings")
        if not value:
            return None
        return Path(str(value)).expanduser()

    def logging_options(self) -> LoggingOptions:
        return LoggingOptions.from_dict(self.load().get("logging"))

    def diff_options(self) -> DiffOptions:
        """Diff defaults from the ``diff`` section.

        Raises:
            ValueError: If ``output_types`` names an unknown record kind.
        """
        return DiffOptions.from_dict(self.load().get("diff"))
