"""Settings for envcraft.

Values come from three layers, later ones winning:
- Built-in defaults
- An optional envcraft.yaml in the working directory
- Environment variables

Environment variables:
- ENVCRAFT_STORE_DIR: Store directory, relative to the working directory (default: .envs)
- ENVCRAFT_LOG_LEVEL: Console log level (default: WARNING)
- ENVCRAFT_LOG_FILE: Log file path (default: ~/.envcraft/envcraft.log)
- ENVCRAFT_AUDIT_LOG: Audit log path (default: ~/.envcraft/audit.log)
"""
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "envcraft.yaml"
DEFAULT_STATE_DIR = Path.home() / ".envcraft"

# Keys accepted from envcraft.yaml
_FILE_KEYS = (
    "store_dir",
    "config_name",
    "files_name",
    "base_ref",
    "author_name",
    "author_email",
)


@dataclass
class Settings:
    """Layout of the store and workspace, plus log locations."""
    store_dir: str = ".envs"
    config_name: str = ".config"
    files_name: str = "files"
    base_ref: str = "master"
    author_name: str = "envcraft"
    author_email: str = "envcraft@local"
    log_level: str = "WARNING"
    log_file: Path = DEFAULT_STATE_DIR / "envcraft.log"
    audit_log: Path = DEFAULT_STATE_DIR / "audit.log"

    def store_path(self, workdir: Path) -> Path:
        """Absolute store directory for a working directory."""
        return Path(workdir) / self.store_dir

    @classmethod
    def from_file(cls, path: Path) -> "Settings":
        """Load settings from a YAML file, falling back to defaults."""
        settings = cls()
        if not path.exists():
            return settings

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid settings file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"cannot read settings file {path}: {e}") from e

        if not isinstance(data, dict):
            logger.warning(f"Ignoring {path}: expected a mapping, got {type(data).__name__}")
            return settings

        for key, value in data.items():
            if key not in _FILE_KEYS:
                logger.warning(f"Ignoring unknown setting '{key}' in {path}")
                continue
            setattr(settings, key, str(value))

        logger.debug(f"Loaded settings from {path}")
        return settings

    def apply_env(self) -> "Settings":
        """Override values from ENVCRAFT_* environment variables."""
        store_dir = os.environ.get("ENVCRAFT_STORE_DIR")
        if store_dir:
            self.store_dir = store_dir

        self.log_level = os.environ.get("ENVCRAFT_LOG_LEVEL", self.log_level).upper()

        log_file = os.environ.get("ENVCRAFT_LOG_FILE")
        if log_file:
            self.log_file = Path(log_file).expanduser()

        audit_log = os.environ.get("ENVCRAFT_AUDIT_LOG")
        if audit_log:
            self.audit_log = Path(audit_log).expanduser()

        return self

    @classmethod
    def load(cls, workdir: Optional[Path] = None) -> "Settings":
        """Resolve settings for a working directory."""
        workdir = Path(workdir) if workdir else Path.cwd()
        return cls.from_file(workdir / SETTINGS_FILE_NAME).apply_env()

    def to_dict(self) -> dict:
        return {f.name: str(getattr(self, f.name)) for f in fields(self)}
