"""envcraft: named, switchable environments for a config file and a file tree.

Each environment is a branch in a git store under the working directory;
the active one is symlinked into the workspace as .config and files/.
"""

__version__ = "0.1.0"

from .errors import (
    EnvcraftError,
    UsageError,
    StoreUnavailable,
    StoreInitFailed,
    NotFound,
    Forbidden,
    AlreadyExists,
    ConfigError,
)
from .lifecycle import EnvironmentManager
from .settings import Settings

__all__ = [
    "__version__",
    "EnvcraftError",
    "UsageError",
    "StoreUnavailable",
    "StoreInitFailed",
    "NotFound",
    "Forbidden",
    "AlreadyExists",
    "ConfigError",
    "EnvironmentManager",
    "Settings",
]
