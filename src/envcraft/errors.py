"""Error taxonomy for envcraft.

Every error the CLI reports derives from EnvcraftError and carries the
process exit code to use. Nothing here is retried automatically.
"""


class EnvcraftError(Exception):
    """Base class for all envcraft failures."""
    exit_code = 1


class UsageError(EnvcraftError):
    """Missing or malformed command-line argument."""


class StoreUnavailable(EnvcraftError):
    """The git executable backing the store could not be found."""


class StoreInitFailed(EnvcraftError):
    """Store creation failed and the partial store was removed."""


class NotFound(EnvcraftError):
    """Referenced environment does not exist."""


class Forbidden(EnvcraftError):
    """Operation not allowed on the given environment."""


class AlreadyExists(EnvcraftError):
    """An environment with that name already exists."""


class ConfigError(EnvcraftError):
    """The settings file could not be read."""
