"""Environment store: one git branch per environment.

Handles:
- Creating the store with an empty config file and file tree (all or nothing)
- Listing, creating, switching, deleting and renaming environments
- Staging, committing, diffing and discarding working-tree changes

Directory structure managed (inside the working directory):
    .envs/
    ├── .git/             # History; HEAD is the active environment
    ├── .config           # ConfigFile of the active environment
    └── files/            # FileTree of the active environment
        └── .keep         # Keeps an empty tree tracked
"""
import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..errors import AlreadyExists, Forbidden, NotFound, StoreInitFailed, UsageError
from ..settings import Settings
from ..utils.logging_config import timed
from .git_manager import CommitInfo, GitError, GitManager

logger = logging.getLogger(__name__)

# Placeholder that keeps an empty files/ directory in git
KEEP_FILE = ".keep"

_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


def validate_environment_name(name: Optional[str]) -> str:
    """Check that name is usable as a single branch path segment.

    Raises:
        UsageError: name is empty or not a valid environment name
    """
    if not name:
        raise UsageError("environment name is required")
    if not _NAME_RE.match(name) or ".." in name or name.endswith(".lock"):
        raise UsageError(
            f"invalid environment name '{name}': use letters, digits, '.', '_' and '-'"
        )
    return name


@dataclass
class StatusEntry:
    """One changed path as reported by git status."""
    code: str  # two-letter porcelain code, e.g. "M ", "A ", "D "
    path: str
    original: Optional[str] = None  # source path of a rename or copy


@dataclass
class StoreStatus:
    """Pending changes of the active environment."""
    environment: str
    entries: list[StatusEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def is_clean(self) -> bool:
        return not self.entries

    def summary(self) -> str:
        """Human-readable summary."""
        if self.is_clean:
            return f"{self.environment}: nothing to save"

        lines = [f"{self.environment}: {self.count} pending change(s)"]
        for entry in self.entries:
            if entry.original:
                lines.append(f"  {entry.code} {entry.original} -> {entry.path}")
            else:
                lines.append(f"  {entry.code} {entry.path}")
        return "\n".join(lines)


class EnvironmentStore:
    """
    Versioned store of environments.

    Each environment is a branch; the base branch exists only to seed new
    environments and is hidden from listings.
    """

    def __init__(self, path: Path, settings: Optional[Settings] = None):
        """
        Initialize the environment store.

        Args:
            path: Store directory (git work tree root)
            settings: Layout and identity settings (default: Settings())
        """
        self.path = Path(path)
        self.settings = settings or Settings()
        self.git = GitManager(self.path)

    @property
    def base_ref(self) -> str:
        return self.settings.base_ref

    @property
    def config_path(self) -> Path:
        """Store copy of the ConfigFile."""
        return self.path / self.settings.config_name

    @property
    def files_path(self) -> Path:
        """Store copy of the FileTree."""
        return self.path / self.settings.files_name

    def exists(self) -> bool:
        return self.git.is_initialized()

    # === Initialization ===

    def ensure_initialized(self, create: bool = False) -> bool:
        """
        Make sure the store exists.

        Args:
            create: Create the store if it is missing

        Returns:
            True if a store is available, False in flat mode

        Raises:
            StoreInitFailed: creation failed; nothing is left on disk
        """
        if self.exists():
            return True
        if not create:
            logger.debug(f"No store at {self.path}")
            return False

        existed_before = self.path.exists()
        try:
            self.git.init(
                self.base_ref,
                self.settings.author_name,
                self.settings.author_email,
            )
            self.ensure_layout()
            self.git.add_all()
            self.git.commit("Initialize environment store")
        except (GitError, OSError) as e:
            logger.error(f"Store initialization failed, rolling back: {e}")
            if existed_before:
                shutil.rmtree(self.path / ".git", ignore_errors=True)
            else:
                shutil.rmtree(self.path, ignore_errors=True)
            raise StoreInitFailed(f"could not create store at {self.path}: {e}") from e

        logger.info(f"Created environment store at {self.path}")
        return True

    def ensure_layout(self) -> None:
        """Create a missing ConfigFile or FileTree in the working tree."""
        self.path.mkdir(parents=True, exist_ok=True)
        if not self.config_path.exists():
            self.config_path.touch()
        self.files_path.mkdir(exist_ok=True)
        keep = self.files_path / KEEP_FILE
        if not keep.exists():
            keep.touch()

    def destroy(self) -> None:
        """Delete the whole store, history included."""
        shutil.rmtree(self.path)
        logger.info(f"Removed environment store at {self.path}")

    # === Environments ===

    def list_environments(self) -> list[str]:
        """All environments, excluding the base ref."""
        return [b for b in self.git.list_branches() if b != self.base_ref]

    def current_environment(self) -> str:
        """Name of the active ref."""
        return self.git.current_branch()

    def ref_exists(self, name: str) -> bool:
        """True for any ref, the base ref included."""
        return self.git.branch_exists(name)

    def has_environment(self, name: str) -> bool:
        return name != self.base_ref and self.ref_exists(name)

    @timed("create_environment")
    def create_environment(self, name: str, from_ref: Optional[str] = None) -> None:
        """
        Branch a new environment.

        Args:
            name: New environment name
            from_ref: Environment to clone (default: the base ref)
        """
        validate_environment_name(name)
        from_ref = from_ref or self.base_ref
        if self.git.branch_exists(name):
            raise AlreadyExists(f"environment '{name}' already exists")
        if not self.git.branch_exists(from_ref):
            raise NotFound(f"environment '{from_ref}' not found")
        self.git.create_branch(name, from_ref)

    @timed("switch_to")
    def switch_to(self, name: str) -> None:
        """
        Make name the active environment.

        Uncommitted changes in the working tree are discarded; callers sync
        or confirm before switching.
        """
        if not self.has_environment(name):
            raise NotFound(f"environment '{name}' not found")
        self.hard_reset()
        self.git.checkout(name)
        self.ensure_layout()
        logger.info(f"Switched to environment {name}")

    def delete_environment(self, name: str) -> None:
        if name == self.current_environment():
            raise Forbidden(f"cannot delete '{name}': it is the active environment")
        if not self.has_environment(name):
            raise NotFound(f"environment '{name}' not found")
        self.git.delete_branch(name)

    def rename_current(self, new_name: str) -> str:
        """
        Rename the active environment, keeping its history.

        Returns:
            The previous name
        """
        validate_environment_name(new_name)
        old_name = self.current_environment()
        if old_name == self.base_ref:
            raise Forbidden("no active environment to rename")
        if self.git.branch_exists(new_name):
            raise AlreadyExists(f"environment '{new_name}' already exists")
        self.git.rename_current_branch(new_name)
        return old_name

    # === Changes ===

    def stage_all(self) -> None:
        self.git.add_all()

    @timed("commit_staged")
    def commit_staged(self, message: str) -> Optional[str]:
        """Commit staged changes; a no-op returning None if nothing is staged."""
        return self.git.commit(message)

    def staged_count(self) -> int:
        return len(self.git.staged_files())

    def diff_staged(self) -> str:
        return self.git.diff_cached()

    def status(self) -> StoreStatus:
        entries = [
            StatusEntry(code=code, path=path, original=original)
            for code, path, original in self.git.status_porcelain()
        ]
        return StoreStatus(environment=self.current_environment(), entries=entries)

    def hard_reset(self) -> None:
        """Discard every uncommitted change back to the last commit."""
        self.git.reset_hard()

    def history(self, limit: int = 20) -> list[CommitInfo]:
        return self.git.get_history(limit=limit)
