"""Environment lifecycle: new, switch, delete, rename, save, revert, clear.

Each operation composes the store, the sync engine, the confirmation
prompt and the workspace linker in a fixed order. Whenever a store exists,
operations leave the workspace linked to the active environment.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Optional

from .errors import AlreadyExists, NotFound
from .prompt import Confirm, confirm as ask
from .settings import Settings
from .store import EnvironmentStore, GitError, validate_environment_name
from .sync import SyncEngine
from .utils.audit_log import log_transition
from .utils.logging_config import timed_section
from .workspace import WorkspaceLinker

logger = logging.getLogger(__name__)


class EnvironmentManager:
    """Runs lifecycle operations for one working directory."""

    def __init__(
        self,
        workdir: Optional[Path] = None,
        settings: Optional[Settings] = None,
        confirm: Confirm = ask,
        out: Callable[[str], None] = print,
    ):
        """
        Args:
            workdir: Directory holding the workspace artifacts (default: cwd)
            settings: Layout settings (default: loaded for workdir)
            confirm: Yes/no prompt, called as confirm(default, question)
            out: Sink for command output
        """
        self.workdir = Path(workdir) if workdir else Path.cwd()
        self.settings = settings or Settings.load(self.workdir)
        self.confirm = confirm
        self.out = out
        self.store = EnvironmentStore(self.settings.store_path(self.workdir), self.settings)
        self.sync = SyncEngine(self.store, confirm)
        self.linker = WorkspaceLinker(self.workdir, self.store)

    def _active(self) -> Optional[str]:
        """Active environment for audit records, None without a store."""
        if not self.store.exists():
            return None
        try:
            return self.store.current_environment()
        except GitError:
            return None

    @contextmanager
    def _recorded(self, operation: str, **parameters):
        """Time an operation and write its audit record."""
        with timed_section(operation, **parameters):
            try:
                yield
            except (Exception, KeyboardInterrupt) as e:
                error = str(e) or type(e).__name__
                log_transition(self.workdir, operation, self._active(), False, parameters, error)
                raise
        log_transition(self.workdir, operation, self._active(), True, parameters)

    def _has_store(self) -> bool:
        """Flat mode check for operations that never create a store."""
        if self.store.ensure_initialized(create=False):
            return True
        logger.warning(f"No environment store in {self.workdir}; nothing to do")
        return False

    # === Read-only operations ===

    def list_environments(self) -> list[str]:
        """Print environments, marking the active one."""
        if not self.store.ensure_initialized(create=False):
            return []
        current = self.store.current_environment()
        environments = self.store.list_environments()
        for environment in environments:
            marker = "*" if environment == current else " "
            self.out(f"{marker} {environment}")
        return environments

    def diff(self) -> None:
        if not self._has_store():
            return
        with timed_section("diff", self.store.current_environment()):
            self.store.stage_all()
            text = self.store.diff_staged()
            if text:
                self.out(text.rstrip("\n"))
            self.linker.link()

    def status(self) -> None:
        if not self._has_store():
            return
        with timed_section("status", self.store.current_environment()):
            self.store.stage_all()
            self.out(self.store.status().summary())
            self.linker.link()

    def log(self, limit: int = 20) -> None:
        """Print the commit history of the active environment."""
        if not self._has_store():
            return
        for commit in self.store.history(limit=limit):
            self.out(f"{commit.short_hash} {commit.date:%Y-%m-%d %H:%M} {commit.message}")

    # === Transitions ===

    def new(self, name: Optional[str]) -> None:
        """Create an environment and make it active."""
        name = validate_environment_name(name)
        with self._recorded("new", name=name):
            if name == self.store.base_ref:
                raise AlreadyExists(f"environment '{name}' already exists")
            created = not self.store.exists()
            if not created and self.store.ref_exists(name):
                raise AlreadyExists(f"environment '{name}' already exists")

            self.store.ensure_initialized(create=True)
            try:
                base = self._prepare_new(name)
            except (Exception, KeyboardInterrupt):
                # Flat content is still unlinked, so the store must not outlive a failed new.
                if created:
                    logger.warning(f"Removing store created for '{name}' after failure")
                    self.store.destroy()
                raise

            self.linker.link()
            self.out(f"Created environment '{name}' from '{base}'")

    def _prepare_new(self, name: str) -> str:
        """Create and check out `name`, settling flat content. Returns the base used."""
        base = self.store.base_ref
        current = self.store.current_environment()
        if current != base:
            self.sync.sync_or_discard_interactive()
            if self.confirm(False, f"Clone current environment '{current}'?"):
                base = current

        self.store.create_environment(name, base)
        self.store.switch_to(name)

        if self.linker.plain_artifacts():
            if self.confirm(True, "Start with current configuration?"):
                self.linker.import_plain()
                self.sync.sync("Import existing configuration")
            else:
                self.linker.remove_plain()
        return base

    def switch(self, name: Optional[str]) -> None:
        """Make an existing environment active, saving or discarding drift first."""
        name = validate_environment_name(name)
        if not self._has_store():
            return
        with self._recorded("switch", name=name):
            if not self.store.has_environment(name):
                raise NotFound(f"environment '{name}' not found")
            self.sync.sync_or_discard_interactive()
            self.store.switch_to(name)
            self.linker.link()
            self.out(f"Switched to environment '{name}'")

    def delete(self, name: Optional[str]) -> None:
        name = validate_environment_name(name)
        if not self._has_store():
            return
        with self._recorded("delete", name=name):
            self.store.delete_environment(name)
            self.out(f"Deleted environment '{name}'")

    def rename(self, name: Optional[str]) -> None:
        """Rename the active environment."""
        name = validate_environment_name(name)
        if not self._has_store():
            return
        with self._recorded("rename", name=name):
            old_name = self.store.rename_current(name)
            self.linker.link()
            self.out(f"Renamed environment '{old_name}' to '{name}'")

    def save(self, message: Optional[str] = None) -> None:
        if not self._has_store():
            return
        with self._recorded("save", message=message):
            commit = self.sync.sync(message)
            environment = self.store.current_environment()
            if commit:
                self.out(f"Saved '{environment}' ({commit[:8]})")
            else:
                self.out(f"{environment}: nothing to save")
            self.linker.link()

    def revert(self) -> None:
        """Throw away unsaved changes to the active environment."""
        if not self._has_store():
            return
        with self._recorded("revert"):
            self.sync.discard()
            self.linker.link()
            self.out(f"Reverted '{self.store.current_environment()}' to its last save")

    def clear(self) -> None:
        """Remove the store, optionally keeping the active content as plain files."""
        if not self._has_store():
            return
        with self._recorded("clear"):
            self.linker.unlink()
            self.store.ensure_layout()
            self.store.stage_all()
            if self.confirm(True, "Keep current configuration and files?"):
                self.linker.materialize()
            else:
                self.linker.remove_plain()
            self.store.destroy()
            self.out("Removed environment store")
