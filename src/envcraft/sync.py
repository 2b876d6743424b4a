"""Dirty-state detection and synchronization of the active environment."""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .prompt import Confirm, confirm as ask
from .store import EnvironmentStore

logger = logging.getLogger(__name__)


class SyncOutcome(Enum):
    """What the pre-flight sync did with pending changes."""
    CLEAN = "clean"
    SAVED = "saved"
    DISCARDED = "discarded"


def default_message() -> str:
    return f"Update at {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}"


class SyncEngine:
    """Commits or discards drift between the workspace and the last snapshot."""

    def __init__(self, store: EnvironmentStore, confirm: Confirm = ask):
        self.store = store
        self.confirm = confirm

    def is_dirty(self) -> bool:
        """True if anything differs from the active environment's last commit."""
        self.store.stage_all()
        return self.store.staged_count() > 0

    def sync(self, message: Optional[str] = None) -> Optional[str]:
        """
        Stage and commit every change.

        Returns:
            New commit hash, or None when there was nothing to commit
        """
        self.store.stage_all()
        return self.store.commit_staged(message or default_message())

    def discard(self) -> None:
        self.store.hard_reset()
        logger.info(f"Discarded changes to {self.store.current_environment()}")

    def sync_or_discard_interactive(self) -> SyncOutcome:
        """Ask whether to save pending changes, then save or discard them."""
        if not self.is_dirty():
            return SyncOutcome.CLEAN

        environment = self.store.current_environment()
        if self.confirm(True, f"Save changes to '{environment}'?"):
            self.sync()
            return SyncOutcome.SAVED

        self.discard()
        return SyncOutcome.DISCARDED
