"""Versioned environment store backed by git.

This package provides:
- EnvironmentStore: branch-per-environment store operations
- StoreStatus/StatusEntry: pending changes of the active environment
- GitManager: the git plumbing underneath
"""

from .store import (
    EnvironmentStore,
    StoreStatus,
    StatusEntry,
    KEEP_FILE,
    validate_environment_name,
)
from .git_manager import GitManager, CommitInfo, GitError, GitLockError

__all__ = [
    "EnvironmentStore",
    "StoreStatus",
    "StatusEntry",
    "KEEP_FILE",
    "validate_environment_name",
    "GitManager",
    "CommitInfo",
    "GitError",
    "GitLockError",
]
