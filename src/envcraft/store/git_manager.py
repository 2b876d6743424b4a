"""Git plumbing for the environment store.

Provides:
- Repository initialization with a local identity and a named base branch
- Branch listing, creation, checkout, deletion and renaming
- Staging, committing, diffing and status of the working tree
- Hard reset of uncommitted changes
- History viewing

Every command runs with LC_ALL=C and machine-readable output formats so
parsing does not depend on the user's locale.
"""
import logging
import os
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..errors import EnvcraftError, StoreUnavailable
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)


@dataclass
class CommitInfo:
    """Information about a git commit."""
    hash: str
    short_hash: str
    author: str
    date: datetime
    message: str


class GitError(EnvcraftError):
    """Exception raised for git operation failures."""
    pass


class GitLockError(GitError):
    """Another git process holds the index lock."""
    pass


class GitManager:
    """
    Runs git commands against the store directory.

    The store directory is the git work tree; environments are its
    branches. This class knows nothing about environments, only git.
    """

    def __init__(self, repo_path: Path):
        """
        Initialize GitManager.

        Args:
            repo_path: Path to the store directory (will be git root)
        """
        self.repo_path = repo_path

    @with_retry((GitLockError,))
    def _run_git(
        self,
        *args: str,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a git command in the repo directory."""
        cmd = ["git", "-C", str(self.repo_path)] + list(args)
        logger.debug(f"Running: {' '.join(cmd)}")

        env = dict(os.environ, LC_ALL="C", GIT_TERMINAL_PROMPT="0")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,  # We'll handle errors ourselves
                env=env,
            )
        except FileNotFoundError as e:
            raise StoreUnavailable("git executable not found on PATH") from e

        if result.returncode != 0 and "index.lock" in result.stderr:
            logger.warning(f"Git index is locked: {result.stderr.strip()}")
            raise GitLockError(f"Git index is locked: {result.stderr.strip()}")

        if check and result.returncode != 0:
            logger.error(f"Git command failed: {result.stderr.strip()}")
            raise GitError(f"git {args[0]} failed: {result.stderr.strip()}")

        return result

    def is_initialized(self) -> bool:
        """Check if the git repo is initialized."""
        git_dir = self.repo_path / ".git"
        return git_dir.exists()

    def init(
        self,
        base_branch: str,
        author_name: str,
        author_email: str,
    ) -> None:
        """
        Initialize an empty repo whose unborn HEAD points at base_branch.

        Args:
            base_branch: Name of the branch the first commit lands on
            author_name: Local user.name for store commits
            author_email: Local user.email for store commits
        """
        self.repo_path.mkdir(parents=True, exist_ok=True)
        self._run_git("init", "-q")
        self._run_git("symbolic-ref", "HEAD", f"refs/heads/{base_branch}")

        # Configure git
        self._run_git("config", "user.name", author_name)
        self._run_git("config", "user.email", author_email)
        self._run_git("config", "commit.gpgsign", "false")
        self._run_git("config", "core.autocrlf", "false")

        logger.info(f"Initialized git repo at {self.repo_path}")

    # === Branches ===

    def current_branch(self) -> str:
        """Name of the branch HEAD points to."""
        result = self._run_git("symbolic-ref", "--short", "-q", "HEAD")
        return result.stdout.strip()

    def list_branches(self) -> list[str]:
        """All local branch names, sorted."""
        result = self._run_git("for-each-ref", "--format=%(refname:short)", "refs/heads/")
        return sorted(b for b in result.stdout.splitlines() if b)

    def branch_exists(self, name: str) -> bool:
        result = self._run_git(
            "show-ref", "--verify", "--quiet", f"refs/heads/{name}", check=False
        )
        return result.returncode == 0

    def create_branch(self, name: str, start_point: str) -> None:
        self._run_git("branch", name, start_point)
        logger.info(f"Created branch {name} from {start_point}")

    def checkout(self, name: str) -> None:
        self._run_git("checkout", "-q", name)

    def delete_branch(self, name: str) -> None:
        self._run_git("branch", "-D", name)
        logger.info(f"Deleted branch {name}")

    def rename_current_branch(self, new_name: str) -> None:
        self._run_git("branch", "-m", new_name)
        logger.info(f"Renamed current branch to {new_name}")

    # === Working tree ===

    def add_all(self) -> None:
        """Stage additions, modifications and deletions."""
        self._run_git("add", "-A")

    def staged_files(self) -> list[str]:
        """Paths with staged changes relative to HEAD."""
        result = self._run_git("diff", "--cached", "--name-only")
        return [f for f in result.stdout.splitlines() if f]

    def diff_cached(self) -> str:
        """Unified diff of staged changes."""
        result = self._run_git("diff", "--cached", "--no-color")
        return result.stdout

    def status_porcelain(self) -> list[tuple[str, str, Optional[str]]]:
        """`git status --porcelain -z` entries as (code, path, original path)."""
        result = self._run_git("status", "--porcelain", "-z", "--untracked-files=all")
        entries = []
        tokens = iter(result.stdout.split("\0"))
        for token in tokens:
            if not token:
                continue
            code, path = token[:2], token[3:]
            # Renames and copies carry their source path as the next field
            original = next(tokens, None) if "R" in code or "C" in code else None
            entries.append((code, path, original))
        return entries

    def commit(self, message: str) -> Optional[str]:
        """
        Commit whatever is staged.

        Args:
            message: Commit message

        Returns:
            Commit hash if successful, None if nothing to commit
        """
        # Check if there are staged changes
        result = self._run_git("diff", "--cached", "--quiet", check=False)
        if result.returncode == 0:
            logger.debug("No changes to commit")
            return None

        self._run_git("commit", "-q", "-m", message)

        result = self._run_git("rev-parse", "HEAD")
        commit_hash = result.stdout.strip()

        logger.info(f"Committed: {commit_hash[:8]} - {message.splitlines()[0]}")
        return commit_hash

    def reset_hard(self) -> None:
        """Drop staged and unstaged changes, including untracked files."""
        self._run_git("reset", "-q", "--hard", "HEAD")
        self._run_git("clean", "-q", "-f", "-d")

    # === History ===

    def get_history(self, limit: int = 20) -> list[CommitInfo]:
        """
        Get commit history of the current branch.

        Args:
            limit: Maximum commits to return

        Returns:
            List of CommitInfo objects, newest first
        """
        # Format: hash|short|author|date|subject
        format_str = "%H|%h|%an|%aI|%s"
        result = self._run_git("log", f"--format={format_str}", f"-n{limit}", check=False)
        if result.returncode != 0:
            return []

        commits = []
        for line in result.stdout.strip().split("\n"):
            if not line:
                continue

            parts = line.split("|", 4)
            if len(parts) < 5:
                continue

            try:
                commits.append(CommitInfo(
                    hash=parts[0],
                    short_hash=parts[1],
                    author=parts[2],
                    date=datetime.fromisoformat(parts[3]),
                    message=parts[4],
                ))
            except ValueError as e:
                logger.warning(f"Failed to parse commit: {e}")

        return commits
