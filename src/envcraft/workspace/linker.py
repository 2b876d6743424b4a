"""Projection of the active environment into the working directory.

The workspace exposes the ConfigFile and the FileTree at the root of the
working directory in one of two representations:

- Linked: both are symlinks into the store working tree, so edits land
  directly in the active environment.
- Detached: both are plain files/directories (flat mode, or while the
  store is being cleared).
"""
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..store import EnvironmentStore, KEEP_FILE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Linked:
    """Workspace artifacts are symlinks into the store."""
    environment: str


@dataclass(frozen=True)
class Detached:
    """Workspace artifacts, if any, are plain content."""


Projection = Union[Linked, Detached]


def _remove(path: Path) -> None:
    """Remove a file, symlink or directory tree if present."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


class WorkspaceLinker:
    """Links, unlinks and materializes the workspace artifacts."""

    def __init__(self, workdir: Path, store: EnvironmentStore):
        self.workdir = Path(workdir)
        self.store = store

    @property
    def config_link(self) -> Path:
        return self.workdir / self.store.settings.config_name

    @property
    def files_link(self) -> Path:
        return self.workdir / self.store.settings.files_name

    def _pairs(self) -> list[tuple[Path, Path]]:
        """(workspace path, store path) for both artifacts."""
        return [
            (self.config_link, self.store.config_path),
            (self.files_link, self.store.files_path),
        ]

    def projection(self) -> Projection:
        """Report which representation the workspace is in."""
        if not self.store.exists():
            return Detached()
        for link, target in self._pairs():
            if not link.is_symlink() or link.resolve() != target.resolve():
                return Detached()
        return Linked(self.store.current_environment())

    def link(self) -> None:
        """Point both workspace artifacts at the store. Idempotent."""
        self.store.ensure_layout()
        for link, target in self._pairs():
            if link.is_symlink() and link.resolve() == target.resolve():
                continue
            if link.is_symlink() or link.exists():
                logger.debug(f"Replacing stale {link}")
                _remove(link)
            relative = os.path.relpath(target, link.parent)
            link.symlink_to(relative, target_is_directory=target.is_dir())
        logger.debug(f"Linked workspace at {self.workdir}")

    def unlink(self) -> None:
        """Remove the symlinks; plain content and store content are untouched."""
        for link, _ in self._pairs():
            if link.is_symlink():
                link.unlink()

    def plain_artifacts(self) -> list[Path]:
        """Workspace artifacts that exist as plain content."""
        return [
            link for link, _ in self._pairs()
            if link.exists() and not link.is_symlink()
        ]

    def remove_plain(self) -> None:
        """Delete plain workspace artifacts."""
        for path in self.plain_artifacts():
            _remove(path)
            logger.info(f"Removed {path}")

    def import_plain(self) -> None:
        """Copy plain workspace artifacts into the store working tree."""
        self.store.ensure_layout()
        if self.config_link.is_file() and not self.config_link.is_symlink():
            shutil.copy2(self.config_link, self.store.config_path)
        if self.files_link.is_dir() and not self.files_link.is_symlink():
            shutil.rmtree(self.store.files_path)
            shutil.copytree(self.files_link, self.store.files_path, symlinks=True)
            (self.store.files_path / KEEP_FILE).touch()
        logger.info(f"Imported plain workspace content into {self.store.current_environment()}")

    def materialize(self, destination: Optional[Path] = None) -> None:
        """
        Copy the store working tree's artifacts into plain content.

        Existing content at the destination is replaced, except that an
        artifact missing from the store leaves existing plain content alone.

        Args:
            destination: Target directory (default: the working directory)
        """
        destination = Path(destination) if destination else self.workdir
        settings = self.store.settings

        config_dst = destination / settings.config_name
        if self.store.config_path.is_file():
            _remove(config_dst)
            shutil.copy2(self.store.config_path, config_dst)
        elif not config_dst.exists() or config_dst.is_symlink():
            _remove(config_dst)
            config_dst.touch()

        files_dst = destination / settings.files_name
        if self.store.files_path.is_dir():
            _remove(files_dst)
            shutil.copytree(
                self.store.files_path,
                files_dst,
                symlinks=True,
                ignore=shutil.ignore_patterns(KEEP_FILE),
            )
        elif not files_dst.exists() or files_dst.is_symlink():
            _remove(files_dst)
            files_dst.mkdir()

        logger.info(f"Materialized store content into {destination}")
