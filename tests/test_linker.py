"""Tests for the workspace linker."""
import os

import pytest

from envcraft.store import EnvironmentStore, KEEP_FILE
from envcraft.workspace import Detached, Linked, WorkspaceLinker


@pytest.fixture
def store(tmp_path):
    store = EnvironmentStore(tmp_path / ".envs")
    store.ensure_initialized(create=True)
    store.create_environment("dev")
    store.switch_to("dev")
    return store


@pytest.fixture
def linker(tmp_path, store):
    return WorkspaceLinker(tmp_path, store)


class TestLink:
    """Tests for link/unlink and the projection state."""

    def test_link_creates_relative_symlinks(self, tmp_path, linker):
        linker.link()

        config = tmp_path / ".config"
        files = tmp_path / "files"
        assert config.is_symlink() and files.is_symlink()
        assert not os.path.isabs(os.readlink(config))
        assert linker.projection() == Linked("dev")

    def test_link_idempotent(self, linker):
        linker.link()
        linker.link()
        assert linker.projection() == Linked("dev")

    def test_edits_land_in_store(self, tmp_path, store, linker):
        linker.link()
        (tmp_path / ".config").write_text("edited")
        (tmp_path / "files" / "a.txt").write_text("a")

        assert store.config_path.read_text() == "edited"
        assert (store.files_path / "a.txt").read_text() == "a"

    def test_link_replaces_plain_copies(self, tmp_path, linker):
        (tmp_path / ".config").write_text("stale")
        (tmp_path / "files").mkdir()
        (tmp_path / "files" / "old.txt").write_text("old")

        linker.link()

        assert linker.projection() == Linked("dev")
        assert not (tmp_path / "files" / "old.txt").exists()

    def test_link_replaces_dangling_symlink(self, tmp_path, linker):
        (tmp_path / ".config").symlink_to(tmp_path / "nowhere")

        linker.link()

        assert (tmp_path / ".config").resolve() == (tmp_path / ".envs" / ".config").resolve()

    def test_unlink_keeps_store_content(self, tmp_path, store, linker):
        linker.link()
        linker.unlink()

        assert not (tmp_path / ".config").exists()
        assert not (tmp_path / "files").exists()
        assert store.config_path.exists()
        assert linker.projection() == Detached()

    def test_projection_without_store(self, tmp_path):
        linker = WorkspaceLinker(tmp_path, EnvironmentStore(tmp_path / ".envs"))
        assert linker.projection() == Detached()


class TestPlainContent:
    """Tests for materialize, import and removal of plain content."""

    def test_materialize_copies_working_tree(self, tmp_path, store, linker):
        store.config_path.write_text("unsaved but current")
        (store.files_path / "sub").mkdir()
        (store.files_path / "sub" / "b.txt").write_text("b")

        linker.materialize()

        config = tmp_path / ".config"
        assert not config.is_symlink()
        assert config.read_text() == "unsaved but current"
        assert (tmp_path / "files" / "sub" / "b.txt").read_text() == "b"
        assert not (tmp_path / "files" / KEEP_FILE).exists()

    def test_materialize_replaces_links(self, tmp_path, store, linker):
        linker.link()
        store.config_path.write_text("content")

        linker.materialize()

        assert not (tmp_path / ".config").is_symlink()
        assert (tmp_path / ".config").read_text() == "content"
        assert not (tmp_path / "files").is_symlink()

    def test_materialize_to_other_destination(self, tmp_path, store, linker):
        destination = tmp_path / "export"
        destination.mkdir()

        linker.materialize(destination)

        assert (destination / ".config").exists()
        assert (destination / "files").is_dir()

    def test_materialize_keeps_plain_when_store_artifact_missing(self, tmp_path, store, linker):
        (tmp_path / ".config").write_text("flat")
        store.config_path.unlink()

        linker.materialize()

        assert (tmp_path / ".config").read_text() == "flat"

    def test_plain_artifacts(self, tmp_path, linker):
        assert linker.plain_artifacts() == []
        (tmp_path / ".config").write_text("flat")
        assert linker.plain_artifacts() == [tmp_path / ".config"]

        linker.link()
        assert linker.plain_artifacts() == []

    def test_import_plain(self, tmp_path, store, linker):
        (tmp_path / ".config").write_text("flat config")
        (tmp_path / "files").mkdir()
        (tmp_path / "files" / "data.bin").write_bytes(b"\x00\x01")

        linker.import_plain()

        assert store.config_path.read_text() == "flat config"
        assert (store.files_path / "data.bin").read_bytes() == b"\x00\x01"
        assert (store.files_path / KEEP_FILE).exists()

    def test_remove_plain(self, tmp_path, linker):
        (tmp_path / ".config").write_text("flat")
        (tmp_path / "files").mkdir()

        linker.remove_plain()

        assert not (tmp_path / ".config").exists()
        assert not (tmp_path / "files").exists()
