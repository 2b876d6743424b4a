"""Tests for the git-backed environment store."""
import pytest

from envcraft.errors import AlreadyExists, Forbidden, NotFound, StoreInitFailed, UsageError
from envcraft.store import (
    CommitInfo,
    EnvironmentStore,
    GitError,
    GitManager,
    KEEP_FILE,
    StatusEntry,
    validate_environment_name,
)


class TestGitManager:
    """Tests for GitManager."""

    @pytest.fixture
    def temp_repo(self, tmp_path):
        """Create an initialized GitManager in a temporary directory."""
        git = GitManager(tmp_path / "repo")
        git.init("master", "tester", "tester@local")
        return git

    def test_init_creates_repo(self, temp_repo):
        """Test git init creates a .git directory on the base branch."""
        assert temp_repo.is_initialized()
        assert (temp_repo.repo_path / ".git").exists()
        assert temp_repo.current_branch() == "master"

    def test_commit_no_changes(self, temp_repo):
        """Test commit with nothing staged returns None."""
        assert temp_repo.commit("Empty commit") is None

    def test_commit_with_file(self, temp_repo):
        """Test commit after staging a new file."""
        (temp_repo.repo_path / "test.txt").write_text("Hello, World!")
        temp_repo.add_all()

        result = temp_repo.commit("Add test file")

        assert result is not None
        assert len(result) == 40  # Full SHA
        assert temp_repo.staged_files() == []

    def test_branches(self, temp_repo):
        """Test branch creation, rename and deletion."""
        (temp_repo.repo_path / "a.txt").write_text("a")
        temp_repo.add_all()
        temp_repo.commit("Initial")

        temp_repo.create_branch("dev", "master")
        assert temp_repo.branch_exists("dev")
        assert temp_repo.list_branches() == ["dev", "master"]

        temp_repo.checkout("dev")
        temp_repo.rename_current_branch("stage")
        assert temp_repo.current_branch() == "stage"
        assert not temp_repo.branch_exists("dev")

        temp_repo.checkout("master")
        temp_repo.delete_branch("stage")
        assert temp_repo.list_branches() == ["master"]

    def test_reset_hard_removes_untracked(self, temp_repo):
        """Test reset_hard drops modifications and new files."""
        tracked = temp_repo.repo_path / "tracked.txt"
        tracked.write_text("original")
        temp_repo.add_all()
        temp_repo.commit("Initial")

        tracked.write_text("modified")
        (temp_repo.repo_path / "untracked.txt").write_text("new")
        temp_repo.reset_hard()

        assert tracked.read_text() == "original"
        assert not (temp_repo.repo_path / "untracked.txt").exists()

    def test_get_history(self, temp_repo):
        """Test getting commit history, newest first."""
        for i in range(3):
            (temp_repo.repo_path / f"file{i}.txt").write_text(f"Content {i}")
            temp_repo.add_all()
            temp_repo.commit(f"Add file {i}")

        history = temp_repo.get_history(limit=2)

        assert len(history) == 2
        assert all(isinstance(c, CommitInfo) for c in history)
        assert history[0].message == "Add file 2"
        assert history[0].author == "tester"

    def test_failed_command_raises(self, temp_repo):
        """Test a failing git command raises GitError."""
        with pytest.raises(GitError):
            temp_repo.checkout("does-not-exist")


class TestValidateEnvironmentName:
    """Tests for environment name validation."""

    @pytest.mark.parametrize("name", ["dev", "prod-2", "feature_x", "v1.2"])
    def test_valid(self, name):
        assert validate_environment_name(name) == name

    @pytest.mark.parametrize("name", ["", None, "a/b", "-dev", ".hidden", "a..b", "x.lock", "with space"])
    def test_invalid(self, name):
        with pytest.raises(UsageError):
            validate_environment_name(name)


class TestEnvironmentStore:
    """Tests for EnvironmentStore."""

    @pytest.fixture
    def store(self, tmp_path):
        store = EnvironmentStore(tmp_path / ".envs")
        store.ensure_initialized(create=True)
        return store

    def test_missing_store_is_flat_mode(self, tmp_path):
        """Without create, a missing store is reported, not created."""
        store = EnvironmentStore(tmp_path / ".envs")

        assert store.ensure_initialized(create=False) is False
        assert not (tmp_path / ".envs").exists()

    def test_initialize_layout(self, store):
        """A new store has an empty config, an empty file tree and one commit."""
        assert store.exists()
        assert store.config_path.read_text() == ""
        assert sorted(p.name for p in store.files_path.iterdir()) == [KEEP_FILE]
        assert store.current_environment() == "master"
        assert len(store.history()) == 1

    def test_initialize_idempotent(self, store):
        assert store.ensure_initialized(create=True) is True
        assert len(store.history()) == 1

    def test_initialize_rolls_back_on_failure(self, tmp_path, monkeypatch):
        """A failed creation leaves nothing on disk."""
        def failing_commit(self, message):
            raise GitError("boom")

        monkeypatch.setattr(GitManager, "commit", failing_commit)
        store = EnvironmentStore(tmp_path / ".envs")

        with pytest.raises(StoreInitFailed):
            store.ensure_initialized(create=True)
        assert not (tmp_path / ".envs").exists()

    def test_list_excludes_base(self, store):
        store.create_environment("dev")
        store.create_environment("prod")

        assert store.list_environments() == ["dev", "prod"]

    def test_create_collision(self, store):
        store.create_environment("dev")

        with pytest.raises(AlreadyExists):
            store.create_environment("dev")

    def test_create_from_missing_ref(self, store):
        with pytest.raises(NotFound):
            store.create_environment("dev", "ghost")

    def test_switch_missing(self, store):
        with pytest.raises(NotFound):
            store.switch_to("missing-env")
        assert store.current_environment() == "master"

    def test_switch_to_base_not_allowed(self, store):
        """The base ref is not an environment."""
        store.create_environment("dev")
        store.switch_to("dev")

        with pytest.raises(NotFound):
            store.switch_to("master")

    def test_switch_discards_uncommitted(self, store):
        store.create_environment("dev")
        store.create_environment("prod")
        store.switch_to("dev")
        store.config_path.write_text("unsaved")

        store.switch_to("prod")

        assert store.current_environment() == "prod"
        assert store.config_path.read_text() == ""

    def test_delete_active_forbidden(self, store):
        store.create_environment("dev")
        store.switch_to("dev")

        with pytest.raises(Forbidden, match="dev"):
            store.delete_environment("dev")
        assert store.list_environments() == ["dev"]

    def test_delete_inactive(self, store):
        store.create_environment("dev")
        store.create_environment("prod")
        store.switch_to("prod")

        store.delete_environment("dev")

        assert store.list_environments() == ["prod"]

    def test_delete_base_not_found(self, store):
        store.create_environment("dev")
        store.switch_to("dev")

        with pytest.raises(NotFound):
            store.delete_environment("master")

    def test_rename_current(self, store):
        store.create_environment("dev")
        store.switch_to("dev")

        assert store.rename_current("stage") == "dev"
        assert store.current_environment() == "stage"
        assert store.list_environments() == ["stage"]

    def test_rename_collision(self, store):
        store.create_environment("dev")
        store.create_environment("prod")
        store.switch_to("dev")

        with pytest.raises(AlreadyExists):
            store.rename_current("prod")

    def test_rename_base_forbidden(self, store):
        with pytest.raises(Forbidden):
            store.rename_current("dev")

    def test_status_and_diff(self, store):
        """Staged changes show up in status entries and the diff."""
        store.create_environment("dev")
        store.switch_to("dev")
        store.config_path.write_text("hello\n")
        (store.files_path / "new.txt").write_text("x")

        store.stage_all()
        status = store.status()

        assert status.environment == "dev"
        assert status.count == 2
        assert StatusEntry("M ", ".config") in status.entries
        assert StatusEntry("A ", "files/new.txt") in status.entries
        assert "+hello" in store.diff_staged()
        assert "2 pending change(s)" in status.summary()

    def test_status_reports_real_paths(self, store):
        """Paths with spaces, non-ASCII names and renames come back unquoted."""
        store.create_environment("dev")
        store.switch_to("dev")
        (store.files_path / "old.txt").write_text("same content\n")
        store.stage_all()
        store.commit_staged("add old")

        (store.files_path / "old.txt").rename(store.files_path / "new.txt")
        (store.files_path / "ä b.txt").write_text("x")
        store.stage_all()
        status = store.status()

        assert StatusEntry("R ", "files/new.txt", "files/old.txt") in status.entries
        assert StatusEntry("A ", "files/ä b.txt") in status.entries
        assert "files/old.txt -> files/new.txt" in status.summary()

    def test_commit_staged_noop(self, store):
        store.stage_all()
        assert store.commit_staged("nothing") is None
        assert store.status().is_clean

    def test_ensure_layout_restores_missing(self, store):
        store.config_path.unlink()
        (store.files_path / KEEP_FILE).unlink()

        store.ensure_layout()

        assert store.config_path.exists()
        assert (store.files_path / KEEP_FILE).exists()

    def test_destroy(self, store):
        store.destroy()
        assert not store.path.exists()
        assert not store.exists()
