"""Tests for GitPythonAdapter against real temporary repositories."""

import pytest
from git import Repo

from dev_shell.core.git_adapter import DEFAULT_BRANCH, GitPythonAdapter, _parse_porcelain
from dev_shell.core.vcs import UNKNOWN_AUTHOR
from dev_shell.exceptions import DevShellError, ErrorKind
from dev_shell.models import Author, Branch, BranchName, CommitMessage


def test_parse_porcelain_categories():
    output = "M  staged.txt\0 M modified.txt\0MM both.txt\0 D gone.txt\0?? new.txt\0"
    staged, unstaged, untracked = _parse_porcelain(output)
    assert staged == ["staged.txt", "both.txt"]
    assert unstaged == ["modified.txt", "both.txt", "gone.txt"]
    assert untracked == ["new.txt"]


def test_parse_porcelain_skips_rename_source():
    staged, unstaged, untracked = _parse_porcelain("R  new_name.txt\0old_name.txt\0?? u.txt\0")
    assert staged == ["new_name.txt"]
    assert unstaged == []
    assert untracked == ["u.txt"]


def test_parse_porcelain_empty():
    assert _parse_porcelain("") == ([], [], [])


class TestFindRepository:
    def test_finds_repository(self, adapter, temp_git_repo):
        repository = adapter.find_repository(temp_git_repo)
        assert repository is not None
        assert repository.initialized
        assert repository.name == "project"
        assert repository.root_path == temp_git_repo
        assert not repository.has_remote

    def test_plain_directory_is_not_a_repository(self, adapter, tmp_path):
        assert adapter.find_repository(tmp_path) is None

    def test_subdirectory_is_not_the_root(self, adapter, temp_git_repo):
        sub = temp_git_repo / "src"
        sub.mkdir()
        assert adapter.find_repository(sub) is None


class TestInitializeRepository:
    def test_creates_main_with_initial_commit(self, adapter, tmp_path):
        path = tmp_path / "fresh"
        repository = adapter.initialize_repository(path, "fresh")

        assert repository.initialized
        assert repository.default_branch == DEFAULT_BRANCH
        assert (path / "README.md").read_text().startswith("# fresh")
        history = adapter.commit_history(repository, 10)
        assert len(history) == 1
        assert history[0].summary == "Initial commit"
        assert adapter.current_branch(repository).name == DEFAULT_BRANCH

    def test_keeps_existing_readme(self, adapter, tmp_path):
        path = tmp_path / "withreadme"
        path.mkdir()
        (path / "README.md").write_text("mine\n")
        adapter.initialize_repository(path, "withreadme")
        assert (path / "README.md").read_text() == "mine\n"

    def test_existing_repository_is_left_alone(self, adapter, temp_git_repo):
        before = Repo(temp_git_repo).head.commit.hexsha
        adapter.initialize_repository(temp_git_repo, "project")
        assert Repo(temp_git_repo).head.commit.hexsha == before

    def test_failure_is_init_failed(self, adapter, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(DevShellError) as exc_info:
            adapter.initialize_repository(blocker / "child", "child")
        assert exc_info.value.kind is ErrorKind.INIT_FAILED


class TestStatusAndStaging:
    def test_clean_repository(self, adapter, repository):
        working_dir = adapter.working_directory_status(repository)
        assert not working_dir.has_anything_to_show
        assert not adapter.has_uncommitted_changes(repository)

    def test_categories(self, adapter, repository, temp_git_repo):
        (temp_git_repo / "a.txt").write_text("changed\n")
        (temp_git_repo / "b.txt").write_text("new\n")
        (temp_git_repo / "dir").mkdir()
        (temp_git_repo / "dir" / "c.txt").write_text("nested\n")

        working_dir = adapter.working_directory_status(repository)
        assert working_dir.staged == []
        assert working_dir.unstaged == ["a.txt"]
        assert sorted(working_dir.untracked) == ["b.txt", "dir/c.txt"]
        assert adapter.has_uncommitted_changes(repository)

    def test_stage_tracked_changes_ignores_untracked(self, adapter, repository, temp_git_repo):
        (temp_git_repo / "a.txt").write_text("changed\n")
        (temp_git_repo / "b.txt").write_text("new\n")

        adapter.stage_tracked_changes(repository)
        working_dir = adapter.working_directory_status(repository)
        assert working_dir.staged == ["a.txt"]
        assert working_dir.untracked == ["b.txt"]

    def test_stage_tracked_changes_records_deletions(self, adapter, repository, temp_git_repo):
        (temp_git_repo / "a.txt").unlink()
        assert adapter.working_directory_status(repository).unstaged == ["a.txt"]

        adapter.stage_tracked_changes(repository)
        working_dir = adapter.working_directory_status(repository)
        assert working_dir.staged == ["a.txt"]
        assert working_dir.unstaged == []

    def test_stage_files(self, adapter, repository, temp_git_repo):
        (temp_git_repo / "b.txt").write_text("new\n")
        adapter.stage_files(repository, ["b.txt"])
        assert adapter.working_directory_status(repository).staged == ["b.txt"]

    def test_stage_missing_file_is_vcs_io(self, adapter, repository):
        with pytest.raises(DevShellError) as exc_info:
            adapter.stage_files(repository, ["does-not-exist.txt"])
        assert exc_info.value.kind is ErrorKind.VCS_IO


class TestBranches:
    def test_current_branch(self, adapter, repository, temp_git_repo):
        branch = adapter.current_branch(repository)
        assert branch.is_current
        assert branch.name == Repo(temp_git_repo).active_branch.name
        assert branch.commit_hash == Repo(temp_git_repo).head.commit.hexsha

    def test_create_switch_delete(self, adapter, repository):
        original = adapter.current_branch(repository)
        temp = adapter.create_branch(repository, BranchName.of("temp-20240101-000000"))
        assert temp.is_temporary
        assert adapter.current_branch(repository) == original

        adapter.switch_to_branch(repository, temp)
        assert adapter.current_branch(repository).name == temp.name

        adapter.switch_to_branch(repository, original)
        adapter.delete_branch(repository, temp)
        assert [b.name for b in adapter.all_branches(repository)] == [original.name]

    def test_create_existing_branch(self, adapter, repository):
        adapter.create_branch(repository, BranchName.of("feature"))
        with pytest.raises(DevShellError) as exc_info:
            adapter.create_branch(repository, BranchName.of("feature"))
        assert exc_info.value.kind is ErrorKind.BRANCH_EXISTS

    def test_create_branch_without_commits(self, adapter, tmp_path):
        Repo.init(tmp_path / "unborn").close()
        (tmp_path / "unborn" / "x.txt").write_text("x\n")
        repository = adapter.find_repository(tmp_path / "unborn")

        with pytest.raises(DevShellError) as exc_info:
            adapter.create_branch(repository, BranchName.of("temp-20240101-000000"))
        assert exc_info.value.kind is ErrorKind.VCS_IO
        assert "no commits yet" in exc_info.value.detail

    def test_all_branches_flags_current(self, adapter, repository):
        adapter.create_branch(repository, BranchName.of("feature"))
        branches = {b.name: b for b in adapter.all_branches(repository)}
        assert not branches["feature"].is_current
        current = adapter.current_branch(repository)
        assert branches[current.name].is_current

    def test_switch_to_missing_branch(self, adapter, repository):
        with pytest.raises(DevShellError) as exc_info:
            adapter.switch_to_branch(repository, Branch.regular("nope", False, None))
        assert exc_info.value.kind is ErrorKind.VCS_IO

    def test_checkout_blocked_by_local_changes(self, adapter, repository, temp_git_repo):
        original = adapter.current_branch(repository)
        other = adapter.create_branch(repository, BranchName.of("other"))
        adapter.switch_to_branch(repository, other)
        (temp_git_repo / "a.txt").write_text("on other\n")
        adapter.stage_tracked_changes(repository)
        adapter.create_commit(repository, CommitMessage.of("Change on other"), "other")
        adapter.switch_to_branch(repository, original)

        (temp_git_repo / "a.txt").write_text("uncommitted\n")
        with pytest.raises(DevShellError) as exc_info:
            adapter.switch_to_branch(repository, other)
        assert exc_info.value.kind is ErrorKind.CHECKOUT_BLOCKED


class TestCommitAndMerge:
    def test_create_commit_uses_configured_author(self, adapter, repository, temp_git_repo):
        (temp_git_repo / "a.txt").write_text("changed\n")
        adapter.stage_tracked_changes(repository)

        commit = adapter.create_commit(repository, CommitMessage.of("Tweak a"), "main")
        assert commit.hash == Repo(temp_git_repo).head.commit.hexsha
        assert commit.author == "Test User <test@example.com>"
        assert commit.changed_files == ["a.txt"]
        assert Repo(temp_git_repo).head.commit.author.name == "Test User"

    def test_create_commit_with_local_hostname_email(self, adapter, repository, temp_git_repo):
        with Repo(temp_git_repo).config_writer() as config:
            config.set_value("user", "email", "root@localhost")
        (temp_git_repo / "a.txt").write_text("changed\n")
        adapter.stage_tracked_changes(repository)

        commit = adapter.create_commit(repository, CommitMessage.of("Tweak a"), "main")
        assert commit.author == "Test User <root@localhost>"
        assert Repo(temp_git_repo).head.commit.author.email == "root@localhost"
        assert adapter.configured_author(repository) == "Test User <root@localhost>"

    def test_nothing_staged(self, adapter, repository):
        with pytest.raises(DevShellError) as exc_info:
            adapter.create_commit(repository, CommitMessage.of("Empty"), "main")
        assert exc_info.value.kind is ErrorKind.NOTHING_TO_COMMIT

    def test_merge_fast_forwards(self, adapter, repository, temp_git_repo):
        original = adapter.current_branch(repository)
        temp = adapter.create_branch(repository, BranchName.of("temp-20240101-000001"))
        adapter.switch_to_branch(repository, temp)
        (temp_git_repo / "a.txt").write_text("changed\n")
        adapter.stage_tracked_changes(repository)
        commit = adapter.create_commit(repository, CommitMessage.of("On temp"), temp.name)
        adapter.switch_to_branch(repository, original)

        adapter.merge(repository, temp, original)
        assert Repo(temp_git_repo).head.commit.hexsha == commit.hash

    def test_merge_requires_target_checked_out(self, adapter, repository):
        original = adapter.current_branch(repository)
        other = adapter.create_branch(repository, BranchName.of("other"))
        with pytest.raises(DevShellError) as exc_info:
            adapter.merge(repository, original, other)
        assert exc_info.value.kind is ErrorKind.VCS_IO

    def test_merge_conflict_is_aborted(self, adapter, repository, temp_git_repo):
        original = adapter.current_branch(repository)
        other = adapter.create_branch(repository, BranchName.of("other"))

        adapter.switch_to_branch(repository, other)
        (temp_git_repo / "a.txt").write_text("theirs\n")
        adapter.stage_tracked_changes(repository)
        adapter.create_commit(repository, CommitMessage.of("Theirs"), "other")

        adapter.switch_to_branch(repository, original)
        (temp_git_repo / "a.txt").write_text("ours\n")
        adapter.stage_tracked_changes(repository)
        adapter.create_commit(repository, CommitMessage.of("Ours"), original.name)

        with pytest.raises(DevShellError) as exc_info:
            adapter.merge(repository, other, original)
        assert exc_info.value.kind is ErrorKind.MERGE_CONFLICT
        assert not adapter.working_directory_status(repository).has_anything_to_show
        assert (temp_git_repo / "a.txt").read_text() == "ours\n"


class TestHistoryAndConfig:
    def test_commit_history_newest_first(self, adapter, repository, temp_git_repo):
        (temp_git_repo / "a.txt").write_text("changed\n")
        adapter.stage_tracked_changes(repository)
        adapter.create_commit(repository, CommitMessage.of("Second commit"), "main")

        history = adapter.commit_history(repository, 10)
        assert [c.summary for c in history] == ["Second commit", "Initial commit"]
        assert adapter.commit_history(repository, 1)[0].summary == "Second commit"

    def test_commit_history_of_empty_repository(self, adapter, tmp_path):
        Repo.init(tmp_path / "empty").close()
        repository = adapter.find_repository(tmp_path / "empty")
        assert adapter.commit_history(repository, 5) == []

    def test_configured_author(self, adapter, repository):
        assert adapter.configured_author(repository) == "Test User <test@example.com>"

    def test_configure_author(self, adapter, repository, temp_git_repo):
        adapter.configure_author(repository, Author.of("Jane Doe", "jane@example.com"))
        assert adapter.configured_author(repository) == "Jane Doe <jane@example.com>"
        reader = Repo(temp_git_repo).config_reader("repository")
        assert reader.get_value("user", "name") == "Jane Doe"

    def test_configured_author_never_raises(self, adapter, tmp_path):
        from dev_shell.models import Repository

        missing = Repository.existing(tmp_path / "missing", "missing")
        assert adapter.configured_author(missing) == UNKNOWN_AUTHOR
        assert adapter.remotes(missing) == []


class TestRemotes:
    def test_remotes_and_push(self, adapter, temp_git_repo, tmp_path):
        bare = tmp_path / "remote.git"
        Repo.init(bare, bare=True).close()
        Repo(temp_git_repo).create_remote("origin", str(bare))

        repository = adapter.find_repository(temp_git_repo)
        assert repository.has_remote
        assert adapter.remotes(repository) == ["origin"]
        assert adapter.has_remote(repository, "origin")
        assert not adapter.has_remote(repository, "upstream")

        branch = adapter.current_branch(repository)
        adapter.push(repository, branch)
        assert Repo(bare).heads[branch.name].commit.hexsha == branch.commit_hash

    def test_push_without_remote(self, adapter, repository):
        with pytest.raises(DevShellError) as exc_info:
            adapter.push(repository, adapter.current_branch(repository))
        assert exc_info.value.kind is ErrorKind.NO_REMOTE

    def test_push_missing_branch(self, adapter, repository):
        with pytest.raises(DevShellError) as exc_info:
            adapter.push(repository, Branch.regular("ghost", False, None))
        assert exc_info.value.kind is ErrorKind.VCS_IO
        assert "does not exist locally" in exc_info.value.detail

    def test_push_to_unreachable_remote(self, adapter, temp_git_repo, tmp_path):
        Repo(temp_git_repo).create_remote("origin", str(tmp_path / "nowhere.git"))
        repository = adapter.find_repository(temp_git_repo)
        with pytest.raises(DevShellError) as exc_info:
            adapter.push(repository, adapter.current_branch(repository))
        assert exc_info.value.kind in (ErrorKind.NETWORK_ERROR, ErrorKind.VCS_IO)

    def test_push_authentication_failure(self, adapter, temp_git_repo, push_rejected_by_remote):
        Repo(temp_git_repo).create_remote("origin", "https://example.com/repo.git")
        repository = adapter.find_repository(temp_git_repo)

        with pytest.raises(DevShellError) as exc_info:
            adapter.push(repository, adapter.current_branch(repository))
        assert exc_info.value.kind is ErrorKind.AUTH_REQUIRED


def test_adapter_is_a_vcs_adapter():
    from dev_shell.core.vcs import VcsAdapter

    assert isinstance(GitPythonAdapter(), VcsAdapter)
