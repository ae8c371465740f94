"""VcsAdapter backed by a real git repository through GitPython."""

from pathlib import Path
from typing import List, Optional, Tuple

import git
import structlog
from git import Actor, Repo

from dev_shell.core.vcs import DEFAULT_REMOTE, UNKNOWN_AUTHOR, VcsAdapter
from dev_shell.exceptions import DevShellError, ErrorKind
from dev_shell.models import (
    Author,
    Branch,
    BranchName,
    Commit,
    CommitMessage,
    Repository,
    WorkingDirectory,
)

logger = structlog.get_logger()

DEFAULT_BRANCH = "main"
DEFAULT_IDENTITY = ("Dev Shell", "dev-shell@example.com")

_CHECKOUT_BLOCKED_MARKERS = (
    "would be overwritten by checkout",
    "please commit your changes or stash them",
)
_AUTH_MARKERS = (
    "authentication failed",
    "authentication is required",
    "could not read username",
    "could not read password",
    "terminal prompts disabled",
    "permission denied",
    "403",
)
_NETWORK_MARKERS = (
    "could not resolve host",
    "unable to access",
    "connection refused",
    "connection timed out",
    "could not read from remote repository",
    "network is unreachable",
)


def _git_output(exc: git.exc.GitCommandError) -> str:
    return f"{exc.stdout or ''} {exc.stderr or ''}".strip()


def _vcs_error(action: str, exc: Exception) -> DevShellError:
    if isinstance(exc, git.exc.GitCommandError):
        detail = (exc.stderr or "").strip() or str(exc)
    else:
        detail = str(exc)
    return DevShellError(ErrorKind.VCS_IO, f"{action}: {detail}", cause=exc)


def _configured_actor(repo: Repo) -> Actor:
    """Identity from git config as written, without validating it."""
    reader = repo.config_reader()
    name = str(reader.get_value("user", "name", default="")).strip() or "Unknown User"
    email = str(reader.get_value("user", "email", default="")).strip() or "user@unknown.com"
    return Actor(name, email)


def _parse_porcelain(output: str) -> Tuple[List[str], List[str], List[str]]:
    """Split ``git status --porcelain -z`` output into staged/unstaged/untracked."""
    staged: List[str] = []
    unstaged: List[str] = []
    untracked: List[str] = []

    entries = iter(output.split("\0"))
    for entry in entries:
        if len(entry) < 4:
            continue
        index_state, tree_state, path = entry[0], entry[1], entry[3:]
        if index_state in "RC":
            # rename/copy entries are followed by the original path
            next(entries, None)

        if index_state == "?" and tree_state == "?":
            untracked.append(path)
            continue
        if index_state == "!":
            continue
        if index_state not in " ?":
            staged.append(path)
        if tree_state in "MDU":
            unstaged.append(path)

    return staged, unstaged, untracked


class GitPythonAdapter(VcsAdapter):
    """Translates the adapter contract into GitPython calls."""

    def _open(self, repository: Repository) -> Repo:
        try:
            return Repo(repository.root_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise DevShellError(
                ErrorKind.NOT_A_REPOSITORY, str(repository.root_path), cause=e
            ) from e

    def find_repository(self, path: Path) -> Optional[Repository]:
        path = Path(path).resolve()
        if not (path / ".git").exists():
            return None

        try:
            with Repo(path) as repo:
                default_branch = None
                if not repo.head.is_detached:
                    default_branch = repo.active_branch.name
                return Repository.existing(
                    path,
                    path.name,
                    has_remote=bool(repo.remotes),
                    default_branch=default_branch,
                )
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            logger.debug("repository_probe_failed", path=str(path), error=str(e))
            return None

    def initialize_repository(self, path: Path, name: str) -> Repository:
        path = Path(path).resolve()
        try:
            path.mkdir(parents=True, exist_ok=True)
            with Repo.init(path) as repo:
                if not repo.head.is_valid():
                    self._create_initial_commit(repo, path, name)
                default_branch = repo.active_branch.name
                has_remote = bool(repo.remotes)
        except (git.exc.GitCommandError, OSError, ValueError) as e:
            logger.error("repository_init_failed", path=str(path), error=str(e))
            raise DevShellError(
                ErrorKind.INIT_FAILED, f"Failed to initialize repository at {path}: {e}", cause=e
            ) from e

        logger.info("repository_initialized", path=str(path), name=name)
        return Repository.existing(path, name, has_remote=has_remote, default_branch=default_branch)

    def _create_initial_commit(self, repo: Repo, path: Path, name: str) -> None:
        # point the unborn HEAD at main whatever init.defaultBranch says
        repo.git.symbolic_ref("HEAD", f"refs/heads/{DEFAULT_BRANCH}")

        readme = path / "README.md"
        if not readme.exists():
            readme.write_text(f"# {name}\n\nInitialized repository\n", encoding="utf-8")

        reader = repo.config_reader()
        if not reader.has_option("user", "name") or not reader.has_option("user", "email"):
            with repo.config_writer("repository") as config:
                config.set_value("user", "name", DEFAULT_IDENTITY[0])
                config.set_value("user", "email", DEFAULT_IDENTITY[1])

        repo.git.add("--", "README.md")
        repo.git.commit("-m", "Initial commit")

    def working_directory_status(self, repository: Repository) -> WorkingDirectory:
        with self._open(repository) as repo:
            try:
                output = repo.git.status("--porcelain", "-z", "--untracked-files=all")
            except git.exc.GitCommandError as e:
                raise _vcs_error("Failed to get repository status", e) from e

        staged, unstaged, untracked = _parse_porcelain(output)
        logger.debug(
            "working_directory_status",
            staged=len(staged),
            unstaged=len(unstaged),
            untracked=len(untracked),
        )
        return WorkingDirectory.with_changes(staged, unstaged, untracked)

    def current_branch(self, repository: Repository) -> Branch:
        with self._open(repository) as repo:
            if repo.head.is_detached:
                raise DevShellError(
                    ErrorKind.VCS_IO, "Failed to get current branch: HEAD is detached"
                )
            commit_hash = repo.head.commit.hexsha if repo.head.is_valid() else None
            return Branch.current(repo.active_branch.name, commit_hash)

    def all_branches(self, repository: Repository) -> List[Branch]:
        with self._open(repository) as repo:
            current = None if repo.head.is_detached else repo.active_branch.name
            try:
                return [
                    Branch.regular(head.name, head.name == current, head.commit.hexsha)
                    for head in repo.heads
                ]
            except (git.exc.GitCommandError, ValueError) as e:
                raise _vcs_error("Failed to list branches", e) from e

    def create_branch(self, repository: Repository, name: BranchName) -> Branch:
        with self._open(repository) as repo:
            if name.value in [h.name for h in repo.heads]:
                raise DevShellError(ErrorKind.BRANCH_EXISTS, f"Branch already exists: {name}")
            if not repo.head.is_valid():
                raise DevShellError(
                    ErrorKind.VCS_IO,
                    f"Cannot create branch {name}: repository has no commits yet",
                )
            try:
                head = repo.create_head(name.value)
            except (git.exc.GitCommandError, OSError, ValueError) as e:
                raise _vcs_error(f"Failed to create branch {name}", e) from e

            commit_hash = head.commit.hexsha
        logger.debug("branch_created", branch=name.value)
        if name.is_temporary:
            return Branch.temporary(name.value, commit_hash)
        return Branch.regular(name.value, False, commit_hash)

    def switch_to_branch(self, repository: Repository, branch: Branch) -> None:
        with self._open(repository) as repo:
            try:
                repo.heads[branch.name].checkout()
            except IndexError as e:
                raise DevShellError(
                    ErrorKind.VCS_IO, f"No such branch: {branch.name}", cause=e
                ) from e
            except git.exc.GitCommandError as e:
                if any(m in _git_output(e).lower() for m in _CHECKOUT_BLOCKED_MARKERS):
                    raise DevShellError(
                        ErrorKind.CHECKOUT_BLOCKED,
                        f"Local changes block checkout of {branch.name}",
                        cause=e,
                    ) from e
                raise _vcs_error(f"Failed to switch to branch {branch.name}", e) from e
        logger.debug("switched_branch", branch=branch.name)

    def delete_branch(self, repository: Repository, branch: Branch) -> None:
        with self._open(repository) as repo:
            try:
                repo.delete_head(branch.name, force=True)
            except git.exc.GitCommandError as e:
                raise _vcs_error(f"Failed to delete branch {branch.name}", e) from e
        logger.debug("branch_deleted", branch=branch.name)

    def stage_tracked_changes(self, repository: Repository) -> None:
        with self._open(repository) as repo:
            try:
                # --update covers modified and deleted paths, never new ones
                repo.git.add("--update")
            except git.exc.GitCommandError as e:
                raise _vcs_error("Failed to stage tracked files", e) from e

    def stage_files(self, repository: Repository, paths: List[str]) -> None:
        if not paths:
            return
        with self._open(repository) as repo:
            try:
                repo.git.add("--", *paths)
            except git.exc.GitCommandError as e:
                raise _vcs_error("Failed to stage files", e) from e
        logger.debug("files_staged", count=len(paths))

    def create_commit(
        self, repository: Repository, message: CommitMessage, branch_name: str
    ) -> Commit:
        staged = self.working_directory_status(repository).staged
        if not staged:
            raise DevShellError(ErrorKind.NOTHING_TO_COMMIT, "Nothing staged to commit")

        with self._open(repository) as repo:
            # git accepts identities Author would reject, e.g. root@localhost
            actor = _configured_actor(repo)
            try:
                created = repo.index.commit(message.value, author=actor, committer=actor)
            except (git.exc.GitCommandError, OSError, ValueError) as e:
                raise _vcs_error("Failed to create commit", e) from e

        logger.debug("commit_created", hash=created.hexsha, branch=branch_name)
        return Commit.from_history(
            created.hexsha,
            message.value,
            f"{actor.name} <{actor.email}>",
            created.committed_datetime,
            staged,
            branch_name,
        )

    def merge(self, repository: Repository, source: Branch, target: Branch) -> None:
        with self._open(repository) as repo:
            if repo.head.is_detached or repo.active_branch.name != target.name:
                raise DevShellError(
                    ErrorKind.VCS_IO,
                    f"Cannot merge into {target.name}: it is not checked out",
                )
            try:
                repo.git.merge(
                    source.name,
                    "--no-edit",
                    m=f"Merge branch '{source.name}' into {target.name}",
                )
            except git.exc.GitCommandError as e:
                if "conflict" in _git_output(e).lower():
                    self._abort_merge(repo)
                    raise DevShellError(
                        ErrorKind.MERGE_CONFLICT,
                        f"Merging {source.name} into {target.name} produced conflicts",
                        cause=e,
                    ) from e
                raise _vcs_error(f"Failed to merge {source.name} into {target.name}", e) from e
        logger.debug("branch_merged", source=source.name, target=target.name)

    def _abort_merge(self, repo: Repo) -> None:
        try:
            repo.git.merge("--abort")
        except git.exc.GitCommandError as e:
            logger.warning("merge_abort_failed", error=str(e))

    def push(self, repository: Repository, branch: Branch, remote: str = DEFAULT_REMOTE) -> None:
        with self._open(repository) as repo:
            if branch.name not in [h.name for h in repo.heads]:
                raise DevShellError(
                    ErrorKind.VCS_IO,
                    f"Cannot push branch '{branch.name}' because it does not exist locally",
                )
            if remote not in [r.name for r in repo.remotes]:
                raise DevShellError(ErrorKind.NO_REMOTE, f"No remote named {remote}")
            try:
                repo.git.push(remote, branch.name, env={"GIT_TERMINAL_PROMPT": "0"})
            except git.exc.GitCommandError as e:
                output = _git_output(e).lower()
                if any(m in output for m in _AUTH_MARKERS):
                    raise DevShellError(
                        ErrorKind.AUTH_REQUIRED,
                        "Push failed: git credentials not configured",
                        cause=e,
                    ) from e
                if any(m in output for m in _NETWORK_MARKERS):
                    raise DevShellError(
                        ErrorKind.NETWORK_ERROR, f"Push failed: {(e.stderr or '').strip()}", cause=e
                    ) from e
                raise _vcs_error(f"Failed to push branch {branch.name}", e) from e
        logger.info("branch_pushed", branch=branch.name, remote=remote)

    def commit_history(self, repository: Repository, max_count: int) -> List[Commit]:
        with self._open(repository) as repo:
            if not repo.head.is_valid():
                return []
            branch_name = "HEAD" if repo.head.is_detached else repo.active_branch.name
            try:
                return [
                    Commit.from_history(
                        c.hexsha,
                        c.message,
                        f"{c.author.name} <{c.author.email}>",
                        c.committed_datetime,
                        [],
                        branch_name,
                    )
                    for c in repo.iter_commits(max_count=max_count)
                ]
            except (git.exc.GitCommandError, ValueError) as e:
                raise _vcs_error("Failed to get commit history", e) from e

    def configured_author(self, repository: Repository) -> str:
        try:
            with self._open(repository) as repo:
                actor = _configured_actor(repo)
        except Exception as e:
            logger.warning("configured_author_unavailable", error=str(e))
            return UNKNOWN_AUTHOR
        return f"{actor.name} <{actor.email}>"

    def configure_author(self, repository: Repository, author: Author) -> None:
        with self._open(repository) as repo:
            try:
                with repo.config_writer("repository") as config:
                    config.set_value("user", "name", author.name)
                    config.set_value("user", "email", author.email)
            except (OSError, ValueError) as e:
                raise _vcs_error("Failed to write git configuration", e) from e
        logger.info("author_configured", author=author.to_git_format())

    def remotes(self, repository: Repository) -> List[str]:
        try:
            with self._open(repository) as repo:
                return [r.name for r in repo.remotes]
        except Exception as e:
            logger.debug("remotes_unavailable", error=str(e))
            return []
