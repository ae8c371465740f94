"""Capabilities the smart-commit workflow needs from a version-control engine."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from dev_shell.models import (
    Author,
    Branch,
    BranchName,
    Commit,
    CommitMessage,
    Repository,
    WorkingDirectory,
)

UNKNOWN_AUTHOR = "Unknown User <user@unknown.com>"
DEFAULT_REMOTE = "origin"


class VcsAdapter(ABC):
    """Interface for version-control operations.

    Every state-changing call takes the ``Repository`` value it acts on. Failures
    are raised as ``DevShellError`` with the kinds listed on each method.
    """

    @abstractmethod
    def find_repository(self, path: Path) -> Optional[Repository]:
        """Return the repository rooted at ``path``, or None if there is none."""

    @abstractmethod
    def initialize_repository(self, path: Path, name: str) -> Repository:
        """Create a repository with a ``main`` branch and an initial commit.

        Raises INIT_FAILED.
        """

    @abstractmethod
    def working_directory_status(self, repository: Repository) -> WorkingDirectory:
        """Snapshot staged, unstaged and untracked paths. Raises VCS_IO."""

    @abstractmethod
    def current_branch(self, repository: Repository) -> Branch:
        """The checked-out branch. Raises VCS_IO."""

    @abstractmethod
    def all_branches(self, repository: Repository) -> List[Branch]:
        """Every local branch, the checked-out one flagged current. Raises VCS_IO."""

    @abstractmethod
    def create_branch(self, repository: Repository, name: BranchName) -> Branch:
        """Create ``name`` at HEAD without checking it out.

        Raises BRANCH_EXISTS or VCS_IO.
        """

    @abstractmethod
    def switch_to_branch(self, repository: Repository, branch: Branch) -> None:
        """Check out ``branch``. Raises CHECKOUT_BLOCKED or VCS_IO."""

    @abstractmethod
    def delete_branch(self, repository: Repository, branch: Branch) -> None:
        """Force-delete ``branch``. Raises VCS_IO."""

    @abstractmethod
    def stage_tracked_changes(self, repository: Repository) -> None:
        """Stage modifications and deletions of tracked files, never untracked ones.

        Raises VCS_IO.
        """

    @abstractmethod
    def stage_files(self, repository: Repository, paths: List[str]) -> None:
        """Stage the given paths. Raises VCS_IO."""

    @abstractmethod
    def create_commit(
        self, repository: Repository, message: CommitMessage, branch_name: str
    ) -> Commit:
        """Commit the index on the checked-out branch.

        Raises NOTHING_TO_COMMIT or VCS_IO.
        """

    @abstractmethod
    def merge(self, repository: Repository, source: Branch, target: Branch) -> None:
        """Merge ``source`` into ``target``, which must already be checked out.

        Raises MERGE_CONFLICT or VCS_IO.
        """

    @abstractmethod
    def push(self, repository: Repository, branch: Branch, remote: str = DEFAULT_REMOTE) -> None:
        """Push ``branch`` to ``remote``.

        Raises AUTH_REQUIRED, NETWORK_ERROR or VCS_IO.
        """

    @abstractmethod
    def commit_history(self, repository: Repository, max_count: int) -> List[Commit]:
        """Up to ``max_count`` commits, newest first. Raises VCS_IO."""

    @abstractmethod
    def configured_author(self, repository: Repository) -> str:
        """``Name <email>`` from git config, or ``UNKNOWN_AUTHOR``. Never raises."""

    @abstractmethod
    def configure_author(self, repository: Repository, author: Author) -> None:
        """Write the identity to the repository-local config. Raises VCS_IO."""

    @abstractmethod
    def remotes(self, repository: Repository) -> List[str]:
        """Names of configured remotes. Never raises."""

    def has_remote(self, repository: Repository, remote_name: str) -> bool:
        return remote_name in self.remotes(repository)

    def has_uncommitted_changes(self, repository: Repository) -> bool:
        return self.working_directory_status(repository).has_changes
