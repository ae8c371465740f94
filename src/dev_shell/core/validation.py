"""Preconditions checked before touching a repository."""

from typing import Optional

import structlog

from dev_shell.core.vcs import DEFAULT_REMOTE
from dev_shell.exceptions import DevShellError, ErrorKind
from dev_shell.models import Author, CommitMessage, Repository

logger = structlog.get_logger()

BLOCKED_AUTHORS = frozenset({"blocked", "anonymous"})


class ValidationService:
    """Stateless checks shared by the shell commands and the smart commit."""

    def validate_repository(self, repository: Optional[Repository]) -> None:
        """Raise NOT_A_REPOSITORY unless the root is an initialized git checkout."""
        if repository is None:
            raise DevShellError(ErrorKind.NOT_A_REPOSITORY, "No repository")

        root = repository.root_path
        if not root.exists() or not root.is_dir():
            raise DevShellError(ErrorKind.NOT_A_REPOSITORY, f"Path is not a directory: {root}")
        if not repository.initialized:
            raise DevShellError(ErrorKind.NOT_A_REPOSITORY, f"Repository is not initialized: {root}")
        if not (root / ".git").exists():
            raise DevShellError(ErrorKind.NOT_A_REPOSITORY, f"Git directory not found in {root}")

        logger.debug("repository_valid", repository=repository.name)

    def validate_author(self, author: Author) -> None:
        if author.name.lower() in BLOCKED_AUTHORS:
            raise DevShellError(
                ErrorKind.UNAUTHORIZED, f"User '{author.name}' is not authorized to commit"
            )

    def validate_remote_repository(
        self, repository: Repository, remote_name: str = DEFAULT_REMOTE
    ) -> None:
        if not repository.has_remote:
            raise DevShellError(
                ErrorKind.NO_REMOTE, f"No remote repository configured ({remote_name})"
            )

    def validate_commit_message(self, message: Optional[str]) -> CommitMessage:
        """Build the CommitMessage, reporting blank or short text as COMMIT_MESSAGE_REQUIRED."""
        try:
            return CommitMessage.of(message or "")
        except DevShellError as e:
            raise DevShellError(
                ErrorKind.COMMIT_MESSAGE_REQUIRED, e.detail, cause=e
            ) from e
