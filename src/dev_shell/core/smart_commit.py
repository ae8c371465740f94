"""Smart commit: snapshot the working tree onto the current branch in one call.

The commit is made on a short-lived ``temp-YYYYMMDD-HHMMSS`` branch which is
then merged into the branch the user was on and deleted. Every step can fail;
once the temporary branch exists, a failure triggers a best-effort
compensation (back to the original branch, drop the temporary one) and the
original error is raised again unchanged.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import structlog
from pydantic import BaseModel

from dev_shell.core.validation import ValidationService
from dev_shell.core.vcs import DEFAULT_REMOTE, VcsAdapter
from dev_shell.exceptions import DevShellError, ErrorKind
from dev_shell.models import Branch, BranchName, Commit, CommitMessage, Repository

logger = structlog.get_logger()

MAX_BRANCH_RETRIES = 3


class CommitState(str, Enum):
    IDLE = "idle"
    VALIDATED = "validated"
    TEMP_CREATED = "temp_created"
    ON_TEMP = "on_temp"
    STAGED = "staged"
    COMMITTED = "committed"
    RESTORED = "restored"
    MERGED = "merged"
    CLEANED_UP = "cleaned_up"
    DONE = "done"
    COMPENSATING = "compensating"


class SmartCommitResult(BaseModel):
    """Outcome of a smart commit with optional push.

    ``push_error`` is set when the push was attempted and failed; the local
    commit stands regardless.
    """

    commit: Commit
    push_requested: bool = False
    pushed: bool = False
    push_error: Optional[DevShellError] = None

    model_config = {"arbitrary_types_allowed": True}


class SmartCommitService:
    """Runs the smart-commit state machine against a VcsAdapter."""

    def __init__(
        self,
        vcs: VcsAdapter,
        validation: ValidationService,
        clock: Callable[[], datetime] = datetime.now,
        retry_delay: float = 1.0,
    ):
        self.vcs = vcs
        self.validation = validation
        self._clock = clock
        self._retry_delay = retry_delay

    def execute(self, repository: Repository, message: Optional[str]) -> Commit:
        """Commit everything in the working tree on the current branch."""
        if message is None or not message.strip():
            raise DevShellError(ErrorKind.COMMIT_MESSAGE_REQUIRED, "Commit message is required")
        user_message = CommitMessage.of(message)

        logger.info("smart_commit_started", repository=repository.name)
        self.validation.validate_repository(repository)
        if not self.vcs.working_directory_status(repository).has_anything_to_show:
            raise DevShellError(ErrorKind.NO_CHANGES_TO_COMMIT, "No changes to commit")
        original = self.vcs.current_branch(repository)
        state = self._advance(CommitState.VALIDATED)

        temp = self._create_temporary_branch(repository)
        state = self._advance(CommitState.TEMP_CREATED, branch=temp.name)

        commit = None
        try:
            self.vcs.switch_to_branch(repository, temp)
            state = self._advance(CommitState.ON_TEMP)

            self.vcs.stage_tracked_changes(repository)
            untracked = self.vcs.working_directory_status(repository).untracked
            if untracked:
                self.vcs.stage_files(repository, untracked)
                logger.info("untracked_files_staged", count=len(untracked))
            state = self._advance(CommitState.STAGED)

            snapshot = self.vcs.working_directory_status(repository)
            enhanced = CommitMessage.with_file_list(
                user_message.value, snapshot.all_modified_files
            )
            commit = self.vcs.create_commit(repository, enhanced, temp.name)
            state = self._advance(CommitState.COMMITTED, hash=commit.hash)

            self.vcs.switch_to_branch(repository, original)
            state = self._advance(CommitState.RESTORED)

            self.vcs.merge(repository, temp, original)
            state = self._advance(CommitState.MERGED, target=original.name)

            self.vcs.delete_branch(repository, temp)
            state = self._advance(CommitState.CLEANED_UP)
        except BaseException as e:
            logger.error(
                "smart_commit_failed",
                state=state.value,
                error=str(e),
                kind=getattr(getattr(e, "kind", None), "name", type(e).__name__),
            )
            if commit is not None and state in (CommitState.COMMITTED, CommitState.RESTORED):
                # deleting the temporary branch orphans this commit
                logger.warning("unmerged_commit_dropped", hash=commit.hash, branch=temp.name)
            self._compensate(repository, original, temp)
            raise

        self._advance(CommitState.DONE)
        logger.info("smart_commit_completed", hash=commit.hash, branch=original.name)
        return commit

    def execute_with_push(
        self,
        repository: Repository,
        message: Optional[str],
        push: bool,
        remote: str = DEFAULT_REMOTE,
    ) -> SmartCommitResult:
        """Smart commit, then push the original branch when asked and a remote exists."""
        original = self.vcs.current_branch(repository) if push else None
        commit = self.execute(repository, message)
        result = SmartCommitResult(commit=commit, push_requested=push)

        if not push or not repository.has_remote:
            return result

        try:
            self.vcs.push(repository, original, remote)
        except DevShellError as e:
            logger.warning("push_failed", kind=e.kind.name, error=e.detail)
            result.push_error = e
            return result

        result.pushed = True
        return result

    def _create_temporary_branch(self, repository: Repository) -> Branch:
        attempt = 0
        while True:
            name = BranchName.temporary(now=self._clock())
            try:
                return self.vcs.create_branch(repository, name)
            except DevShellError as e:
                if e.kind is not ErrorKind.BRANCH_EXISTS or attempt >= MAX_BRANCH_RETRIES:
                    raise
                attempt += 1
                logger.info("temporary_branch_collision", branch=name.value, attempt=attempt)
                time.sleep(self._retry_delay)

    def _compensate(self, repository: Repository, original: Branch, temp: Branch) -> None:
        self._advance(CommitState.COMPENSATING)
        try:
            self.vcs.switch_to_branch(repository, original)
        except Exception as e:
            logger.warning("compensation_switch_failed", branch=original.name, error=str(e))

        try:
            self.vcs.delete_branch(repository, temp)
        except Exception as e:
            logger.warning("compensation_delete_failed", branch=temp.name, error=str(e))

    def _advance(self, state: CommitState, **details) -> CommitState:
        logger.debug("smart_commit_state", state=state.value, **details)
        return state
