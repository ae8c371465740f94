"""Error kinds raised across dev-shell."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """What went wrong, independent of where it happened."""

    COMMIT_MESSAGE_REQUIRED = "commit_message_required"
    NO_CHANGES_TO_COMMIT = "no_changes_to_commit"
    NOT_A_REPOSITORY = "not_a_repository"
    NO_REMOTE = "no_remote"
    UNAUTHORIZED = "unauthorized"
    BRANCH_EXISTS = "branch_exists"
    CHECKOUT_BLOCKED = "checkout_blocked"
    MERGE_CONFLICT = "merge_conflict"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    AUTH_REQUIRED = "auth_required"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    VCS_IO = "vcs_io"
    INIT_FAILED = "init_failed"
    INVALID_ARGUMENT = "invalid_argument"
    INTERRUPTED = "interrupted"
    REGISTRY_IO = "registry_io"


class InvalidArgumentKind(str, Enum):
    """Discriminator for value-object validation failures."""

    EMPTY_MESSAGE = "empty_message"
    MESSAGE_TOO_SHORT = "message_too_short"
    EMPTY_BRANCH = "empty_branch"
    BRANCH_HAS_INVALID_CHARS = "branch_has_invalid_chars"
    BRANCH_HAS_INVALID_SEQUENCE = "branch_has_invalid_sequence"
    BRANCH_TOO_LONG = "branch_too_long"
    EMPTY_NAME = "empty_name"
    NAME_TOO_LONG = "name_too_long"
    INVALID_EMAIL = "invalid_email"
    INVALID_AUTHOR_FORMAT = "invalid_author_format"
    EMPTY_COMMAND_NAME = "empty_command_name"


class DevShellError(Exception):
    """The one exception type dev-shell raises on purpose.

    ``kind`` says what failed, ``detail`` is a human readable explanation and
    ``cause`` keeps the underlying exception (GitPython, OS, JSON...) when
    there is one. ``argument_kind`` is only set for INVALID_ARGUMENT.
    """

    def __init__(
        self,
        kind: ErrorKind,
        detail: str = "",
        cause: Optional[BaseException] = None,
        argument_kind: Optional[InvalidArgumentKind] = None,
    ):
        self.kind = kind
        self.detail = detail
        self.cause = cause
        self.argument_kind = argument_kind
        super().__init__(detail or kind.value)

    @classmethod
    def invalid(cls, argument_kind: InvalidArgumentKind, detail: str) -> "DevShellError":
        return cls(ErrorKind.INVALID_ARGUMENT, detail, argument_kind=argument_kind)

    def __repr__(self) -> str:
        return f"DevShellError(kind={self.kind.name}, detail={self.detail!r})"
