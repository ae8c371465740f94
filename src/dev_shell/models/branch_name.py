"""Branch name value object."""

import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from dev_shell.exceptions import DevShellError, InvalidArgumentKind

VALID_BRANCH_NAME = re.compile(r"^[A-Za-z0-9._/-]+$")
INVALID_SEQUENCES = re.compile(r"(\.\.|//|^\.|\.$|^/|/$|@\{)")
MAX_LENGTH = 250
TEMPORARY_PREFIX = "temp"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
MAIN_BRANCHES = ("main", "master")


class BranchName(BaseModel):
    """A git branch name restricted to a conservative character set."""

    value: str

    model_config = {"frozen": True}

    @field_validator("value", mode="before")
    @classmethod
    def _validate(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise DevShellError.invalid(
                InvalidArgumentKind.EMPTY_BRANCH, "Branch name cannot be empty or blank"
            )
        value = value.strip()
        if not VALID_BRANCH_NAME.match(value):
            raise DevShellError.invalid(
                InvalidArgumentKind.BRANCH_HAS_INVALID_CHARS,
                f"Branch name contains invalid characters: {value!r}",
            )
        if INVALID_SEQUENCES.search(value):
            raise DevShellError.invalid(
                InvalidArgumentKind.BRANCH_HAS_INVALID_SEQUENCE,
                f"Branch name contains invalid sequences: {value!r}",
            )
        if len(value) > MAX_LENGTH:
            raise DevShellError.invalid(
                InvalidArgumentKind.BRANCH_TOO_LONG,
                f"Branch name too long (max {MAX_LENGTH} characters)",
            )
        return value

    @classmethod
    def of(cls, name: str) -> "BranchName":
        return cls(value=name)

    @classmethod
    def temporary(
        cls, prefix: str = TEMPORARY_PREFIX, now: Optional[datetime] = None
    ) -> "BranchName":
        """Mint ``<prefix>-YYYYMMDD-HHMMSS`` from local wall-clock time."""
        timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        return cls(value=f"{prefix}-{timestamp}")

    @property
    def is_temporary(self) -> bool:
        return self.value.startswith(f"{TEMPORARY_PREFIX}-")

    @property
    def is_main_branch(self) -> bool:
        return self.value in MAIN_BRANCHES

    def __str__(self) -> str:
        return self.value
