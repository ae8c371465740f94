"""Working directory snapshot."""

from typing import List

from pydantic import BaseModel


class WorkingDirectory(BaseModel):
    """Read-only view of file states at one instant.

    ``unstaged`` holds tracked files that are modified or missing. Untracked
    files do not count as changes for committing, but they do count as
    something to show in status.
    """

    staged: List[str] = []
    unstaged: List[str] = []
    untracked: List[str] = []

    model_config = {"frozen": True}

    @classmethod
    def clean(cls) -> "WorkingDirectory":
        return cls()

    @classmethod
    def with_changes(
        cls, staged: List[str], unstaged: List[str], untracked: List[str]
    ) -> "WorkingDirectory":
        return cls(staged=list(staged), unstaged=list(unstaged), untracked=list(untracked))

    @property
    def has_changes(self) -> bool:
        return bool(self.staged or self.unstaged)

    @property
    def has_anything_to_show(self) -> bool:
        return self.has_changes or bool(self.untracked)

    @property
    def has_staged_changes(self) -> bool:
        return bool(self.staged)

    @property
    def has_unstaged_changes(self) -> bool:
        return bool(self.unstaged)

    @property
    def total_change_count(self) -> int:
        return len(self.staged) + len(self.unstaged)

    @property
    def all_modified_files(self) -> List[str]:
        """Staged then unstaged paths, first occurrence wins."""
        return list(dict.fromkeys(self.staged + self.unstaged))
