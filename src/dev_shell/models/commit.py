"""Commit entity."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from dev_shell.models.commit_message import CommitMessage


class Commit(BaseModel):
    """A commit, either about to be created (no hash) or read from history."""

    hash: Optional[str] = None
    message: str
    author: str
    timestamp: datetime
    changed_files: List[str] = []
    branch_name: str

    model_config = {"frozen": True}

    @classmethod
    def for_smart_commit(
        cls,
        message: CommitMessage,
        author: str,
        changed_files: List[str],
        branch_name: str,
    ) -> "Commit":
        return cls(
            message=message.value,
            author=author,
            timestamp=datetime.now(),
            changed_files=list(changed_files),
            branch_name=branch_name,
        )

    @classmethod
    def from_history(
        cls,
        hash: str,
        message: str,
        author: str,
        timestamp: datetime,
        changed_files: List[str],
        branch_name: str,
    ) -> "Commit":
        return cls(
            hash=hash,
            message=message,
            author=author,
            timestamp=timestamp,
            changed_files=list(changed_files),
            branch_name=branch_name,
        )

    @property
    def summary(self) -> str:
        return self.message.strip().split("\n")[0]

    @property
    def short_hash(self) -> str:
        return self.hash[:7] if self.hash else "pending"

    @property
    def has_changes(self) -> bool:
        return bool(self.changed_files)
