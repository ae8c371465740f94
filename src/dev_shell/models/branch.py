"""Branch entity."""

from typing import Optional

from pydantic import BaseModel


class Branch(BaseModel):
    """A local branch. Two branches are equal when their names are."""

    name: str
    is_current: bool = False
    is_temporary: bool = False
    commit_hash: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def regular(cls, name: str, is_current: bool, commit_hash: Optional[str]) -> "Branch":
        return cls(name=name, is_current=is_current, commit_hash=commit_hash)

    @classmethod
    def temporary(cls, name: str, commit_hash: Optional[str]) -> "Branch":
        return cls(name=name, is_temporary=True, commit_hash=commit_hash)

    @classmethod
    def current(cls, name: str, commit_hash: Optional[str]) -> "Branch":
        return cls(name=name, is_current=True, commit_hash=commit_hash)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Branch):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)
