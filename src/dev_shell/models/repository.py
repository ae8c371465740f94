"""Repository entity."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class Repository(BaseModel):
    """A version-controlled directory, identified by its absolute root path.

    Never mutated in place: adapter calls that change repository state hand
    back a fresh instance.
    """

    root_path: Path
    name: str
    initialized: bool = False
    has_remote: bool = False
    default_branch: Optional[str] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @classmethod
    def existing(
        cls,
        root_path: Path,
        name: str,
        has_remote: bool = False,
        default_branch: Optional[str] = None,
    ) -> "Repository":
        return cls(
            root_path=Path(root_path).resolve(),
            name=name,
            initialized=True,
            has_remote=has_remote,
            default_branch=default_branch,
        )

    @classmethod
    def uninitialized(cls, root_path: Path, name: str) -> "Repository":
        return cls(root_path=Path(root_path).resolve(), name=name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return self.root_path == other.root_path

    def __hash__(self) -> int:
        return hash(self.root_path)
