"""Data models for dev-shell."""

from .author import Author
from .branch import Branch
from .branch_name import BranchName
from .commit import Commit
from .commit_message import CommitMessage
from .interactive_command import InteractiveCommand
from .repository import Repository
from .working_directory import WorkingDirectory

__all__ = [
    "Author",
    "Branch",
    "BranchName",
    "Commit",
    "CommitMessage",
    "InteractiveCommand",
    "Repository",
    "WorkingDirectory",
]
