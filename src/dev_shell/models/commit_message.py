"""Commit message value object."""

from typing import Any, Iterable

from pydantic import BaseModel, field_validator

from dev_shell.exceptions import DevShellError, InvalidArgumentKind

MIN_LENGTH = 3
FILES_CHANGED_HEADER = "Files changed:"


class CommitMessage(BaseModel):
    """A trimmed, non-empty commit message of at least three characters."""

    value: str

    model_config = {"frozen": True}

    @field_validator("value", mode="before")
    @classmethod
    def _validate(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise DevShellError.invalid(
                InvalidArgumentKind.EMPTY_MESSAGE,
                "Commit message cannot be empty or blank",
            )
        value = value.strip()
        if len(value) < MIN_LENGTH:
            raise DevShellError.invalid(
                InvalidArgumentKind.MESSAGE_TOO_SHORT,
                f"Commit message must be at least {MIN_LENGTH} characters long",
            )
        return value

    @classmethod
    def of(cls, message: str) -> "CommitMessage":
        return cls(value=message)

    @classmethod
    def with_file_list(cls, original: str, files: Iterable[str]) -> "CommitMessage":
        """Append a ``Files changed:`` block listing one path per line.

        With no files the trimmed original message is returned as is.
        """
        files = list(files)
        if not files:
            return cls(value=original)

        lines = [original.strip(), "", FILES_CHANGED_HEADER]
        lines.extend(f"- {path}" for path in files)
        return cls(value="\n".join(lines))

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.value.split("\n")[0]

    @property
    def is_multiline(self) -> bool:
        return "\n" in self.value

    def __str__(self) -> str:
        return self.value
