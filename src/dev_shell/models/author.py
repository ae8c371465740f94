"""Author value object."""

import re
from typing import Any

from pydantic import BaseModel, field_validator

from dev_shell.exceptions import DevShellError, InvalidArgumentKind

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
MAX_NAME_LENGTH = 100


class Author(BaseModel):
    """A commit author, rendered as ``Name <email>``."""

    name: str
    email: str

    model_config = {"frozen": True}

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise DevShellError.invalid(
                InvalidArgumentKind.EMPTY_NAME, "Author name cannot be empty or blank"
            )
        value = value.strip()
        if len(value) > MAX_NAME_LENGTH:
            raise DevShellError.invalid(
                InvalidArgumentKind.NAME_TOO_LONG,
                f"Author name too long (max {MAX_NAME_LENGTH} characters)",
            )
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, value: Any) -> str:
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
            raise DevShellError.invalid(
                InvalidArgumentKind.INVALID_EMAIL, f"Invalid email format: {value!r}"
            )
        return value.strip()

    @classmethod
    def of(cls, name: str, email: str) -> "Author":
        return cls(name=name, email=email)

    @classmethod
    def from_git_format(cls, text: str) -> "Author":
        """Parse ``Name <email>``; the last ``<`` starts the address."""
        text = text.strip()
        start = text.rfind("<")
        if start == -1 or not text.endswith(">"):
            raise DevShellError.invalid(
                InvalidArgumentKind.INVALID_AUTHOR_FORMAT,
                "Invalid git author format. Expected 'Name <email>'",
            )
        return cls(name=text[:start], email=text[start + 1 : -1])

    def to_git_format(self) -> str:
        return f"{self.name} <{self.email}>"

    def __str__(self) -> str:
        return self.to_git_format()
