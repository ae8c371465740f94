"""Persistent registry of commands that need the controlling terminal."""

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import structlog
from pydantic import ValidationError

from dev_shell.exceptions import DevShellError, ErrorKind, InvalidArgumentKind
from dev_shell.models import InteractiveCommand

logger = structlog.get_logger()

DEFAULT_COMMANDS = (
    "nano",
    "vim",
    "vi",
    "emacs",
    "less",
    "more",
    "htop",
    "top",
    "ssh",
    "telnet",
    "mysql",
    "psql",
    "python",
    "python3",
    "node",
    "claude",
)
SEED_MARKER = "nano"


class ReadWriteLock:
    """Many readers or one writer. Not reentrant."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class InteractiveCommandRegistry:
    """Command names stored as a pretty-printed JSON array of ``{"commandName": ...}``.

    Reads that hit a missing or malformed file degrade to an empty registry;
    the next write rewrites the file. Write failures raise REGISTRY_IO.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = ReadWriteLock()
        self._initialize_file()

    def _initialize_file(self) -> None:
        with self._lock.write():
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DevShellError(
                    ErrorKind.REGISTRY_IO, f"Could not create {self.path.parent}", cause=e
                ) from e
            if not self.path.exists():
                self._write([])
                logger.info("registry_created", path=str(self.path))

    def register(self, command_name: str) -> bool:
        """Add ``command_name``; returns False if it was already registered."""
        command = InteractiveCommand(command_name=self._normalize(command_name))
        with self._lock.write():
            commands = self._read()
            if any(c.command_name == command.command_name for c in commands):
                return False
            commands.append(command)
            self._write(commands)
        logger.info("interactive_command_registered", command=command.command_name)
        return True

    def save(self, command: InteractiveCommand) -> None:
        """Replace the entry with the same name, or append it."""
        with self._lock.write():
            commands = self._read()
            for i, existing in enumerate(commands):
                if existing.command_name == command.command_name:
                    commands[i] = command
                    break
            else:
                commands.append(command)
            self._write(commands)

    def find_by_name(self, command_name: str) -> Optional[InteractiveCommand]:
        if not command_name or not command_name.strip():
            return None
        command_name = command_name.strip()
        with self._lock.read():
            commands = self._read()
        return next((c for c in commands if c.command_name == command_name), None)

    def exists(self, command_name: str) -> bool:
        return self.find_by_name(command_name) is not None

    def find_all(self) -> List[InteractiveCommand]:
        with self._lock.read():
            return self._read()

    def remove_by_name(self, command_name: str) -> bool:
        if not command_name or not command_name.strip():
            return False
        command_name = command_name.strip()
        with self._lock.write():
            commands = self._read()
            remaining = [c for c in commands if c.command_name != command_name]
            if len(remaining) == len(commands):
                return False
            self._write(remaining)
        logger.info("interactive_command_removed", command=command_name)
        return True

    def clear(self) -> None:
        with self._lock.write():
            self._write([])
        logger.info("registry_cleared")

    def count(self) -> int:
        with self._lock.read():
            return len(self._read())

    def is_interactive(self, line: str) -> bool:
        """True when the first whitespace-separated token of ``line`` is registered."""
        tokens = line.split()
        return bool(tokens) and self.exists(tokens[0])

    def seed_defaults(self) -> int:
        """Register the built-in list unless ``nano`` is already known.

        Returns the number of commands added.
        """
        if self.exists(SEED_MARKER):
            return 0
        added = sum(1 for name in DEFAULT_COMMANDS if self.register(name))
        logger.info("registry_seeded", added=added)
        return added

    def _normalize(self, command_name: str) -> str:
        if not command_name or not command_name.strip():
            raise DevShellError.invalid(
                InvalidArgumentKind.EMPTY_COMMAND_NAME, "Command name cannot be empty"
            )
        return command_name.strip()

    def _read(self) -> List[InteractiveCommand]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("registry_missing", path=str(self.path))
            return []
        except (OSError, ValueError) as e:
            logger.warning("registry_unreadable", path=str(self.path), error=str(e))
            return []

        if not isinstance(data, list):
            logger.warning("registry_malformed", path=str(self.path))
            return []
        try:
            return [InteractiveCommand.model_validate(item) for item in data]
        except ValidationError as e:
            logger.warning("registry_malformed", path=str(self.path), error=str(e))
            return []

    def _write(self, commands: List[InteractiveCommand]) -> None:
        payload = [c.model_dump(by_alias=True) for c in commands]
        try:
            self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise DevShellError(
                ErrorKind.REGISTRY_IO, f"Failed to write {self.path}", cause=e
            ) from e
