"""Run shell input that is not a built-in command.

Registered interactive programs get the terminal; everything else runs with
stdout/stderr captured line by line and streamed back, under a timeout.
"""

import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import IO, List, Optional

import structlog
from rich.console import Console
from rich.text import Text

from dev_shell.core.registry import InteractiveCommandRegistry

logger = structlog.get_logger()

DEFAULT_SHELL = "/bin/sh"
DEFAULT_TIMEOUT = 30.0
COMMAND_NOT_FOUND_EXIT = 127
TTY_ERROR_TOKENS = (
    "not a terminal",
    "no tty",
    "stdin",
    "interactive",
    "input must be provided",
)


def format_error(message: str) -> str:
    return f"❌ {message}"


def needs_terminal(stderr: str) -> bool:
    """Best-effort guess, from English error text, that a command wanted a TTY."""
    lowered = stderr.lower()
    return any(token in lowered for token in TTY_ERROR_TOKENS)


def register_hint(command: str) -> str:
    return f'command-iadd "{command}"'


class PassthroughDispatcher:
    """Executes fallthrough input relative to the shell's logical working directory."""

    def __init__(
        self,
        registry: InteractiveCommandRegistry,
        console: Optional[Console] = None,
        cwd: Optional[Path] = None,
        shell: str = DEFAULT_SHELL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.registry = registry
        self.console = console or Console()
        self.cwd = Path(cwd or Path.cwd()).resolve()
        self.shell = shell
        self.timeout = timeout

    def dispatch(self, line: str) -> str:
        """Run ``line`` and return a message for the user ("" when all went well)."""
        line = line.strip()
        if not line:
            return format_error("Empty command")

        if self.registry.is_interactive(line):
            return self.run_interactive(line)
        return self.run_captured(line)

    def run_interactive(self, line: str) -> str:
        self.console.print(Text("🔄 Running as interactive command...", style="cyan"))
        try:
            process = subprocess.Popen([self.shell, "-c", line], cwd=self.cwd)
        except FileNotFoundError:
            return self._not_found(line)
        except OSError as e:
            logger.debug("interactive_launch_failed", command=line, error=str(e))
            return format_error(f"Failed to execute interactive command: {e}")

        while True:
            try:
                exit_code = process.wait()
                break
            except KeyboardInterrupt:
                # Ctrl+C belongs to the child, which shares our terminal; keep
                # waiting until it exits (see "Ctrl+C in interactive children" in DESIGN.md)
                continue

        if exit_code == 0:
            return ""
        if exit_code == -signal.SIGINT:
            return format_error("Command interrupted")
        return format_error(f"Interactive command exited with code {exit_code}")

    def run_captured(self, line: str) -> str:
        try:
            process = subprocess.Popen(
                [self.shell, "-c", line],
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
                start_new_session=True,
            )
        except FileNotFoundError:
            return self._not_found(line)
        except OSError as e:
            logger.debug("command_launch_failed", command=line, error=str(e))
            return format_error(f"Failed to execute command: {e}")

        errors: List[str] = []
        pumps = [
            threading.Thread(
                target=self._pump, args=(process.stdout, "green", None), daemon=True
            ),
            threading.Thread(
                target=self._pump, args=(process.stderr, "red", errors), daemon=True
            ),
        ]
        for pump in pumps:
            pump.start()

        try:
            exit_code = process.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            self._terminate(process)
            logger.info("command_timed_out", command=line, timeout=self.timeout)
            return format_error(f"Command timed out after {self.timeout:g} seconds")
        except KeyboardInterrupt:
            self._terminate(process)
            return format_error("Command interrupted")
        finally:
            for pump in pumps:
                pump.join(timeout=1)

        if exit_code == 0:
            return ""

        base_command = line.split()[0]
        if exit_code == COMMAND_NOT_FOUND_EXIT:
            return self._not_found(line)
        if needs_terminal("\n".join(errors)):
            logger.debug("command_needs_tty", command=line)
            return format_error(
                f"Command '{base_command}' requires TTY/interactive mode. "
                f"Register it with: {register_hint(base_command)}"
            )
        return format_error(f"Command exited with code {exit_code}")

    def _pump(self, stream: IO[str], style: str, sink: Optional[List[str]]) -> None:
        for raw in iter(stream.readline, ""):
            line = raw.rstrip("\n")
            if sink is not None:
                sink.append(line)
            self.console.print(Text(line, style=style), soft_wrap=True)
        stream.close()

    def _terminate(self, process: subprocess.Popen) -> None:
        # the child runs in its own session, so take its whole process group down
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug("process_already_gone", pid=process.pid)
        process.wait()

    def _not_found(self, line: str) -> str:
        base_command = line.split()[0]
        return format_error(
            f"Command '{base_command}' not found. If this is an interactive command, "
            f"register it with: {register_hint(base_command)}"
        )
