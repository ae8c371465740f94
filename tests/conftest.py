"""Shared fixtures: throwaway git repositories and an isolated home directory."""

import io
import tempfile
from pathlib import Path

import pytest
from git import Repo
from git.cmd import Git
from git.exc import GitCommandError
from rich.console import Console

from dev_shell.app import build_shell
from dev_shell.config import ShellSettings
from dev_shell.core.git_adapter import GitPythonAdapter
from dev_shell.core.registry import InteractiveCommandRegistry
from dev_shell.core.validation import ValidationService


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Keep every test away from the real ~/.dev-shell and DEV_SHELL_* settings."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("DEV_SHELL_HOME", str(home))
    monkeypatch.setenv("DEV_SHELL_LOG_FILE_ENABLED", "false")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    return home


@pytest.fixture
def temp_git_repo():
    """Create a temporary git repository with one committed file."""
    with tempfile.TemporaryDirectory() as temp_dir:
        repo_path = Path(temp_dir).resolve() / "project"
        repo_path.mkdir()

        repo = Repo.init(repo_path)
        with repo.config_writer() as config:
            config.set_value("user", "name", "Test User")
            config.set_value("user", "email", "test@example.com")
            config.set_value("commit", "gpgsign", "false")

        (repo_path / "a.txt").write_text("alpha\n")
        repo.index.add(["a.txt"])
        repo.index.commit("Initial commit")
        repo.close()

        yield repo_path


@pytest.fixture
def push_rejected_by_remote(monkeypatch):
    """Make every `git push` fail the way an HTTPS remote without credentials does."""
    real_call = Git._call_process

    def call_process(self, method, *args, **kwargs):
        if method == "push":
            raise GitCommandError(
                ["git", "push"],
                128,
                stderr="fatal: Authentication failed for 'https://example.com/repo.git/'",
            )
        return real_call(self, method, *args, **kwargs)

    monkeypatch.setattr(Git, "_call_process", call_process)


@pytest.fixture
def adapter():
    return GitPythonAdapter()


@pytest.fixture
def validation():
    return ValidationService()


@pytest.fixture
def repository(adapter, temp_git_repo):
    return adapter.find_repository(temp_git_repo)


@pytest.fixture
def registry(tmp_path):
    return InteractiveCommandRegistry(tmp_path / "state" / "commands.json")


@pytest.fixture
def output_console():
    """A console that writes into a buffer; read it back with ``.file.getvalue()``."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def shell(isolated_home, temp_git_repo, output_console):
    settings = ShellSettings(home=isolated_home, log_file_enabled=False)
    return build_shell(
        settings=settings, console=output_console, cwd=temp_git_repo, setup_logging=False
    )
