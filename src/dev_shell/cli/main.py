"""Command line entry point and interactive loop for dev-shell."""

import os
import shlex
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from dev_shell import __version__
from dev_shell.app import DevShell, build_shell
from dev_shell.core.passthrough import format_error
from dev_shell.exceptions import DevShellError

console = Console()

EXIT_WORDS = ("exit", "quit")


def emit(message: str) -> None:
    """Print a command result; errors in red, nothing for an empty result."""
    if not message:
        return
    style = "red" if message.startswith("❌") else None
    console.print(Text(message, style=style), soft_wrap=True)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context):
    """dev-shell - a shell with smart commits for git repositories.

    Run without a command to start the interactive shell.
    """
    if ctx.obj is None:
        try:
            ctx.obj = build_shell(console=console)
        except DevShellError as e:
            console.print(Text(format_error(f"Failed to start dev-shell: {e.detail}"), style="red"))
            ctx.exit(1)

    if ctx.invoked_subcommand is None:
        run_repl(ctx.obj)


@main.command()
@click.argument("message", required=False)
@click.option("--push", is_flag=True, help="Push the branch to the remote afterwards")
@click.pass_obj
def commit(shell: DevShell, message: str, push: bool):
    """Smart commit of every change in the working tree."""
    emit(shell.commands.commit(message, push))


@main.command()
@click.pass_obj
def status(shell: DevShell):
    """Show repository status."""
    emit(shell.commands.status())


@main.command()
@click.option("--all", "all_files", is_flag=True, help="Add all untracked files")
@click.option("--files", default="", help="Space separated files to add")
@click.pass_obj
def add(shell: DevShell, all_files: bool, files: str):
    """Stage untracked files."""
    emit(shell.commands.add(all_files, files))


@main.command("git-init")
@click.argument("name", required=False)
@click.pass_obj
def git_init(shell: DevShell, name: str):
    """Initialize a git repository in the current directory."""
    emit(shell.commands.git_init(name))


@main.command()
@click.option("--count", default=10, type=click.IntRange(min=1), help="Number of commits to show")
@click.pass_obj
def log(shell: DevShell, count: int):
    """Show recent commits."""
    emit(shell.commands.log(count))


@main.command()
@click.pass_obj
def validate(shell: DevShell):
    """Check repository, author, remote and working tree."""
    emit(shell.commands.validate())


@main.command()
@click.argument("name")
@click.argument("email")
@click.pass_obj
def config(shell: DevShell, name: str, email: str):
    """Write NAME and EMAIL to the repository config."""
    emit(shell.commands.config(name, email))


@main.command()
@click.pass_obj
def auth(shell: DevShell):
    """Interactive identity setup."""
    emit(shell.commands.auth())


@main.command("git-help")
@click.pass_obj
def git_help(shell: DevShell):
    """Show help for the git commands."""
    emit(shell.commands.git_help())


@main.command("command-iadd")
@click.argument("command_name")
@click.pass_obj
def command_iadd(shell: DevShell, command_name: str):
    """Register a command that needs the terminal."""
    emit(shell.commands.command_iadd(command_name))


@main.command("command-ilist")
@click.pass_obj
def command_ilist(shell: DevShell):
    """List registered interactive commands."""
    emit(shell.commands.command_ilist())


@main.command("command-iremove")
@click.argument("command_name")
@click.pass_obj
def command_iremove(shell: DevShell, command_name: str):
    """Remove a command from the interactive list."""
    emit(shell.commands.command_iremove(command_name))


def execute_line(shell: DevShell, line: str) -> None:
    """Run one line typed at the prompt."""
    try:
        args = shlex.split(line)
    except ValueError as e:
        emit(format_error(f"Could not parse input: {e}"))
        return
    if not args:
        return

    if args[0] not in main.commands:
        emit(shell.commands.passthrough(line))
        return

    try:
        main.main(args, prog_name="dev-shell", obj=shell, standalone_mode=False)
    except click.ClickException as e:
        emit(format_error(e.format_message()))
    except click.Abort:
        emit(format_error("Aborted"))
    except KeyboardInterrupt:
        emit(format_error("Command interrupted"))


def prompt_text(shell: DevShell) -> str:
    return f"[bold cyan]dev-shell[/bold cyan] [blue]{escape(shell.cwd.name or str(shell.cwd))}[/blue] ❯ "


def run_repl(shell: DevShell) -> None:
    original_cwd = Path.cwd()
    console.print(Text("dev-shell - type 'git-help' for git commands, 'exit' to leave", style="bold"))
    try:
        while True:
            try:
                line = console.input(prompt_text(shell))
            except EOFError:
                console.print()
                break
            except KeyboardInterrupt:
                console.print()
                continue

            line = line.strip()
            if not line:
                continue
            if line in EXIT_WORDS:
                break
            execute_line(shell, line)
    finally:
        os.chdir(original_cwd)


if __name__ == "__main__":
    main()
