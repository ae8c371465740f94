"""Shell command implementations.

Each public method backs one shell command and returns the text to show the
user. Expected failures come back as ``❌``-prefixed messages; only the
interactive ``auth`` prompt reads input.
"""

from pathlib import Path
from typing import Callable, List, Optional

import click
import structlog

from dev_shell.core.passthrough import PassthroughDispatcher, format_error
from dev_shell.core.registry import InteractiveCommandRegistry
from dev_shell.core.smart_commit import SmartCommitResult, SmartCommitService
from dev_shell.core.validation import ValidationService
from dev_shell.core.vcs import UNKNOWN_AUTHOR, VcsAdapter
from dev_shell.exceptions import DevShellError, ErrorKind
from dev_shell.models import Author, Repository

logger = structlog.get_logger()

NOT_A_REPOSITORY_MESSAGE = format_error(
    "Error: Not a git repository. Please run 'git-init' first or navigate to a git repository."
)

COMMIT_ERROR_MESSAGES = {
    ErrorKind.COMMIT_MESSAGE_REQUIRED: "Error: Commit message is required",
    ErrorKind.NO_CHANGES_TO_COMMIT: "Error: No changes to commit. Make some changes first!",
    ErrorKind.UNAUTHORIZED: "Error: Unauthorized to commit. Check your git configuration.",
    ErrorKind.NO_REMOTE: "Error: No remote repository configured. Cannot push changes.",
}

GIT_HELP = """🛠️  Git Commands Help

📝 commit "message" [--push]
   Smart commit with automatic branch management
   - Creates a temporary branch
   - Stages tracked and untracked files
   - Commits with the list of changed files
   - Merges back to the original branch
   - Optional: push to remote

📊 status
   Show current repository status

➕ add [--all] [--files "file1 file2"]
   Add untracked files to the staging area
   - Without options, lists untracked files

🔍 validate
   Check the repository, author, remote and working tree

⚙️  config "Your Name" "your@email.com"
   Write your identity to the repository config

🔐 auth
   Interactive identity setup

🏗️  git-init [name]
   Initialize a new git repository here

📚 log [--count N]
   Show recent commit history

🧩 command-iadd <name> / command-ilist / command-iremove <name>
   Manage commands that need the terminal (editors, pagers, REPLs)

💡 Examples:
   status
   add --all
   commit "Fix authentication bug"
   commit "Add new feature" --push
   config "Jane Doe" "jane@example.com"
   log --count 5"""


class ShellCommands:
    """The git and registry commands of the shell."""

    def __init__(
        self,
        vcs: VcsAdapter,
        validation: ValidationService,
        smart_commit: SmartCommitService,
        registry: InteractiveCommandRegistry,
        dispatcher: PassthroughDispatcher,
        remote_name: str = "origin",
    ):
        self.vcs = vcs
        self.validation = validation
        self.smart_commit = smart_commit
        self.registry = registry
        self.dispatcher = dispatcher
        self.remote_name = remote_name

    @property
    def cwd(self) -> Path:
        return self.dispatcher.cwd

    def find_current_repository(self) -> Repository:
        """Nearest repository enclosing the working directory."""
        for path in [self.cwd] + list(self.cwd.parents):
            repository = self.vcs.find_repository(path)
            if repository is not None:
                return repository
        raise DevShellError(
            ErrorKind.NOT_A_REPOSITORY, f"No git repository found in {self.cwd} or its parents"
        )

    # Git commands

    def commit(self, message: Optional[str], push: bool = False) -> str:
        try:
            repository = self.find_current_repository()
            self.validation.validate_repository(repository)
            if push:
                self.validation.validate_remote_repository(repository, self.remote_name)
            self.validation.validate_commit_message(message)
            self._check_author(repository)

            result = self.smart_commit.execute_with_push(
                repository, message, push, self.remote_name
            )
        except DevShellError as e:
            logger.info("commit_rejected", kind=e.kind.name, detail=e.detail)
            if e.kind is ErrorKind.NOT_A_REPOSITORY:
                return NOT_A_REPOSITORY_MESSAGE
            if e.kind in COMMIT_ERROR_MESSAGES:
                return format_error(COMMIT_ERROR_MESSAGES[e.kind])
            return format_error(f"Error: {e.detail or e.kind.value}")
        except Exception as e:
            logger.exception("commit_unexpected_error")
            return format_error(f"Unexpected error: {e}")

        return self._format_commit_result(result, repository.default_branch)

    def _check_author(self, repository: Repository) -> None:
        configured = self.vcs.configured_author(repository)
        if configured == UNKNOWN_AUTHOR:
            return
        try:
            author = Author.from_git_format(configured)
        except DevShellError as e:
            # identities git accepts but we can't parse are not worth blocking on
            logger.warning("author_unparseable", author=configured, error=e.detail)
            return
        self.validation.validate_author(author)

    def _format_commit_result(
        self, result: SmartCommitResult, branch_name: Optional[str] = None
    ) -> str:
        commit = result.commit
        text = (
            "✅ Smart commit successful!\n"
            f"📝 Commit: {commit.summary}\n"
            f"🔗 Hash: {commit.short_hash}\n"
            f"📅 Time: {commit.timestamp:%Y-%m-%d %H:%M:%S}"
        )
        if result.pushed:
            return text + "\n🚀 Changes pushed to remote"

        error = result.push_error
        if error is None:
            return text
        if error.kind is ErrorKind.AUTH_REQUIRED:
            return (
                text + "\n\n"
                "❌ Push Error: Git credentials not configured.\n"
                "💡 To push to remote, please:\n"
                '   1. Configure git credentials: git config --global user.name "Your Name"\n'
                '   2. Configure git email: git config --global user.email "your@email.com"\n'
                "   3. Or use SSH keys for authentication\n"
                "✅ Smart commit was successful locally (changes not pushed)"
            )
        return (
            text + "\n\n"
            f"⚠️  Smart commit successful locally, but push failed: {error.detail}\n"
            f"💡 You can push manually later with: git push {self.remote_name} {branch_name or '<branch>'}"
        )

    def status(self) -> str:
        try:
            repository = self.find_current_repository()
            self.validation.validate_repository(repository)
            working_dir = self.vcs.working_directory_status(repository)
            branch = self.vcs.current_branch(repository)
        except DevShellError as e:
            if e.kind is ErrorKind.NOT_A_REPOSITORY:
                return NOT_A_REPOSITORY_MESSAGE
            return format_error(f"Error getting status: {e.detail}")

        lines = [
            f"📁 Repository: {repository.name}",
            f"📍 Path: {repository.root_path}",
            f"🌿 Branch: {branch.name}",
        ]
        if not working_dir.has_anything_to_show:
            lines.append("\n✨ Working directory clean")
            return "\n".join(lines)

        lines.append("\n📝 Changes:")
        if working_dir.has_staged_changes:
            lines.append("  Staged files:")
            lines.extend(f"    ✅ {path}" for path in working_dir.staged)
        if working_dir.has_unstaged_changes:
            lines.append("  Modified files:")
            lines.extend(f"    📝 {path}" for path in working_dir.unstaged)
        if working_dir.untracked:
            lines.append("  Untracked files:")
            lines.extend(f"    ❓ {path}" for path in working_dir.untracked)
            lines.append("\n⚠️  Note: Untracked files are included in the next smart commit")
            lines.append("💡 Use 'add --all' or 'add --files \"file1 file2\"' to stage them now")
        lines.append("\n💡 Use 'commit \"your message\"' to create a smart commit")
        return "\n".join(lines)

    def add(self, all_files: bool = False, files: str = "") -> str:
        try:
            repository = self.find_current_repository()
            self.validation.validate_repository(repository)
            untracked = self.vcs.working_directory_status(repository).untracked
            if not untracked:
                return "✅ No untracked files to add"

            if all_files:
                to_add = list(untracked)
            elif files.strip():
                to_add = []
                for path in files.split():
                    if path in untracked:
                        to_add.append(path)
                    else:
                        logger.warning("add_skipped_not_untracked", path=path)
            else:
                lines = ["📁 Untracked files found:"]
                lines.extend(f"   ❓ {path}" for path in untracked)
                lines.append("\n💡 Usage:")
                lines.append("   add --all                           # Add all untracked files")
                lines.append('   add --files "file1.txt file2.txt"   # Add specific files')
                return "\n".join(lines)

            if not to_add:
                return "⚠️  No files to add"
            self.vcs.stage_files(repository, to_add)
        except DevShellError as e:
            if e.kind is ErrorKind.NOT_A_REPOSITORY:
                return NOT_A_REPOSITORY_MESSAGE
            return format_error(f"Error adding files: {e.detail}")

        lines = [f"✅ Added {len(to_add)} file(s) to staging:"]
        lines.extend(f"   ➕ {path}" for path in to_add)
        lines.append("\n💡 These files will be included in your next commit")
        return "\n".join(lines)

    def git_init(self, name: Optional[str] = None) -> str:
        name = name or self.cwd.name
        try:
            repository = self.vcs.initialize_repository(self.cwd, name)
        except DevShellError as e:
            return format_error(f"Error initializing repository: {e.detail}")
        return f"✅ Initialized git repository '{repository.name}' at {repository.root_path}"

    def log(self, count: int = 10) -> str:
        try:
            repository = self.find_current_repository()
            self.validation.validate_repository(repository)
            commits = self.vcs.commit_history(repository, count)
        except DevShellError as e:
            if e.kind is ErrorKind.NOT_A_REPOSITORY:
                return format_error("Error: Not a git repository")
            return format_error(f"Error getting history: {e.detail}")

        if not commits:
            return "📝 No commits found in this repository"

        lines = [f"📚 Recent commits ({len(commits)}):", ""]
        for commit in commits:
            lines.append(f"🔸 {commit.short_hash}")
            lines.append(f"   📝 {commit.summary}")
            lines.append(f"   👤 {commit.author}")
            lines.append(f"   📅 {commit.timestamp:%Y-%m-%d %H:%M:%S}")
            lines.append("")
        return "\n".join(lines).strip()

    def validate(self) -> str:
        lines = ["🔍 Git Repository Validation", ""]
        try:
            repository = self.find_current_repository()
            self.validation.validate_repository(repository)
        except DevShellError as e:
            lines.append(f"❌ Repository: {e.detail}")
            return "\n".join(lines)
        lines.append("✅ Repository: Valid git repository")

        configured = self.vcs.configured_author(repository)
        if configured == UNKNOWN_AUTHOR:
            lines.append("⚠️  Author: Not configured (using default)")
        else:
            try:
                author = Author.from_git_format(configured)
                self.validation.validate_author(author)
                lines.append(f"✅ Author: {author}")
            except DevShellError as e:
                lines.append(f"❌ Author: {e.detail}")

        try:
            self.validation.validate_remote_repository(repository, self.remote_name)
            lines.append(f"✅ Remote: {self.remote_name} remote configured")
        except DevShellError:
            lines.append("⚠️  Remote: No remote repository configured")

        try:
            working_dir = self.vcs.working_directory_status(repository)
        except DevShellError as e:
            lines.append(f"❌ Status: {e.detail}")
            return "\n".join(lines)
        if working_dir.has_anything_to_show:
            total = working_dir.total_change_count + len(working_dir.untracked)
            lines.append(f"📝 Status: {total} files with changes")
        else:
            lines.append("✨ Status: Working directory clean")

        lines.append("\n💡 Repository is ready for smart commits!")
        return "\n".join(lines)

    def config(self, name: str, email: str) -> str:
        try:
            repository = self.find_current_repository()
            author = Author.of(name, email)
            self.vcs.configure_author(repository, author)
        except DevShellError as e:
            logger.warning("config_failed", kind=e.kind.name, detail=e.detail)
            return format_error(
                f"Failed to configure git: {e.detail}\n"
                "💡 You can also configure manually with:\n"
                f'   git config user.name "{name}"\n'
                f'   git config user.email "{email}"'
            )
        return (
            "✅ Git configuration updated successfully!\n"
            f"👤 Author: {self.vcs.configured_author(repository)}\n"
            "💡 You can now use 'commit --push' to push to remote repositories"
        )

    def auth(
        self,
        prompt: Callable[..., str] = click.prompt,
        confirm: Callable[..., bool] = click.confirm,
        echo: Callable[[str], None] = click.echo,
    ) -> str:
        """Ask for a name and email, confirm, then write them to the repository config."""
        try:
            repository = self.find_current_repository()
        except DevShellError:
            return NOT_A_REPOSITORY_MESSAGE

        echo("🔐 Git Authentication Setup")
        echo("══════════════════════════════")
        current = self.vcs.configured_author(repository)
        if current != UNKNOWN_AUTHOR:
            echo(f"Current configuration: {current}")
            if not confirm("Do you want to update it?", default=False):
                return "✅ Authentication setup cancelled. Current configuration unchanged."

        name = prompt("Enter your full name", default="", show_default=False).strip()
        if not name:
            return format_error("Name cannot be empty. Authentication setup cancelled.")
        email = prompt("Enter your email address", default="", show_default=False).strip()
        if not email:
            return format_error("Email cannot be empty. Authentication setup cancelled.")
        if "@" not in email or "." not in email:
            return format_error("Invalid email format. Please enter a valid email address.")

        echo("")
        echo("Configuring git with:")
        echo(f"👤 Name: {name}")
        echo(f"📧 Email: {email}")
        if not confirm("Proceed with configuration?", default=True):
            return "✅ Authentication setup cancelled."

        try:
            self.vcs.configure_author(repository, Author.of(name, email))
        except DevShellError as e:
            logger.warning("auth_failed", kind=e.kind.name, detail=e.detail)
            return format_error(f"Failed to configure git authentication: {e.detail}")

        return (
            "✅ Git authentication configured successfully!\n"
            f"👤 Author: {self.vcs.configured_author(repository)}\n"
            "🚀 You can now use 'commit \"message\" --push' to push to remote repositories\n"
            "💡 For GitHub, you may also need to set up a Personal Access Token or SSH keys"
        )

    def git_help(self) -> str:
        return GIT_HELP

    # Interactive command registry

    def command_iadd(self, command_name: str) -> str:
        try:
            added = self.registry.register(command_name)
        except DevShellError as e:
            return format_error(e.detail)
        name = command_name.strip()
        if not added:
            return f"ℹ️  Command '{name}' is already registered as interactive"
        return f"✅ Command '{name}' registered as interactive"

    def command_ilist(self) -> str:
        commands = self.registry.find_all()
        if not commands:
            return "No interactive commands registered"
        lines: List[str] = ["📋 Registered Interactive Commands:"]
        lines.extend(f"  • {command.command_name}" for command in commands)
        return "\n".join(lines)

    def command_iremove(self, command_name: str) -> str:
        try:
            removed = self.registry.remove_by_name(command_name)
        except DevShellError as e:
            return format_error(e.detail)
        command_name = command_name.strip()
        if not removed:
            return f"⚠️  Command '{command_name}' is not registered"
        return f"✅ Command '{command_name}' removed from interactive list"

    def passthrough(self, line: str) -> str:
        return self.dispatcher.dispatch(line)
