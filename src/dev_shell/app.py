"""Bootstrap: wires the shell's components together."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import structlog
from rich.console import Console

from dev_shell.cli.commands import ShellCommands
from dev_shell.config import ShellSettings
from dev_shell.core.git_adapter import GitPythonAdapter
from dev_shell.core.passthrough import PassthroughDispatcher
from dev_shell.core.registry import InteractiveCommandRegistry
from dev_shell.core.smart_commit import SmartCommitService
from dev_shell.core.validation import ValidationService

logger = structlog.get_logger()


def configure_logging(settings: ShellSettings) -> None:
    """Set up structlog with stderr output and an optional rotating JSON log file."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    # stderr keeps log lines out of command output
    console_handler = logging.StreamHandler()
    console_handler.setLevel(settings.log_level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(),
        )
    )
    root_logger.addHandler(console_handler)

    if settings.log_file_enabled:
        try:
            settings.state_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                settings.log_path,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            root_logger.warning("Log file disabled: %s", e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                structlog.stdlib.ProcessorFormatter(
                    processor=structlog.processors.JSONRenderer(),
                )
            )
            root_logger.addHandler(file_handler)

    # GitPython logs every git invocation at DEBUG
    logging.getLogger("git").setLevel(logging.INFO)

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class DevShell:
    """Everything one shell session needs, built once at startup."""

    def __init__(
        self,
        settings: ShellSettings,
        registry: InteractiveCommandRegistry,
        dispatcher: PassthroughDispatcher,
        commands: ShellCommands,
    ):
        self.settings = settings
        self.registry = registry
        self.dispatcher = dispatcher
        self.commands = commands

    @property
    def cwd(self) -> Path:
        return self.dispatcher.cwd


def build_shell(
    settings: Optional[ShellSettings] = None,
    console: Optional[Console] = None,
    cwd: Optional[Path] = None,
    setup_logging: bool = True,
) -> DevShell:
    """Create the adapter, services, registry and dispatcher for one session.

    Raises DevShellError(REGISTRY_IO) when the state directory cannot be created.
    """
    settings = settings or ShellSettings()
    if setup_logging:
        configure_logging(settings)

    vcs = GitPythonAdapter()
    validation = ValidationService()
    smart_commit = SmartCommitService(vcs, validation)

    registry = InteractiveCommandRegistry(settings.registry_path)
    registry.seed_defaults()

    dispatcher = PassthroughDispatcher(
        registry,
        console=console,
        cwd=cwd,
        shell=settings.shell_executable,
        timeout=settings.passthrough_timeout,
    )
    commands = ShellCommands(
        vcs,
        validation,
        smart_commit,
        registry,
        dispatcher,
        remote_name=settings.remote_name,
    )
    logger.info("shell_ready", registry=str(settings.registry_path), cwd=str(dispatcher.cwd))
    return DevShell(settings, registry, dispatcher, commands)
