"""Settings for dev-shell, read from ``DEV_SHELL_*`` environment variables."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STATE_DIR_NAME = ".dev-shell"
REGISTRY_FILE_NAME = "commands.json"
LOG_FILE_NAME = "dev-shell.log"


class ShellSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DEV_SHELL_")

    home: Path = Field(default_factory=Path.home)

    # Pass-through execution
    shell_executable: str = "/bin/sh"
    passthrough_timeout: float = 30.0

    # Smart commit
    remote_name: str = "origin"

    # Logging
    log_level: str = "WARNING"
    log_file_enabled: bool = True
    log_max_bytes: int = 1_048_576
    log_backup_count: int = 3

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("passthrough_timeout")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("passthrough_timeout must be positive")
        return v

    @property
    def state_dir(self) -> Path:
        return self.home / STATE_DIR_NAME

    @property
    def registry_path(self) -> Path:
        return self.state_dir / REGISTRY_FILE_NAME

    @property
    def log_path(self) -> Path:
        return self.state_dir / LOG_FILE_NAME
