"""Configuration models.

This module provides the frozen Pydantic models for repostate settings. Every
section ignores unknown keys so that newer config files keep loading.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from pathlib import Path


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ConfigSourceName(StrEnum):
    """Configuration source names in precedence order.

    Values are ordered from highest precedence (ENV) to lowest (DEFAULT).
    """

    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """Represents a configuration source.

    Attributes:
        name: The source type identifier.
        path: Path to the config file, or None for non-file sources (ENV, DEFAULT).
        exists: Whether the source exists (file exists, or values are present).
    """

    name: ConfigSourceName
    path: "Path | None"  # noqa: UP037
    exists: bool


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class EnumerationConfig(BaseModel):
    """Open-branch enumeration settings.

    Attributes:
        enabled: Run the VCS command after each detected change. When False
            the open-branch set stays empty.
        hg_command: Mercurial executable.
        git_command: Git executable.
        timeout_ms: Command timeout in milliseconds.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    hg_command: str = Field(default="hg", min_length=1)
    git_command: str = Field(default="git", min_length=1)
    timeout_ms: int = Field(default=10000, gt=0)


class WatchConfig(BaseModel):
    """File watcher settings.

    Attributes:
        debounce_ms: Maximum time to collect filesystem events into one batch.
        step_ms: Time to wait for further events before yielding a batch.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    debounce_ms: int = Field(default=1600, gt=0)
    step_ms: int = Field(default=50, gt=0)


class Config(BaseModel):
    """Complete repostate configuration.

    Use load_config() to build one from defaults, files, and the environment.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    enumeration: EnumerationConfig = Field(default_factory=EnumerationConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
