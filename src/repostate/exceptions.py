"""repostate exceptions."""

from pathlib import Path  # noqa: TC003 - Used in runtime signatures


class RepoStateError(Exception):
    """Base exception for repostate errors."""


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(RepoStateError):
    """Base exception for repository tracking errors."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when no Mercurial or Git working copy contains a path.

    Attributes:
        path: The path where discovery started.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The path where discovery started.
        """
        super().__init__(message)
        self.path: Path | None = path


class MetadataUnreadableError(RepositoryError):
    """Raised when repository metadata is missing, malformed, or unreadable.

    A failed read aborts the update that triggered it. The tracker keeps its
    previously cached snapshot and does not publish a notification.

    Attributes:
        path: The metadata file or directory that could not be read.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The metadata file or directory that could not be read.
        """
        super().__init__(message)
        self.path: Path | None = path


class EnumerationFailedError(RepositoryError):
    """Raised when the open-branch query against the VCS fails.

    Attributes:
        command: The command that was run.
        exit_code: Process exit code, or None if the process did not finish.
        stderr: Captured standard error output.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        """Initialize with error message and command context.

        Args:
            message: Human-readable error message.
            command: The command that was run.
            exit_code: Process exit code, or None if the process did not finish.
            stderr: Captured standard error output.
        """
        super().__init__(message)
        self.command: str | None = command
        self.exit_code: int | None = exit_code
        self.stderr: str = stderr


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(RepoStateError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column
