"""Shared utilities: logging, external command execution, and Git helpers."""

from ._exec import (
    DEFAULT_TIMEOUT_MS,
    MAX_OUTPUT_BYTES,
    ScriptConfig,
    ScriptResult,
    run_script,
    truncate_output,
)
from ._git import decode_bytes, resolve_gitdir_file
from ._logging import LogFormatType, create_logger

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "MAX_OUTPUT_BYTES",
    "LogFormatType",
    "ScriptConfig",
    "ScriptResult",
    "create_logger",
    "decode_bytes",
    "resolve_gitdir_file",
    "run_script",
    "truncate_output",
]
