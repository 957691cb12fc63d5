"""Configuration discovery and loading."""

import os
import sys
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import ValidationError

from repostate.exceptions import ConfigError, ConfigLoadError

from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import Config, ConfigSource, ConfigSourceName

PROJECT_CONFIG_NAME = ".repostate.toml"


def get_user_config_path() -> Path:
    """Get the platform-specific user config file path.

    - Linux: ``~/.config/repostate/config.toml``
    - macOS: ``~/Library/Application Support/repostate/config.toml``

    Returns:
        Path to the user config file, whether or not it exists.
    """
    return platformdirs.user_config_path("repostate") / "config.toml"


def _file_exists(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def discover_sources(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
) -> list[ConfigSource]:
    """Discover all configuration sources.

    Args:
        project_root: Repository root holding an optional .repostate.toml.
        include_env: Include environment variables as a source.

    Returns:
        ConfigSource objects in precedence order (highest first). File
        sources that do not exist are included with exists=False.
    """
    sources: list[ConfigSource] = []

    if include_env:
        sources.append(
            ConfigSource(name=ConfigSourceName.ENV, path=None, exists=True)
        )

    if project_root is not None:
        project_path = project_root / PROJECT_CONFIG_NAME
        sources.append(
            ConfigSource(
                name=ConfigSourceName.PROJECT,
                path=project_path,
                exists=_file_exists(project_path),
            )
        )

    user_path = get_user_config_path()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
        )
    )

    sources.append(
        ConfigSource(name=ConfigSourceName.DEFAULT, path=None, exists=True)
    )
    return sources


def load_config(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
) -> Config:
    """Load merged configuration from all sources.

    Sources merge lowest to highest: defaults, user file, project file,
    environment.

    Args:
        project_root: Repository root holding an optional .repostate.toml.
        include_env: Include REPOSTATE_* environment variables.

    Returns:
        The validated configuration.

    Raises:
        ConfigLoadError: If a config file cannot be parsed or the merged
            values are invalid.
    """
    merged: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    origin: Path | None = None

    for source in reversed(discover_sources(project_root, include_env=include_env)):
        values: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
        if source.name == ConfigSourceName.ENV:
            values = parse_env_vars()
        elif source.path is not None and source.exists:
            values = read_toml_file(source.path)
            origin = source.path

        if values:
            merged = deep_merge(merged, values)

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        msg = f"Invalid configuration value at '{location}': {first['msg']}"
        raise ConfigLoadError(msg, path=origin) from e


def safe_load_config(
    project_root: Path | None = None,
) -> tuple[Config, str | None]:
    """Load configuration with error handling.

    Handles errors based on the REPOSTATE_STRICT_CONFIG environment variable:
    - If unset or "0": warn to stderr and return the default config
    - If "1": fail fast with sys.exit(1)

    Args:
        project_root: Repository root holding an optional .repostate.toml.

    Returns:
        Tuple of (Config, error_message). On success, error_message is None.
    """
    strict_mode = os.environ.get("REPOSTATE_STRICT_CONFIG", "0") == "1"

    try:
        config = load_config(project_root)
    except (ConfigError, OSError) as e:
        error_msg = str(e)
        if strict_mode:
            print(f"Error: {error_msg}", file=sys.stderr)  # noqa: T201
            sys.exit(1)
        print(  # noqa: T201
            f"Warning: Failed to load config: {error_msg}",
            file=sys.stderr,
        )
        return Config(), error_msg
    else:
        return config, None
