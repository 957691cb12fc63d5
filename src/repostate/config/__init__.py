"""repostate configuration.

Settings are merged from built-in defaults, the user config file, the
repository's .repostate.toml, and REPOSTATE_* environment variables.

Example:
    >>> from repostate.config import load_config
    >>> config = load_config(Path("/path/to/repo"))
    >>> config.enumeration.timeout_ms
    10000
"""

from ._load import (
    PROJECT_CONFIG_NAME,
    discover_sources,
    get_user_config_path,
    load_config,
    safe_load_config,
)
from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import (
    Config,
    ConfigSource,
    ConfigSourceName,
    EnumerationConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    WatchConfig,
)

__all__ = [
    "PROJECT_CONFIG_NAME",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "EnumerationConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "WatchConfig",
    "deep_merge",
    "discover_sources",
    "get_user_config_path",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
    "safe_load_config",
]
