"""Configuration management for termchat.

Hierarchical YAML configuration:
- System-level config (/etc/termchat/ or %PROGRAMDATA%)
- User-level config (~/.config/termchat/, ~/.termchat/ or %APPDATA%)
- Project-level config ($cwd/.termchat/)
- Environment variable overrides (highest priority)

Example usage:
    from termchat.config import load_config, save_config

    config = load_config(cwd="/path/to/project")
    print(config.model)
"""

from termchat.config.loader import (
    config_to_dict,
    deep_merge,
    dict_to_config,
    load_config,
    save_config,
)
from termchat.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from termchat.config.schema import (
    DEFAULT_MODEL,
    Config,
    LLMConfig,
    LoggingConfig,
    MCPConfig,
    MCPServerConfig,
)
from termchat.config.secrets import clear_secret_cache, fetch_secret

__all__ = [
    "Config",
    "DEFAULT_MODEL",
    "LLMConfig",
    "LoggingConfig",
    "MCPConfig",
    "MCPServerConfig",
    "load_config",
    "save_config",
    "deep_merge",
    "dict_to_config",
    "config_to_dict",
    "fetch_secret",
    "clear_secret_cache",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
