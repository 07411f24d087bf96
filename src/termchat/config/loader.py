"""Configuration file loading and saving.

Handles:
- YAML parsing of system, user and project config files
- Deep merging of the layers (later layers win)
- Environment variable overrides
- Writing the config back (model selection is persisted this way)
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from termchat.config.paths import get_config_paths, get_user_config_path
from termchat.config.schema import (
    DEFAULT_MODEL,
    Config,
    LLMConfig,
    LoggingConfig,
    MCPConfig,
    MCPServerConfig,
)

_log = logging.getLogger("termchat.config")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge `override` into a copy of `base`.

    Nested dicts merge recursively, lists are replaced, and None in the
    override never clears a base value.
    """
    result = base.copy()
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def env_overrides() -> dict[str, Any]:
    """Build a config dict from TERMCHAT_* environment variables.

    API keys are not read here; see `fetch_secret`.
    """
    overrides: dict[str, Any] = {}

    model = os.environ.get("TERMCHAT_MODEL")
    if model:
        overrides["model"] = model

    log_path = os.environ.get("TERMCHAT_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    notify = os.environ.get("TERMCHAT_NOTIFY")
    if notify:
        overrides["notify"] = notify.lower() in ("1", "true", "yes", "on")

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    llm_data = data.get("llm", {})
    llm = LLMConfig(
        api_base=llm_data.get("api_base"),
        max_tokens=llm_data.get("max_tokens"),
    )

    log_data = data.get("logging", {})
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    mcp_data = data.get("mcp", {})
    servers = []
    for s in mcp_data.get("servers", []):
        if not isinstance(s, dict) or not s.get("name"):
            continue
        command = s.get("command")
        if isinstance(command, str):
            command = command.split()
        servers.append(
            MCPServerConfig(
                name=s["name"],
                command=command,
                args=s.get("args", []),
                env=s.get("env", {}),
                url=s.get("url"),
                headers=s.get("headers", {}),
                transport=s.get("transport", "stdio"),
                enabled=s.get("enabled", True),
                timeout=s.get("timeout", 30.0),
            )
        )

    roots = data.get("writable_roots", [])

    known_keys = {
        "model",
        "instructions",
        "approval_policy",
        "writable_roots",
        "notify",
        "llm",
        "logging",
        "mcp",
    }
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        model=data.get("model") or DEFAULT_MODEL,
        instructions=data.get("instructions", ""),
        approval_policy=data.get("approval_policy", "suggest"),
        writable_roots=[r for r in roots if isinstance(r, str)],
        notify=bool(data.get("notify", False)),
        llm=llm,
        logging=logging_config,
        mcp=MCPConfig(servers=servers),
        extra=extra,
    )


def config_to_dict(config: Config) -> dict[str, Any]:
    """Convert a Config back to a plain dict suitable for YAML output."""
    data = asdict(config)
    extra = data.pop("extra", {})
    data.update(extra)
    return data


def load_config(cwd: str | None = None) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($cwd/.termchat/config.yaml)
    3. User config
    4. System config

    Args:
        cwd: Project directory for project-level config.

    Returns:
        Merged Config object.
    """
    merged: dict[str, Any] = {}

    for path in get_config_paths(cwd):
        data = load_yaml_file(path)
        if data:
            _log.debug("Loaded config from %s", path)
            merged = deep_merge(merged, data)

    merged = deep_merge(merged, env_overrides())
    return dict_to_config(merged)


def save_config(config: Config, path: Path | None = None) -> Path | None:
    """Write config to YAML, defaulting to the user-level config file.

    Errors are logged and swallowed; callers treat saving as fire-and-forget.

    Returns:
        The path written, or None if nothing was written.
    """
    target = path or get_user_config_path()
    if target is None:
        _log.warning("No user config location available; config not saved")
        return None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        _log.warning("Failed to save config to %s: %s", target, e)
        return None

    _log.info("Saved config to %s", target)
    return target
