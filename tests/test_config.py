"""Tests for the configuration module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

from termchat.config import (
    Config,
    clear_secret_cache,
    config_to_dict,
    deep_merge,
    dict_to_config,
    fetch_secret,
    load_config,
    save_config,
)
from termchat.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)


class TestDeepMerge:
    """Test the deep merge algorithm."""

    def test_simple_override(self) -> None:
        """Test that override values replace base values."""
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self) -> None:
        """Test that nested dicts are recursively merged."""
        base = {"llm": {"api_base": "http://a", "max_tokens": 100}}
        result = deep_merge(base, {"llm": {"max_tokens": 200}})
        assert result["llm"] == {"api_base": "http://a", "max_tokens": 200}

    def test_none_does_not_override(self) -> None:
        """Test that None values in override don't replace base values."""
        assert deep_merge({"a": 1}, {"a": None})["a"] == 1

    def test_list_replaced_not_merged(self) -> None:
        """Test that lists are replaced, not concatenated."""
        result = deep_merge({"writable_roots": ["/a"]}, {"writable_roots": ["/b"]})
        assert result["writable_roots"] == ["/b"]

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestConfigPaths:
    """Test platform-aware path resolution."""

    def test_windows_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("PROGRAMDATA", "C:\\ProgramData")
        path = get_system_config_path()
        assert path is not None
        assert "termchat" in str(path)

    def test_unix_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        assert get_system_config_path() == Path("/etc/termchat/config.yaml")

    def test_xdg_user_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_user_config_path() == tmp_path / "termchat" / "config.yaml"

    def test_project_path(self, tmp_path: Path) -> None:
        assert get_project_config_path(str(tmp_path)) == tmp_path / ".termchat" / "config.yaml"

    def test_paths_order(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        paths = get_config_paths(str(tmp_path))
        assert paths[-1] == tmp_path / ".termchat" / "config.yaml"
        assert paths[0] == Path("/etc/termchat/config.yaml")


class TestLoadConfig:
    """Tests for layered config loading."""

    @pytest.fixture(autouse=True)
    def isolate(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        monkeypatch.setattr(
            "termchat.config.paths.get_system_config_path", lambda: None
        )
        for var in ("TERMCHAT_MODEL", "TERMCHAT_LOG", "TERMCHAT_NOTIFY"):
            monkeypatch.delenv(var, raising=False)

    def write(self, path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

    def test_defaults(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path))
        assert config.model == "o4-mini"
        assert config.approval_policy == "suggest"
        assert config.notify is False

    def test_project_overrides_user(self, tmp_path: Path) -> None:
        self.write(tmp_path / "xdg" / "termchat" / "config.yaml", {"model": "o3", "notify": True})
        self.write(tmp_path / ".termchat" / "config.yaml", {"model": "gpt-4.1"})

        config = load_config(str(tmp_path))
        assert config.model == "gpt-4.1"
        assert config.notify is True

    def test_env_overrides_files(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        self.write(tmp_path / ".termchat" / "config.yaml", {"model": "gpt-4.1"})
        monkeypatch.setenv("TERMCHAT_MODEL", "o3")
        monkeypatch.setenv("TERMCHAT_NOTIFY", "yes")

        config = load_config(str(tmp_path))
        assert config.model == "o3"
        assert config.notify is True

    def test_invalid_yaml_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / ".termchat" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("model: [unclosed", encoding="utf-8")

        assert load_config(str(tmp_path)).model == "o4-mini"


class TestDictToConfig:
    """Tests for dict <-> Config conversion."""

    def test_mcp_servers(self) -> None:
        config = dict_to_config(
            {
                "mcp": {
                    "servers": [
                        {"name": "fs", "command": "npx -y server-fs"},
                        {"name": "web", "transport": "sse", "url": "http://x", "enabled": False},
                        {"command": ["missing-name"]},
                    ]
                }
            }
        )
        servers = config.mcp.servers
        assert [s.name for s in servers] == ["fs", "web"]
        assert servers[0].command == ["npx", "-y", "server-fs"]
        assert servers[1].enabled is False

    def test_unknown_keys_kept_in_extra(self) -> None:
        config = dict_to_config({"theme": "dark"})
        assert config.extra == {"theme": "dark"}
        assert config_to_dict(config)["theme"] == "dark"

    def test_non_string_roots_dropped(self) -> None:
        assert dict_to_config({"writable_roots": ["/a", 3]}).writable_roots == ["/a"]


class TestSaveConfig:
    """Tests for persisting the config."""

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "config.yaml"
        assert save_config(Config(model="o3", notify=True), path) == path

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        config = dict_to_config(data)
        assert config.model == "o3"
        assert config.notify is True

    def test_write_failure_returns_none(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        assert save_config(Config(), blocker / "config.yaml") is None


class TestSecrets:
    """Tests for fetch_secret."""

    @pytest.fixture(autouse=True)
    def clear_cache(self):
        clear_secret_cache()
        yield
        clear_secret_cache()

    def test_environment_wins(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        secrets = tmp_path / ".env.secrets"
        secrets.write_text("TERMCHAT_TEST_KEY=from-file\n", encoding="utf-8")
        monkeypatch.setenv("TERMCHAT_TEST_KEY", "from-env")

        assert fetch_secret("TERMCHAT_TEST_KEY", secrets_path=secrets) == "from-env"

    def test_secrets_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        secrets = tmp_path / ".env.secrets"
        secrets.write_text("TERMCHAT_TEST_KEY=from-file\n", encoding="utf-8")
        monkeypatch.delenv("TERMCHAT_TEST_KEY", raising=False)

        assert fetch_secret("TERMCHAT_TEST_KEY", secrets_path=secrets) == "from-file"

    def test_default(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv("TERMCHAT_TEST_KEY", raising=False)
        missing = tmp_path / "nope"
        assert fetch_secret("TERMCHAT_TEST_KEY", "fallback", secrets_path=missing) == "fallback"
