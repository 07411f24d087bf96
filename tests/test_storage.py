"""Tests for rollout persistence."""

from __future__ import annotations

from pathlib import Path

import pytest

from termchat.session.storage import RolloutStore, get_default_rollout_dir
from tests.utils import assistant, user


class TestRolloutStore:
    """Tests for RolloutStore save/load."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = RolloutStore(tmp_path, version="0.1.0")
        items = [user("hi"), assistant("hello")]

        path = store.save("abc", items)

        assert path is not None
        assert path.name.startswith("rollout-")
        assert path.name.endswith("-abc.yaml")

        data = store.load("abc")
        assert data["session"]["id"] == "abc"
        assert data["session"]["version"] == "0.1.0"
        assert [i["role"] for i in data["items"]] == ["user", "assistant"]

    def test_same_session_overwrites_one_file(self, tmp_path: Path) -> None:
        store = RolloutStore(tmp_path)
        first = store.save("abc", [user("hi")])
        second = store.save("abc", [user("hi"), assistant("there")])

        assert first == second
        assert len(list(tmp_path.glob("rollout-*.yaml"))) == 1
        assert len(store.load("abc")["items"]) == 2

    def test_load_missing(self, tmp_path: Path) -> None:
        assert RolloutStore(tmp_path).load("nope") is None

    def test_write_failure_returns_none(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = RolloutStore(blocker / "sessions")

        assert store.save("abc", [user("hi")]) is None

    def test_default_dir_honours_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("TERMCHAT_HOME", str(tmp_path))
        assert get_default_rollout_dir() == tmp_path / "sessions"
