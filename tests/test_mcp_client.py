"""Tests for the MCP client manager and transport factory."""

from __future__ import annotations

import pytest

from termchat.config.schema import MCPConfig, MCPServerConfig
from termchat.mcp.client import MCPClientManager, MCPConnection
from termchat.mcp.transport import create_transport, expand_env_vars
from termchat.mcp.types import MCPConnectionStatus, MCPServerStatus


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mcp_config() -> MCPConfig:
    return MCPConfig(
        servers=[
            MCPServerConfig(name="filesystem", command=["npx", "server-fs"]),
            MCPServerConfig(name="broken", command=["missing-binary"]),
            MCPServerConfig(name="disabled", command=["npx", "x"], enabled=False),
        ]
    )


@pytest.fixture
def fake_connect(monkeypatch: pytest.MonkeyPatch):
    """Replace MCPConnection.connect; the server named 'broken' fails."""
    attempts: list[str] = []

    async def connect(self: MCPConnection) -> None:
        attempts.append(self.name)
        if self.name == "broken":
            self.status = MCPConnectionStatus.ERROR
            raise RuntimeError("spawn failed")
        self.status = MCPConnectionStatus.CONNECTED

    monkeypatch.setattr(MCPConnection, "connect", connect)
    return attempts


# =============================================================================
# MCPClientManager Tests
# =============================================================================


class TestMCPClientManager:
    """Tests for initialize, status and close."""

    @pytest.mark.asyncio
    async def test_no_config(self) -> None:
        manager = MCPClientManager()
        await manager.initialize()
        assert manager.get_status() == []
        await manager.close_all()

    @pytest.mark.asyncio
    async def test_initialize_skips_disabled(self, mcp_config, fake_connect) -> None:
        manager = MCPClientManager(mcp_config)
        await manager.initialize()
        assert fake_connect == ["filesystem", "broken"]

    @pytest.mark.asyncio
    async def test_status_in_config_order(self, mcp_config, fake_connect) -> None:
        manager = MCPClientManager(mcp_config)
        await manager.initialize()

        assert manager.get_status() == [
            MCPServerStatus(name="filesystem", connected=True),
            MCPServerStatus(name="broken", connected=False),
            MCPServerStatus(name="disabled", connected=False),
        ]

    @pytest.mark.asyncio
    async def test_close_all(self, mcp_config, fake_connect, monkeypatch) -> None:
        closed: list[str] = []

        async def disconnect(self: MCPConnection) -> None:
            closed.append(self.name)
            if self.name == "broken":
                raise RuntimeError("already gone")
            self.status = MCPConnectionStatus.DISCONNECTED

        monkeypatch.setattr(MCPConnection, "disconnect", disconnect)
        manager = MCPClientManager(mcp_config)
        await manager.initialize()
        await manager.close_all()

        assert sorted(closed) == ["broken", "filesystem"]
        assert manager.connections == {}
        assert all(not s.connected for s in manager.get_status())


class TestMCPConnection:
    """Tests for MCPConnection state."""

    def test_initial_state(self) -> None:
        connection = MCPConnection(name="fs", config=MCPServerConfig(name="fs", command=["x"]))
        assert connection.status is MCPConnectionStatus.DISCONNECTED
        assert not connection.connected

    @pytest.mark.asyncio
    async def test_connect_failure_sets_error(self) -> None:
        connection = MCPConnection(
            name="bad", config=MCPServerConfig(name="bad", transport="carrier-pigeon")
        )
        with pytest.raises(ValueError):
            await connection.connect()
        assert connection.status is MCPConnectionStatus.ERROR
        assert "carrier-pigeon" in connection.error_message

    @pytest.mark.asyncio
    async def test_connect_needs_only_initialize(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A server that cannot list tools still counts as connected."""
        from unittest.mock import AsyncMock, MagicMock

        transport = MagicMock()
        transport.__aenter__ = AsyncMock(return_value=("read", "write"))
        transport.__aexit__ = AsyncMock(return_value=None)
        session = MagicMock()
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=None)
        session.initialize = AsyncMock()
        session.list_tools = AsyncMock(side_effect=RuntimeError("tools not supported"))

        monkeypatch.setattr("termchat.mcp.client.create_transport", lambda config: transport)
        monkeypatch.setattr("termchat.mcp.client.ClientSession", lambda r, w: session)

        connection = MCPConnection(name="fs", config=MCPServerConfig(name="fs", command=["x"]))
        await connection.connect()

        assert connection.connected
        session.initialize.assert_awaited_once()
        session.list_tools.assert_not_called()

        await connection.disconnect()
        assert connection.status is MCPConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_without_session(self) -> None:
        connection = MCPConnection(name="fs", config=MCPServerConfig(name="fs", command=["x"]))
        await connection.disconnect()
        assert connection.status is MCPConnectionStatus.DISCONNECTED


class TestTransport:
    """Tests for create_transport and env expansion."""

    def test_expand_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        monkeypatch.delenv("UNSET_TOKEN", raising=False)
        result = expand_env_vars(
            {"a": "${GITHUB_TOKEN}", "b": "${UNSET_TOKEN}", "c": "literal"}
        )
        assert result == {"a": "ghp_test", "b": "", "c": "literal"}

    def test_unknown_transport(self) -> None:
        with pytest.raises(ValueError, match="Unknown transport"):
            create_transport(MCPServerConfig(name="x", transport="telnet"))

    def test_stdio_requires_command(self) -> None:
        with pytest.raises(ValueError, match="requires 'command'"):
            create_transport(MCPServerConfig(name="x"))

    def test_http_requires_url(self) -> None:
        with pytest.raises(ValueError, match="requires 'url'"):
            create_transport(MCPServerConfig(name="x", transport="streamable-http"))
        with pytest.raises(ValueError, match="requires 'url'"):
            create_transport(MCPServerConfig(name="x", transport="sse"))

    def test_stdio_builds_client(self) -> None:
        transport = create_transport(MCPServerConfig(name="x", command=["npx", "server"]))
        assert hasattr(transport, "__aenter__")
