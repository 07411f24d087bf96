"""MCP client manager: connects the configured tool servers for a chat session.

The session only needs three things from it: `initialize()` on start,
`close_all()` on shutdown and `get_status()` for the MCP overlay. Every
failure is logged and reflected in the status, never raised into the
session flow.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mcp.client.session import ClientSession

from termchat.mcp.transport import create_transport
from termchat.mcp.types import MCPConnectionStatus, MCPServerStatus

if TYPE_CHECKING:
    from termchat.config.schema import MCPConfig, MCPServerConfig

_log = logging.getLogger("termchat.mcp.client")


@dataclass
class MCPConnection:
    """An MCP server connection."""

    name: str
    config: MCPServerConfig
    session: ClientSession | None = None
    status: MCPConnectionStatus = MCPConnectionStatus.DISCONNECTED
    error_message: str | None = None
    _transport_context: Any = None

    @property
    def connected(self) -> bool:
        return self.status is MCPConnectionStatus.CONNECTED

    async def connect(self) -> None:
        """Open the transport and initialize the session."""
        self.status = MCPConnectionStatus.CONNECTING
        try:
            self._transport_context = create_transport(self.config)
            streams = await self._transport_context.__aenter__()
            read_stream, write_stream = streams[0], streams[1]

            self.session = ClientSession(read_stream, write_stream)
            await self.session.__aenter__()
            await asyncio.wait_for(self.session.initialize(), timeout=self.config.timeout)

            self.status = MCPConnectionStatus.CONNECTED
            _log.info("Connected to MCP server '%s'", self.name)
        except Exception as e:
            self.status = MCPConnectionStatus.ERROR
            self.error_message = str(e)
            _log.error("Failed to connect to MCP server '%s': %s", self.name, e)
            raise

    async def disconnect(self) -> None:
        """Close the session and transport; errors are logged."""
        if self.session:
            try:
                await self.session.__aexit__(None, None, None)
            except Exception as e:
                _log.warning("Error closing session for '%s': %s", self.name, e)
            self.session = None
        if self._transport_context:
            try:
                await self._transport_context.__aexit__(None, None, None)
            except Exception as e:
                _log.warning("Error closing transport for '%s': %s", self.name, e)
            self._transport_context = None
        self.status = MCPConnectionStatus.DISCONNECTED
        _log.info("Disconnected from MCP server '%s'", self.name)


class MCPClientManager:
    """Owns one MCPConnection per enabled configured server."""

    def __init__(self, config: MCPConfig | None = None) -> None:
        self._config = config
        self.connections: dict[str, MCPConnection] = {}

    @property
    def servers(self) -> list[MCPServerConfig]:
        return list(self._config.servers) if self._config else []

    async def initialize(self) -> None:
        """Connect every enabled server. A failed server stays disconnected."""
        for server in self.servers:
            if not server.enabled:
                continue
            connection = MCPConnection(name=server.name, config=server)
            self.connections[server.name] = connection
            try:
                await connection.connect()
            except Exception as e:
                _log.warning("MCP server '%s' unavailable: %s", server.name, e)

    async def close_all(self) -> None:
        """Disconnect every server."""
        for name in list(self.connections):
            connection = self.connections.pop(name)
            try:
                await connection.disconnect()
            except Exception as e:
                _log.warning("Error disconnecting MCP server '%s': %s", name, e)

    def get_status(self) -> list[MCPServerStatus]:
        """(name, connected) for every configured server, in config order."""
        statuses = []
        for server in self.servers:
            connection = self.connections.get(server.name)
            statuses.append(
                MCPServerStatus(name=server.name, connected=bool(connection and connection.connected))
            )
        return statuses

