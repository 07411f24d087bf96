"""MCP client type definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MCPConnectionStatus(Enum):
    """Status of an MCP server connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class MCPServerStatus:
    """One row of the MCP overlay."""

    name: str
    connected: bool
