"""MCP (Model Context Protocol) server connections for a chat session."""

from termchat.mcp.client import MCPClientManager, MCPConnection
from termchat.mcp.types import MCPConnectionStatus, MCPServerStatus

__all__ = [
    "MCPClientManager",
    "MCPConnection",
    "MCPConnectionStatus",
    "MCPServerStatus",
]
