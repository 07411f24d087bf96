"""MCP transport factory for stdio, streamable-http and sse servers."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, AsyncContextManager

if TYPE_CHECKING:
    from termchat.config.schema import MCPServerConfig


def expand_env_vars(values: dict[str, str]) -> dict[str, str]:
    """Replace whole-value ${VAR} references with the environment value."""
    result = {}
    for key, value in values.items():
        if value.startswith("${") and value.endswith("}"):
            result[key] = os.environ.get(value[2:-1], "")
        else:
            result[key] = value
    return result


def create_transport(config: MCPServerConfig) -> AsyncContextManager[tuple[Any, ...]]:
    """Create the transport context manager for a server.

    Raises:
        ValueError: If the transport is unknown or misses required fields.
    """
    if config.transport == "stdio":
        if not config.command:
            raise ValueError(f"stdio transport requires 'command' for server '{config.name}'")

        from mcp.client.stdio import StdioServerParameters, stdio_client

        env = dict(os.environ)
        env.update(expand_env_vars(config.env))
        params = StdioServerParameters(
            command=config.command[0],
            args=config.command[1:] + config.args,
            env=env,
        )
        return stdio_client(params)

    if config.transport == "streamable-http":
        if not config.url:
            raise ValueError(f"streamable-http transport requires 'url' for server '{config.name}'")

        from mcp.client.streamable_http import streamablehttp_client

        headers = {k: v for k, v in expand_env_vars(config.headers).items() if v}
        return streamablehttp_client(config.url, headers=headers or None)

    if config.transport == "sse":
        if not config.url:
            raise ValueError(f"sse transport requires 'url' for server '{config.name}'")

        from mcp.client.sse import sse_client

        headers = {k: v for k, v in expand_env_vars(config.headers).items() if v}
        return sse_client(config.url, headers=headers or None, timeout=config.timeout)

    raise ValueError(f"Unknown transport: {config.transport}")
