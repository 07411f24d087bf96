"""Configuration schema dataclasses for termchat.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_MODEL = "o4-mini"


@dataclass
class LLMConfig:
    """Model transport configuration."""

    api_base: str | None = None  # Custom endpoint
    max_tokens: int | None = None  # Default: 4096


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class MCPServerConfig:
    """Configuration for a single MCP server.

    Supports three transport types:
        - stdio: Spawns a subprocess (requires command)
        - streamable-http: Connects to HTTP endpoint (requires url)
        - sse: Connects to SSE endpoint (requires url)
    """

    name: str
    command: list[str] | None = None  # For stdio: ["npx", "-y", "@mcp/server"]
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)  # Supports ${VAR}
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    transport: str = "stdio"
    enabled: bool = True  # Connected by MCPClientManager.initialize()
    timeout: float = 30.0


@dataclass
class MCPConfig:
    """MCP client configuration.

    Example config.yaml:
        mcp:
          servers:
            - name: filesystem
              command: ["npx", "-y", "@modelcontextprotocol/server-filesystem"]
              args: ["/home/user/allowed"]
            - name: github
              command: ["npx", "-y", "@modelcontextprotocol/server-github"]
              env:
                GITHUB_TOKEN: "${GITHUB_TOKEN}"
    """

    servers: list[MCPServerConfig] = field(default_factory=list)


@dataclass
class Config:
    """Root configuration object.

    `model`, `instructions` and `writable_roots` feed the session identity;
    `approval_policy` is only the starting policy and can change in place.
    """

    model: str = DEFAULT_MODEL
    instructions: str = ""
    approval_policy: str = "suggest"  # "suggest", "auto-edit", "full-auto"
    writable_roots: list[str] = field(default_factory=list)
    notify: bool = False  # Desktop notification when a turn finishes
    llm: LLMConfig = field(default_factory=LLMConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    mcp: MCPConfig = field(default_factory=MCPConfig)

    # Extension point for future config sections
    extra: dict[str, Any] = field(default_factory=dict)
