"""
o3-search MCP server — OpenAI o3 web search as a single MCP tool.

Architecture:
    ┌──────────────┐     stdio      ┌──────────────┐     HTTPS     ┌──────────┐
    │   MCP Host    │ ──────────── │  o3-search    │ ──────────── │  OpenAI  │
    │ (agent/IDE)  │  JSON-RPC    │  (subprocess) │  Responses   │    o3    │
    └──────────────┘     pipes     └──────────────┘     API       └──────────┘

The host launches this server as a child process and talks to it over
stdin/stdout using JSON-RPC 2.0 messages (the MCP protocol).

StdioToolServer holds the tool registry; O3SearchTool is the one tool.
StdioServerTransport serves the registry over stdio, and
LifecycleManager runs it until a shutdown trigger fires.
"""

from o3_search_mcp.config import ConfigError, Settings
from o3_search_mcp.server import StdioToolServer, ToolHandler, ToolResponse
from o3_search_mcp.transport import StdioServerTransport, Transport
from o3_search_mcp.lifecycle import LifecycleManager, LifecycleState

__all__ = [
    "ConfigError",
    "Settings",
    "StdioToolServer",
    "ToolHandler",
    "ToolResponse",
    "StdioServerTransport",
    "Transport",
    "LifecycleManager",
    "LifecycleState",
]
