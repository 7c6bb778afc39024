"""
MCP tool server base class.

A tool server is a long-running process that:
1. Reads MCP (JSON-RPC 2.0) requests from stdin
2. Dispatches "tools/call" requests to registered ToolHandlers
3. Writes responses to stdout

Framing, request correlation and input-schema validation are done by the
`mcp` SDK. This module only owns the tool registry.

To create a tool server:

    from o3_search_mcp.server import StdioToolServer, ToolHandler, ToolResponse

    class MyTool(ToolHandler):
        name = "my_tool"
        description = "Does something useful"
        parameters = {
            "input": {"type": "string", "description": "The input"},
        }
        required = ["input"]

        async def handle(self, params: dict) -> ToolResponse:
            return ToolResponse(text=f"processed: {params['input']}")

    server = StdioToolServer("my-server", "0.1.0")
    server.register(MyTool())
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from mcp import types
from mcp.server import Server

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResponse:
    """One content item returned to the caller."""
    text: str
    kind: str = "text"

    def to_content(self) -> types.TextContent:
        return types.TextContent(type=self.kind, text=self.text)


class ToolHandler(ABC):
    """
    Base class for a tool implementation.

    Subclasses define what a tool does. The server handles transport.
    """

    # Subclasses must set these
    name: str = ""
    description: str = ""
    parameters: dict[str, dict] = {}
    required: list[str] = []

    @abstractmethod
    async def handle(self, params: dict[str, Any]) -> ToolResponse:
        """
        Execute the tool with the given parameters.

        Args:
            params: Dict of parameter name → value, already validated
                    against the input schema by the protocol layer.

        Returns:
            The ToolResponse to send back.
        """
        ...

    def get_schema(self) -> types.Tool:
        """Return the tool schema for discovery."""
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema={
                "type": "object",
                "properties": self.parameters,
                "required": list(self.required),
            },
        )


class StdioToolServer:
    """
    MCP tool server.

    Protocol (handled by the SDK):
    - "initialize"  → server name, version and capabilities
    - "tools/list"  → registered tool schemas
    - "tools/call"  → calls a tool by name with arguments
    - "ping"        → health check
    """

    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version
        self._handlers: dict[str, ToolHandler] = {}
        self._server: Server = Server(name, version=version)
        self._server.list_tools()(self._list_tools)
        self._server.call_tool()(self._call_tool)

    @property
    def protocol_server(self) -> Server:
        """The underlying SDK server (for in-memory sessions)."""
        return self._server

    def register(self, handler: ToolHandler) -> None:
        """Register a tool handler."""
        if not handler.name:
            raise ValueError(f"ToolHandler {handler.__class__.__name__} has no name")
        self._handlers[handler.name] = handler
        logger.info(f"Registered tool: {handler.name}")

    def list_tools(self) -> list[types.Tool]:
        return [h.get_schema() for h in self._handlers.values()]

    async def call(self, tool_name: str, arguments: dict[str, Any]) -> ToolResponse:
        """Route a tool call to the appropriate handler."""
        handler = self._handlers.get(tool_name)
        if not handler:
            raise ValueError(
                f"Unknown tool: '{tool_name}'. "
                f"Available: {list(self._handlers.keys())}"
            )
        return await handler.handle(arguments)

    async def run(self, read_stream: Any, write_stream: Any) -> None:
        """
        Serve MCP requests from read_stream until it is closed.

        Returns once the peer disconnects and in-flight calls have finished.
        """
        logger.debug(f"Tool server starting with {len(self._handlers)} tools: "
                     f"{list(self._handlers.keys())}")
        await self._server.run(
            read_stream,
            write_stream,
            self._server.create_initialization_options(),
        )

    async def _list_tools(self) -> list[types.Tool]:
        return self.list_tools()

    async def _call_tool(self, name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        response = await self.call(name, arguments or {})
        return [response.to_content()]
