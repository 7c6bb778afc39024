"""
o3-search MCP Tool Server.

Exposes a single tool that forwards a natural-language query to OpenAI's
o3 model with web search enabled and returns the answer text.

Launch:
    OPENAI_API_KEY=... python -m o3_search_mcp.servers.o3_search

Test manually:
    echo '{"jsonrpc":"2.0","method":"initialize","params":{"protocolVersion":"2025-03-26","capabilities":{},"clientInfo":{"name":"sh","version":"0"}},"id":1}' | python -m o3_search_mcp.servers.o3_search
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from o3_search_mcp.config import Settings
from o3_search_mcp.server import StdioToolServer, ToolHandler, ToolResponse

logger = logging.getLogger(__name__)

SERVER_NAME = "o3-search-mcp"
SERVER_VERSION = "0.0.1"

MODEL = "o3"
NO_TEXT = "No response text available."
UNKNOWN_ERROR = "Unknown error occurred"


@dataclass(frozen=True)
class ToolRequest:
    input: str

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any]) -> "ToolRequest":
        return cls(input=arguments["input"])


def describe_error(exc: BaseException) -> str:
    message = str(exc)
    return message if message.strip() else UNKNOWN_ERROR


class O3SearchTool(ToolHandler):
    name = "o3-search"
    description = (
        "An AI agent with advanced web search capabilities. Useful for finding the "
        "latest information, troubleshooting errors, and discussing ideas or design "
        "challenges. Supports natural language queries."
    )
    parameters = {
        "input": {
            "type": "string",
            "minLength": 1,
            "description": "Ask questions, search for information, or consult about complex problems in English.",
        },
    }
    required = ["input"]

    def __init__(
        self,
        client: AsyncOpenAI,
        search_context_size: str = "medium",
        reasoning_effort: str = "medium",
    ):
        self._client = client
        self.search_context_size = search_context_size
        self.reasoning_effort = reasoning_effort

    def build_request(self, request: ToolRequest) -> dict[str, Any]:
        """Keyword arguments for responses.create()."""
        return {
            "model": MODEL,
            "input": request.input,
            "tools": [
                {
                    "type": "web_search_preview",
                    "search_context_size": self.search_context_size,
                },
            ],
            "tool_choice": "auto",
            "parallel_tool_calls": True,
            "reasoning": {"effort": self.reasoning_effort},
        }

    async def handle(self, params: dict[str, Any]) -> ToolResponse:
        request = ToolRequest.from_arguments(params)

        # Upstream faults are reported in-band, never as protocol errors
        try:
            response = await self._client.responses.create(**self.build_request(request))
            text = response.output_text
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {e!r}")
            return ToolResponse(text=f"Error: {describe_error(e)}")

        return ToolResponse(text=text or NO_TEXT)


def create_openai_client(settings: Settings) -> AsyncOpenAI:
    """Shared upstream client; retries and timeout live here."""
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        max_retries=settings.openai_max_retries,
        timeout=settings.openai_api_timeout,
    )


def build_server(settings: Settings, client: AsyncOpenAI | None = None) -> StdioToolServer:
    server = StdioToolServer(SERVER_NAME, SERVER_VERSION)
    server.register(O3SearchTool(
        client or create_openai_client(settings),
        search_context_size=settings.search_context_size,
        reasoning_effort=settings.reasoning_effort,
    ))
    return server


if __name__ == "__main__":
    from o3_search_mcp.cli import main

    sys.exit(main())
