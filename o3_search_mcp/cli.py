"""
Run the o3-search MCP server on stdio.

Intended to be launched by an MCP host (Claude Desktop, Cursor, ...) as a
subprocess. stdout carries protocol frames, so all logging goes to stderr.

Usage:
    OPENAI_API_KEY=sk-... o3-search-mcp

    # Debug logging
    o3-search-mcp --verbose

Environment:
    OPENAI_API_KEY, OPENAI_MAX_RETRIES, OPENAI_API_TIMEOUT,
    SEARCH_CONTEXT_SIZE, REASONING_EFFORT, PROCESS_TIMEOUT
    (see o3_search_mcp.config)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from o3_search_mcp.config import Settings
from o3_search_mcp.lifecycle import LifecycleManager
from o3_search_mcp.servers.o3_search import build_server
from o3_search_mcp.transport import StdioServerTransport

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="o3-search-mcp",
        description="MCP server exposing OpenAI o3 web search as a single tool.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = Settings.from_env()
        server = build_server(settings)
        lifecycle = LifecycleManager(
            server,
            StdioServerTransport(),
            process_timeout=settings.process_timeout,
        )
        return asyncio.run(lifecycle.run())
    except Exception as e:
        logger.error(f"Fatal error in main(): {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
