"""
Transport layer for serving MCP over the process's own stdin/stdout.

Currently implements:
  - StdioServerTransport: MCP frames over stdin/stdout (local)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from typing import IO, Any, AsyncIterator

from mcp.server.stdio import stdio_server

from o3_search_mcp.server import StdioToolServer

logger = logging.getLogger(__name__)

# Largest single MCP frame accepted on stdin.
STDIN_LINE_LIMIT = 16 * 1024 * 1024


class StdinLines:
    """
    Async line iterator over a StreamReader.

    Reads never park a worker thread, so cancelling the serving task
    returns immediately even while stdin is idle.
    """

    def __init__(self, reader: asyncio.StreamReader, pipe: asyncio.BaseTransport | None = None):
        self._reader = reader
        self._pipe = pipe

    @classmethod
    async def open(cls, stream: IO[Any] | None = None) -> "StdinLines":
        """Attach to a readable pipe (sys.stdin by default)."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=STDIN_LINE_LIMIT)
        pipe, _ = await loop.connect_read_pipe(
            lambda: asyncio.StreamReaderProtocol(reader),
            stream if stream is not None else sys.stdin,
        )
        return cls(reader, pipe)

    def __aiter__(self) -> AsyncIterator[str]:
        return self

    async def __anext__(self) -> str:
        line = await self._reader.readline()
        if not line:
            raise StopAsyncIteration
        return line.decode("utf-8", errors="replace")

    def close(self) -> None:
        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None


class Transport(ABC):
    """Abstract transport layer for serving MCP."""

    @abstractmethod
    async def start(self, server: StdioToolServer) -> None:
        """Connect and begin serving (returns once connected)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Close the transport, dropping any in-flight calls."""
        ...

    @abstractmethod
    async def wait_closed(self) -> None:
        """
        Wait until the transport ends on its own.

        Returns on end of input; raises the error that ended it otherwise.
        """
        ...

    @abstractmethod
    def is_alive(self) -> bool:
        """Check if the transport is active."""
        ...


class StdioServerTransport(Transport):
    """
    MCP over stdin/stdout of the current process.

    This is MCP's native local transport. The host launches us as a
    child process, writes requests to our stdin and reads responses
    from our stdout. One line = one message. Logging must go to stderr.
    """

    def __init__(
        self,
        stdin: Any = None,
        stdout: Any = None,
        close_timeout: float = 5.0,
    ):
        """
        Args:
            stdin: Async iterable of request lines. Defaults to the
                   process stdin via StdinLines.
            stdout: Async file-like object with write()/flush(). Defaults
                    to the SDK's wrapper around the process stdout.
            close_timeout: Seconds stop() waits for the serving task.
        """
        self._stdin = stdin
        self._stdout = stdout
        self.close_timeout = close_timeout
        self._task: asyncio.Task | None = None
        self._connected = asyncio.Event()

    async def start(self, server: StdioToolServer) -> None:
        """Start serving and wait for the stdio streams to open."""
        if self.is_alive():
            logger.warning("Transport already running, stopping first")
            await self.stop()

        logger.debug("Starting stdio transport")
        self._connected = asyncio.Event()
        self._task = asyncio.create_task(self._serve(server), name="stdio-transport")
        connected = asyncio.create_task(self._connected.wait())
        try:
            await asyncio.wait({self._task, connected}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            connected.cancel()

        if not self._connected.is_set():
            task, self._task = self._task, None
            # Raises the startup fault, if any
            task.result()
            raise RuntimeError("Stdio transport closed before connecting")

    async def _serve(self, server: StdioToolServer) -> None:
        stdin = self._stdin
        owned = None
        if stdin is None:
            stdin = owned = await StdinLines.open()
        try:
            async with stdio_server(stdin=stdin, stdout=self._stdout) as (read_stream, write_stream):
                self._connected.set()
                await server.run(read_stream, write_stream)
        finally:
            if owned is not None:
                owned.close()

    async def stop(self) -> None:
        """Cancel the serving task and wait for it to unwind."""
        task, self._task = self._task, None
        if task is None:
            return
        if task.done():
            # Already ended; wait_closed() reported how.
            if not task.cancelled():
                task.exception()
            return

        task.cancel()
        done, _ = await asyncio.wait({task}, timeout=self.close_timeout)
        if not done:
            raise TimeoutError(
                f"Stdio transport did not close within {self.close_timeout}s"
            )
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
        logger.info("Stdio transport stopped")

    async def wait_closed(self) -> None:
        task = self._task
        if task is None:
            raise RuntimeError("Transport not running. Call start() first.")

        # asyncio.wait does not propagate our own cancellation into the task
        await asyncio.wait({task})
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            raise exc

    def is_alive(self) -> bool:
        """Check if the serving task is running."""
        return self._task is not None and not self._task.done()
