"""
Lifecycle Manager — runs the tool server from start to exit.

Every way the process can end funnels into one shutdown routine:

    - process timeout elapsing
    - SIGTERM / SIGINT
    - stdin reaching end of input (client disconnected)
    - stdin / transport error
    - an uncaught exception (worker thread or loop callback)
    - an unretrieved task or future error

Usage:
    lifecycle = LifecycleManager(server, StdioServerTransport(), process_timeout=300)
    exit_code = asyncio.run(lifecycle.run())
"""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from enum import Enum
from typing import Any

from o3_search_mcp.server import StdioToolServer
from o3_search_mcp.transport import Transport

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class LifecycleState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class LifecycleManager:
    """
    Owns the transport, the process timer and the shutdown hooks.

    Only the first shutdown trigger counts; later ones are logged and
    ignored. The event loop is single-threaded, so the state check in
    request_shutdown() needs no lock. Triggers from other threads are
    marshalled onto the loop first.
    """

    def __init__(
        self,
        server: StdioToolServer,
        transport: Transport,
        process_timeout: float | None = 300.0,
    ):
        self.server = server
        self.transport = transport
        self.process_timeout = process_timeout
        self.state = LifecycleState.STARTING
        self.shutdown_reason: str | None = None

        self._loop: asyncio.AbstractEventLoop | None = None
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._shutdown_requested: asyncio.Event | None = None
        self._watcher: asyncio.Task | None = None
        self._installed_signals: list[signal.Signals] = []
        self._fallback_signals: dict[signal.Signals, Any] = {}
        self._prev_exception_handler: Any = None
        self._prev_threading_excepthook: Any = None

    async def run(self) -> int:
        """
        Start serving and block until shutdown completes.

        Returns:
            The process exit code: 0 if the transport closed cleanly,
            1 if closing it failed.

        Raises:
            Whatever the transport raised while connecting. No shutdown
            sequence runs in that case.
        """
        self._loop = asyncio.get_running_loop()
        self._shutdown_requested = asyncio.Event()

        await self.transport.start(self.server)
        self.state = LifecycleState.RUNNING
        logger.info("MCP Server running on stdio")

        self._arm_timeout()
        self._install_hooks()
        self._watcher = asyncio.create_task(self._watch_transport(), name="transport-watcher")

        await self._shutdown_requested.wait()
        return await self._shutdown()

    def request_shutdown(self, reason: str) -> bool:
        """
        Ask for shutdown. Returns False if one is already under way.

        Must be called on the event loop thread.
        """
        if self.shutdown_reason is not None or self.state is not LifecycleState.RUNNING:
            logger.debug(f"Ignoring {reason}: already shutting down ({self.shutdown_reason})")
            return False

        # Disarm first so a late timer cannot fire a second shutdown
        self._disarm_timeout()
        self.shutdown_reason = reason
        logger.info(f"Received {reason}, shutting down gracefully...")
        self._shutdown_requested.set()
        return True

    @property
    def timeout_armed(self) -> bool:
        return self._timeout_handle is not None

    async def _shutdown(self) -> int:
        self.state = LifecycleState.SHUTTING_DOWN
        self._disarm_timeout()
        self._remove_hooks()

        if self._watcher is not None:
            self._watcher.cancel()
            await asyncio.wait({self._watcher})
            self._watcher = None

        try:
            await self.transport.stop()
        except Exception as e:
            logger.error(f"Error during shutdown: {e!r}")
            exit_code = 1
        else:
            exit_code = 0

        self.state = LifecycleState.TERMINATED
        return exit_code

    # ── Triggers ───────────────────────────────────────────

    def _arm_timeout(self) -> None:
        if self.process_timeout is None:
            return
        self._timeout_handle = self._loop.call_later(self.process_timeout, self._on_timeout)

    def _disarm_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _on_timeout(self) -> None:
        self._timeout_handle = None
        logger.info(f"Process timeout after {int(self.process_timeout * 1000)}ms, shutting down...")
        self.request_shutdown("timeout")

    async def _watch_transport(self) -> None:
        try:
            await self.transport.wait_closed()
        except Exception as e:
            logger.error(f"Stdin error: {e!r}")
            self.request_shutdown("stdin error")
        else:
            logger.info("Client disconnected, shutting down...")
            self.request_shutdown("stdin end")

    def _on_signal(self, sig: signal.Signals) -> None:
        self.request_shutdown(sig.name)

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        if "future" in context or "task" in context:
            logger.error(f"Unhandled rejection: {context.get('message')} reason: {exc!r}")
            self.request_shutdown("unhandled rejection")
        else:
            # Raised from a plain loop callback
            logger.error(f"Uncaught exception: {context.get('message')} {exc!r}")
            self.request_shutdown("uncaught exception")

    def _on_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        thread_name = args.thread.name if args.thread else "unknown"
        logger.error(f"Uncaught exception in thread {thread_name}: {args.exc_value!r}")
        self._loop.call_soon_threadsafe(self.request_shutdown, "uncaught exception")

    def _install_hooks(self) -> None:
        for sig in SHUTDOWN_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._on_signal, sig)
                self._installed_signals.append(sig)
            except (NotImplementedError, RuntimeError):
                # No loop signal support (e.g. Windows); route through signal.signal
                self._fallback_signals[sig] = signal.signal(
                    sig,
                    lambda s, frame: self._loop.call_soon_threadsafe(
                        self._on_signal, signal.Signals(s)
                    ),
                )

        self._prev_exception_handler = self._loop.get_exception_handler()
        self._loop.set_exception_handler(self._on_loop_exception)

        self._prev_threading_excepthook = threading.excepthook
        threading.excepthook = self._on_thread_exception

    def _remove_hooks(self) -> None:
        for sig in self._installed_signals:
            self._loop.remove_signal_handler(sig)
        self._installed_signals.clear()
        for sig, previous in self._fallback_signals.items():
            signal.signal(sig, previous)
        self._fallback_signals.clear()

        if self._prev_threading_excepthook is not None:
            threading.excepthook = self._prev_threading_excepthook
            self._prev_threading_excepthook = None
        self._loop.set_exception_handler(self._prev_exception_handler)
        self._prev_exception_handler = None
