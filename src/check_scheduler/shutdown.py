"""Signal-driven graceful shutdown for the scheduler process."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Callable
from contextlib import suppress
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 30.0

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class GracefulShutdown:
    """Traps SIGTERM/SIGINT and runs cleanup callbacks on exit.

    A second signal while shutting down exits immediately. Cleanup callbacks
    may be sync or async and share one timeout.

    Example:
        ```python
        async with GracefulShutdown() as shutdown:
            shutdown.register_cleanup(scheduler.stop)
            await scheduler.start()
            await shutdown.wait()
        ```
    """

    def __init__(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        self._timeout = timeout
        self._event = asyncio.Event()
        self._requested = False
        self._cleanup_callbacks: list[Callable[[], Any]] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def timeout(self) -> float:
        """Time budget for cleanup callbacks, in seconds."""
        return self._timeout

    @property
    def is_shutdown_requested(self) -> bool:
        """Whether shutdown has been requested."""
        return self._requested

    def register_cleanup(self, callback: Callable[[], Any]) -> None:
        """Register a sync or async callable to run on shutdown."""
        self._cleanup_callbacks.append(callback)

    def request_shutdown(self) -> None:
        """Request shutdown from application code."""
        if not self._requested:
            self._requested = True
            logger.info("Shutdown requested")
            self._event.set()

    async def wait(self) -> None:
        """Block until shutdown is requested."""
        await self._event.wait()

    def _handle_signal(self, sig: signal.Signals) -> None:
        if self._requested:
            logger.warning("Received %s again - forcing exit!", sig.name)
            sys.exit(128 + sig.value)
        logger.info("Received %s - initiating graceful shutdown...", sig.name)
        self.request_shutdown()

    def install_signal_handlers(self) -> None:
        """Route shutdown signals to this handler via the running loop."""
        self._loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._handle_signal, sig)
            except (NotImplementedError, ValueError, OSError) as e:
                logger.warning("Could not install handler for %s: %s", sig.name, e)

    def remove_signal_handlers(self) -> None:
        """Remove handlers installed by install_signal_handlers."""
        if self._loop is None:
            return
        for sig in SHUTDOWN_SIGNALS:
            with suppress(NotImplementedError, ValueError, OSError):
                self._loop.remove_signal_handler(sig)
        self._loop = None

    async def run_cleanup_callbacks(self) -> None:
        """Run registered callbacks in order, isolating their failures."""
        for callback in self._cleanup_callbacks:
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await asyncio.wait_for(result, timeout=self._timeout)
            except TimeoutError:
                logger.error("Cleanup callback %r timed out after %.1fs", callback, self._timeout)
            except Exception as e:
                logger.error("Cleanup callback failed: %s", e)

    async def __aenter__(self) -> GracefulShutdown:
        self.install_signal_handlers()
        return self

    async def __aexit__(self, *_args: Any) -> None:
        self.remove_signal_handlers()
        await self.run_cleanup_callbacks()
