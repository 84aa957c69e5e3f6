"""Tests for the graceful shutdown handler."""

from __future__ import annotations

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock

import pytest

from check_scheduler.shutdown import (
    DEFAULT_SHUTDOWN_TIMEOUT,
    GracefulShutdown,
)


class TestGracefulShutdown:
    """Tests for GracefulShutdown."""

    async def test_defaults(self) -> None:
        shutdown = GracefulShutdown()
        assert shutdown.timeout == DEFAULT_SHUTDOWN_TIMEOUT
        assert shutdown.is_shutdown_requested is False

    async def test_request_shutdown_releases_wait(self) -> None:
        shutdown = GracefulShutdown()

        waiter = asyncio.create_task(shutdown.wait())
        shutdown.request_shutdown()
        await asyncio.wait_for(waiter, timeout=1.0)

        assert shutdown.is_shutdown_requested is True

    async def test_signal_requests_shutdown(self) -> None:
        shutdown = GracefulShutdown()

        shutdown._handle_signal(signal.SIGTERM)

        assert shutdown.is_shutdown_requested is True

    async def test_second_signal_forces_exit(self) -> None:
        shutdown = GracefulShutdown()
        shutdown.request_shutdown()

        with pytest.raises(SystemExit) as exc_info:
            shutdown._handle_signal(signal.SIGINT)

        assert exc_info.value.code == 128 + signal.SIGINT.value

    async def test_context_runs_sync_and_async_callbacks(self) -> None:
        sync_cb = MagicMock()
        async_cb = AsyncMock()

        async with GracefulShutdown() as shutdown:
            shutdown.register_cleanup(sync_cb)
            shutdown.register_cleanup(async_cb)

        sync_cb.assert_called_once()
        async_cb.assert_awaited_once()

    async def test_failing_callback_does_not_stop_others(self) -> None:
        shutdown = GracefulShutdown()
        after = MagicMock()
        shutdown.register_cleanup(MagicMock(side_effect=RuntimeError("boom")))
        shutdown.register_cleanup(after)

        await shutdown.run_cleanup_callbacks()

        after.assert_called_once()

    async def test_slow_callback_times_out(self) -> None:
        shutdown = GracefulShutdown(timeout=0.01)
        after = MagicMock()

        async def slow() -> None:
            await asyncio.sleep(1)

        shutdown.register_cleanup(slow)
        shutdown.register_cleanup(after)

        await shutdown.run_cleanup_callbacks()

        after.assert_called_once()
