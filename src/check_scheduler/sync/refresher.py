"""Background service refreshing alert and check definitions on an interval.

Each cycle refreshes alerts first and checks second, so cleanups triggered
by check changes look up the current alert bindings.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from check_scheduler.alerts.repository import AlertRepository
    from check_scheduler.checks.repository import CheckRepository

logger = logging.getLogger(__name__)


DEFAULT_REFRESH_INTERVAL_SECONDS = 60


class RefreshState(str, Enum):
    """State of the definition refresher."""

    STOPPED = "stopped"
    STARTING = "starting"
    REFRESHING = "refreshing"
    IDLE = "idle"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass
class RefreshStats:
    """Statistics for the refresh process."""

    total_refreshes: int = 0
    successful_refreshes: int = 0
    failed_refreshes: int = 0
    stale_refreshes: int = 0
    checks_active: int = 0
    alerts_active: int = 0
    change_events: int = 0
    last_refresh_time: datetime | None = None
    last_refresh_duration_seconds: float = 0.0
    last_error: str | None = None


StateCallback = Callable[[RefreshState], None]
RefreshCallback = Callable[[RefreshStats], None]


class RefreshError(Exception):
    """Raised when the refresher cannot start."""


class DefinitionRefresher:
    """Periodically pulls definitions into the alert and check repositories.

    Example:
        ```python
        refresher = DefinitionRefresher(alert_repo, check_repo, interval_seconds=60)
        await refresher.start()
        ...
        await refresher.stop()
        ```
    """

    def __init__(
        self,
        alert_repository: AlertRepository,
        check_repository: CheckRepository,
        *,
        interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        on_state_change: StateCallback | None = None,
        on_refresh_complete: RefreshCallback | None = None,
    ) -> None:
        """Initialize the refresher.

        Args:
            alert_repository: Repository refreshed first in each cycle.
            check_repository: Repository refreshed second in each cycle.
            interval_seconds: Pause between refresh cycles.
            on_state_change: Callback for state changes.
            on_refresh_complete: Callback after each completed cycle, stale or not.
        """
        self._alerts = alert_repository
        self._checks = check_repository
        self._interval = interval_seconds
        self._on_state_change = on_state_change
        self._on_refresh_complete = on_refresh_complete

        self._state = RefreshState.STOPPED
        self._stats = RefreshStats()
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._refresh_lock = asyncio.Lock()

    @property
    def state(self) -> RefreshState:
        """Current refresher state."""
        return self._state

    @property
    def stats(self) -> RefreshStats:
        """Current refresh statistics."""
        return self._stats

    @property
    def interval_seconds(self) -> float:
        """Pause between refresh cycles."""
        return self._interval

    def _set_state(self, new_state: RefreshState) -> None:
        old_state = self._state
        self._state = new_state
        if self._on_state_change and old_state != new_state:
            try:
                self._on_state_change(new_state)
            except Exception as e:
                logger.warning("State change callback failed: %s", e)

    async def start(self) -> None:
        """Run the initial refresh and start the background loop.

        Raises:
            RefreshError: If the initial refresh fails.
        """
        if self._state != RefreshState.STOPPED:
            logger.warning("Cannot start refresher: already in state %s", self._state.value)
            return

        self._set_state(RefreshState.STARTING)
        self._stop_event.clear()

        try:
            await self._refresh()
        except Exception as e:
            logger.error("Initial definition load failed: %s", e)
            self._set_state(RefreshState.ERROR)
            self._set_state(RefreshState.STOPPED)
            raise RefreshError(f"Failed to start: initial load failed: {e}") from e

        self._task = asyncio.create_task(self._loop())
        self._set_state(RefreshState.IDLE)
        logger.info("Definition refresher started (interval %.0fs)", self._interval)

    async def stop(self) -> None:
        """Stop the background loop."""
        if self._state == RefreshState.STOPPED:
            return

        self._set_state(RefreshState.STOPPING)
        self._stop_event.set()

        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        self._set_state(RefreshState.STOPPED)
        logger.info("Definition refresher stopped")

    async def force_refresh(self) -> None:
        """Run one refresh cycle immediately."""
        await self._refresh()

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                    break
                except TimeoutError:
                    pass

                await self._refresh()

            except asyncio.CancelledError:
                break
            except Exception as e:
                # Logged in _refresh; retried on the next tick
                logger.debug("Refresh cycle failed: %s", e)

    async def _refresh(self) -> None:
        async with self._refresh_lock:
            self._set_state(RefreshState.REFRESHING)
            start_time = datetime.now(UTC)
            self._stats.total_refreshes += 1

            try:
                alerts = await asyncio.to_thread(self._alerts.refresh)
                events = await asyncio.to_thread(self._checks.refresh)
            except Exception as e:
                self._stats.failed_refreshes += 1
                self._stats.last_error = str(e)
                self._set_state(RefreshState.ERROR)
                logger.error("Definition refresh failed: %s", e)
                raise

            end_time = datetime.now(UTC)
            self._stats.alerts_active = len(alerts)
            self._stats.checks_active = len(self._checks.snapshot)
            self._stats.change_events += len(events)
            self._stats.last_refresh_time = end_time
            self._stats.last_refresh_duration_seconds = (end_time - start_time).total_seconds()

            self._set_state(RefreshState.IDLE)

            # A source that fell back served stale definitions
            stale = [
                e for e in (self._alerts.stale_error, self._checks.stale_error) if e is not None
            ]
            if stale:
                self._stats.stale_refreshes += 1
                self._stats.last_error = "; ".join(str(e) for e in stale)
                logger.warning(
                    "Refresh kept %d checks and %d alerts from an earlier load: %s",
                    self._stats.checks_active,
                    self._stats.alerts_active,
                    self._stats.last_error,
                )
            else:
                self._stats.successful_refreshes += 1
                self._stats.last_error = None
                logger.info(
                    "Refreshed %d checks and %d alerts in %.2fs",
                    self._stats.checks_active,
                    self._stats.alerts_active,
                    self._stats.last_refresh_duration_seconds,
                )

            if self._on_refresh_complete:
                try:
                    self._on_refresh_complete(self._stats)
                except Exception as e:
                    logger.warning("Refresh complete callback failed: %s", e)
