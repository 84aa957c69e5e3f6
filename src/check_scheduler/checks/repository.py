"""Current check snapshot and change detection."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from check_scheduler.checks.events import (
    CheckChangeEvent,
    CheckChangeListener,
    CheckDeleted,
    CheckFilterChanged,
    CheckIntervalChanged,
    NewCheck,
)
from check_scheduler.checks.models import CheckDefinition, CheckDefinitionSet

logger = logging.getLogger(__name__)


class CheckSource(Protocol):
    """Anything that can produce the current check snapshot."""

    def fetch_all(self) -> CheckDefinitionSet: ...

    @property
    def last_fetch_error(self) -> Exception | None: ...

    @property
    def last_fetch_fell_back(self) -> bool: ...


def diff_checks(
    previous: CheckDefinitionSet, current: CheckDefinitionSet
) -> list[CheckChangeEvent]:
    """Compute the change events between two snapshots.

    Events are ordered by check id. A check whose interval and filter both
    changed yields both events. Filters are compared without regard to the
    order of their entities.

    Args:
        previous: The snapshot being replaced.
        current: The new snapshot.

    Returns:
        List of change events.
    """
    events: list[CheckChangeEvent] = []
    for check_id in sorted(previous.ids | current.ids):
        old = previous.get(check_id)
        new = current.get(check_id)
        if old is None:
            events.append(NewCheck(check_id))
        elif new is None:
            events.append(CheckDeleted(check_id))
        else:
            if old.interval != new.interval:
                events.append(CheckIntervalChanged(check_id))
            if old.filter_key != new.filter_key:
                events.append(CheckFilterChanged(check_id))
    return events


class CheckRepository:
    """Holds the active check snapshot and notifies listeners of changes.

    Example:
        ```python
        repo = CheckRepository(HttpCheckSource("default", url))
        repo.register_listener(CheckChangeCleaner(alert_repo, alert_cleaner))
        repo.refresh()
        ```
    """

    def __init__(self, source: CheckSource | None = None) -> None:
        """Initialize the repository.

        Args:
            source: Source used by :meth:`refresh`.
        """
        self._source = source
        self._snapshot = CheckDefinitionSet()
        self._listeners: list[CheckChangeListener] = []
        self._stale_error: Exception | None = None
        self._lock = threading.RLock()

    @property
    def snapshot(self) -> CheckDefinitionSet:
        """The active check snapshot."""
        return self._snapshot

    @property
    def listeners(self) -> tuple[CheckChangeListener, ...]:
        """Registered listeners."""
        return tuple(self._listeners)

    @property
    def stale_error(self) -> Exception | None:
        """Fetch error behind a refresh that kept the previous snapshot, or None."""
        return self._stale_error

    def register_listener(self, listener: CheckChangeListener) -> None:
        """Register a listener for change events."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unregister_listener(self, listener: CheckChangeListener) -> bool:
        """Remove a listener.

        Returns:
            True if the listener was registered.
        """
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
            return False

    def refresh(self) -> list[CheckChangeEvent]:
        """Pull the current snapshot from the source and apply it.

        Raises:
            RuntimeError: If the repository has no source.
            FirstLoadError: Propagated from the source on a failed first load.
        """
        if self._source is None:
            raise RuntimeError("CheckRepository has no source to refresh from")
        snapshot = self._source.fetch_all()
        self._stale_error = (
            self._source.last_fetch_error if self._source.last_fetch_fell_back else None
        )
        return self.update(snapshot)

    def update(self, snapshot: CheckDefinitionSet) -> list[CheckChangeEvent]:
        """Replace the active snapshot and notify listeners of the differences.

        Args:
            snapshot: The new snapshot.

        Returns:
            The change events that were dispatched.
        """
        with self._lock:
            previous = self._snapshot
            self._snapshot = snapshot
            if snapshot is previous:
                return []

            events = diff_checks(previous, snapshot)
            if events:
                logger.info(
                    "Check snapshot changed: %d checks, %d change events",
                    len(snapshot),
                    len(events),
                )
            for event in events:
                self._dispatch(event)
            return events

    def get(self, check_id: int) -> CheckDefinition | None:
        """Return the active definition for a check id, or None."""
        return self._snapshot.get(check_id)

    def _dispatch(self, event: CheckChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener.on_check_change(event)
            except Exception:
                logger.exception("Check change listener %r failed on %r", listener, event)
