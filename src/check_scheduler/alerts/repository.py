"""Current alert snapshot indexed by owning check."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Protocol

from check_scheduler.alerts.models import AlertDefinition, AlertDefinitionSet

logger = logging.getLogger(__name__)


class AlertSource(Protocol):
    """Anything that can produce the current alert snapshot."""

    def fetch_all(self) -> AlertDefinitionSet: ...

    @property
    def last_fetch_error(self) -> Exception | None: ...

    @property
    def last_fetch_fell_back(self) -> bool: ...


class AlertRepository:
    """Holds the active alert snapshot and maps check ids to their alerts."""

    def __init__(self, source: AlertSource | None = None) -> None:
        self._source = source
        self._snapshot = AlertDefinitionSet()
        self._by_check: dict[int, tuple[AlertDefinition, ...]] = {}
        self._stale_error: Exception | None = None
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> AlertDefinitionSet:
        """The active alert snapshot."""
        return self._snapshot

    @property
    def stale_error(self) -> Exception | None:
        """Fetch error behind a refresh that kept the previous snapshot, or None."""
        return self._stale_error

    def refresh(self) -> AlertDefinitionSet:
        """Pull the current snapshot from the source and apply it.

        Raises:
            RuntimeError: If the repository has no source.
            FirstLoadError: Propagated from the source on a failed first load.
        """
        if self._source is None:
            raise RuntimeError("AlertRepository has no source to refresh from")
        snapshot = self._source.fetch_all()
        self._stale_error = (
            self._source.last_fetch_error if self._source.last_fetch_fell_back else None
        )
        self.update(snapshot)
        return snapshot

    def update(self, snapshot: AlertDefinitionSet) -> None:
        """Replace the active snapshot and rebuild the check index."""
        index: defaultdict[int, list[AlertDefinition]] = defaultdict(list)
        for alert in snapshot:
            index[alert.check_definition_id].append(alert)

        with self._lock:
            self._snapshot = snapshot
            self._by_check = {check_id: tuple(alerts) for check_id, alerts in index.items()}
        logger.debug("Indexed %d alerts over %d checks", len(snapshot), len(index))

    def get(self, alert_id: int) -> AlertDefinition | None:
        """Return the active definition for an alert id, or None."""
        return self._snapshot.get(alert_id)

    def get_by_check_id(self, check_id: int) -> list[AlertDefinition]:
        """Return the alerts currently bound to a check.

        Args:
            check_id: Id of the owning check.

        Returns:
            The bound alerts, empty if the check has none.
        """
        with self._lock:
            return list(self._by_check.get(check_id, ()))
