"""Cascade check filter changes to the alerts bound to the check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from check_scheduler.checks.events import CheckChangeEvent, CheckFilterChanged

if TYPE_CHECKING:
    from check_scheduler.alerts.repository import AlertRepository
    from check_scheduler.cleanup.alert_cleaner import AlertChangeCleaner

logger = logging.getLogger(__name__)


class CheckChangeCleaner:
    """Check change listener that cleans up alerts after a filter change.

    When a check's entity filter changes, every alert bound to that check
    may hold state for entities that no longer match. Each bound alert is
    handed to the alert cleaner on its own. New, deleted and re-scheduled
    checks need no alert cleanup here.
    """

    def __init__(
        self, alert_repository: AlertRepository, alert_cleaner: AlertChangeCleaner
    ) -> None:
        self._alert_repository = alert_repository
        self._alert_cleaner = alert_cleaner

    def on_check_change(self, event: CheckChangeEvent) -> None:
        match event:
            case CheckFilterChanged(check_id=check_id):
                self.on_filter_changed(check_id)
            case _:
                pass

    def on_filter_changed(self, check_id: int) -> int:
        """Notify the alert cleaner for each alert bound to a check.

        A failure for one alert is logged and does not stop the others.

        Args:
            check_id: Id of the check whose filter changed.

        Returns:
            Number of alerts notified successfully.
        """
        alerts = self._alert_repository.get_by_check_id(check_id)
        if not alerts:
            logger.debug("Filter of check %d changed, no bound alerts", check_id)
            return 0

        logger.info("Filter of check %d changed, cleaning up %d alerts", check_id, len(alerts))
        cleaned = 0
        for alert in alerts:
            try:
                self._alert_cleaner.notify_alert_change(alert)
                cleaned += 1
            except Exception:
                logger.exception("Cleanup of alert %d for check %d failed", alert.id, check_id)
        return cleaned
